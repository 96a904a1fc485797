"""
Tests for the retrieval engine.
"""
import pytest
from unittest.mock import Mock

from conftest import FakeCompletionService, FakeEmbeddingService, keyword_vector
from creative_rag.exceptions import InvalidInput, UpstreamUnavailable
from creative_rag.schemas import (
    AnalysisRecord,
    CampaignComposition,
    CampaignDocumentInput,
    EmbeddedChunk,
    QueryFilters,
)
from creative_rag.services.campaign_analysis import extract_features, predict_outcomes
from creative_rag.services.retrieval import NO_EVIDENCE_ANSWER, SYSTEM_PROMPT, RetrievalEngine, build_context
from creative_rag.utils import utcnow

LAUNCH_TEXT = "The launch video tells a story of our founders roasting coffee."
SALE_TEXT = "Summer price cuts on every mobile plan."


def store(repository, doc_id, filename, campaign, client, text):
    document = CampaignDocumentInput(
        id=doc_id, filename=filename, path=f"{client}/{campaign}", text=text,
        campaign_name=campaign, client_name=client, file_kind="document",
    )
    features = extract_features(document, text, [document])
    analysis = AnalysisRecord(
        creative_features=features,
        business_outcomes=predict_outcomes(document, text, [document], features),
        campaign_composition=CampaignComposition(total_file_count=1),
        confidence_score=0.85,
        analyzed_at=utcnow(),
    )
    chunks = [EmbeddedChunk(chunk_index=0, content=text, embedding=keyword_vector(text))]
    repository.save_document_analysis(document, analysis, chunks)


@pytest.fixture
def seeded(repository):
    store(repository, "launch-1", "launch_script.txt", "brand_launch", "acme", LAUNCH_TEXT)
    store(repository, "sale-1", "sale_copy.txt", "summer_sale", "globex", SALE_TEXT)
    return repository


def make_engine(repository, settings, embedding=None, completion=None, sleep=None):
    return RetrievalEngine(
        repository=repository,
        embedding_service=embedding or FakeEmbeddingService(),
        completion_service=completion or FakeCompletionService(),
        settings=settings,
        sleep=sleep or Mock(),
    )


def test_answers_from_most_similar_chunks(seeded, settings):
    completion = FakeCompletionService()
    engine = make_engine(seeded, settings, completion=completion)

    result = engine.query("Which launch story features coffee?", limit=1)

    assert result.answer == completion.answer
    assert [s.document_id for s in result.sources] == ["launch-1"]
    system_prompt, context, question = completion.calls[0]
    assert system_prompt == SYSTEM_PROMPT
    assert "launch_script.txt" in context
    assert LAUNCH_TEXT in context
    assert question == "Which launch story features coffee?"
    assert result.metadata["results_count"] == 1
    assert result.metadata["completion_invoked"] is True


def test_no_evidence_skips_completion(seeded, settings):
    completion = FakeCompletionService()
    engine = make_engine(seeded, settings, completion=completion)

    result = engine.query("Anything?", QueryFilters(campaign="does_not_exist"))

    assert result.answer == NO_EVIDENCE_ANSWER
    assert result.sources == []
    assert completion.calls == []
    assert result.metadata["completion_invoked"] is False


def test_empty_store_skips_completion(repository, settings):
    completion = FakeCompletionService()
    result = make_engine(repository, settings, completion=completion).query("What works?")
    assert result.answer == NO_EVIDENCE_ANSWER
    assert completion.calls == []


def test_filters_restrict_sources_and_analysis(seeded, settings):
    engine = make_engine(seeded, settings)
    result = engine.query("price", QueryFilters(client="globex"))

    assert {s.document_id for s in result.sources} == {"sale-1"}
    assert [a.document_id for a in result.analysis] == ["sale-1"]
    assert result.metadata["filters"] == {"client": "globex"}


def test_creative_feature_filter(seeded, settings):
    engine = make_engine(seeded, settings)
    result = engine.query("story", QueryFilters(creative_feature="detected_storytelling"))
    assert {s.document_id for s in result.sources} == {"launch-1"}


@pytest.mark.parametrize("question,filters,limit", [
    ("", None, 5),
    ("   ", None, 5),
    ("What works?", None, 0),
    ("What works?", QueryFilters(creative_feature="detected_magic"), 5),
    ("What works?", QueryFilters(business_outcome="outcome_brand_magic"), 5),
])
def test_invalid_queries_fail_before_io(repository, settings, question, filters, limit):
    embedding = FakeEmbeddingService()
    engine = make_engine(repository, settings, embedding=embedding)
    with pytest.raises(InvalidInput):
        engine.query(question, filters, limit)
    assert embedding.calls == []


def test_query_embedding_is_retried(seeded, settings):
    embedding = FakeEmbeddingService(failures=2)
    sleep = Mock()
    engine = make_engine(seeded, settings, embedding=embedding, sleep=sleep)

    result = engine.query("coffee story")

    assert result.sources
    assert len(embedding.calls) == 3
    assert sleep.call_count == 2


def test_query_embedding_gives_up(seeded, settings):
    embedding = FakeEmbeddingService(failures=10)
    engine = make_engine(seeded, settings, embedding=embedding)
    with pytest.raises(UpstreamUnavailable):
        engine.query("coffee story")
    assert len(embedding.calls) == settings.retry_attempts


def test_build_context_headers(seeded):
    chunks = seeded.find_similar_chunks(keyword_vector("coffee"), limit=2)
    context = build_context(chunks)
    assert context.startswith("[Source 1: launch_script.txt | campaign: brand_launch | client: acme | document]")
