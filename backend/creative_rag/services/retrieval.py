"""
Question answering over stored campaign chunks: embed, search, complete.
"""
import logging
import time
from typing import Callable, List, Optional

from creative_rag.config import Settings, get_settings
from creative_rag.exceptions import InvalidInput, UpstreamUnavailable
from creative_rag.schemas import QueryFilters, QueryResult, SimilarChunk
from creative_rag.services.campaign_analysis.rules import FEATURE_VOCABULARY, OUTCOME_VOCABULARY
from creative_rag.utils import call_with_retries

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a creative effectiveness strategist. Answer questions about advertising "
    "campaigns using only the campaign material provided as context. Cite the source "
    "files you draw on by filename. Tie creative features (storytelling, emotional appeal, "
    "calls to action, visual design) to the business outcomes they are likely to drive. "
    "If the context does not answer the question, say so plainly."
)

NO_EVIDENCE_ANSWER = (
    "No campaign material matched this question and filters, so there is no evidence to "
    "answer from. Try broadening the filters or ingesting the relevant campaign files."
)


def validate_filters(filters: Optional[QueryFilters]) -> QueryFilters:
    """Reject flag filters that are not in the vocabularies."""
    filters = filters or QueryFilters()
    if filters.creative_feature and filters.creative_feature not in FEATURE_VOCABULARY:
        raise InvalidInput(f"Unknown creative feature: {filters.creative_feature}")
    if filters.business_outcome and filters.business_outcome not in OUTCOME_VOCABULARY:
        raise InvalidInput(f"Unknown business outcome: {filters.business_outcome}")
    return filters


def build_context(chunks: List[SimilarChunk]) -> str:
    """Chunk texts in rank order, each under a header naming its source."""
    sections = []
    for i, chunk in enumerate(chunks, start=1):
        header = f"[Source {i}: {chunk.filename} | campaign: {chunk.campaign_name}"
        if chunk.client_name:
            header += f" | client: {chunk.client_name}"
        header += f" | {chunk.file_kind}]"
        features = [name for name, value in chunk.creative_features.items() if value]
        if features:
            header += f"\nFeatures: {', '.join(features)}"
        sections.append(f"{header}\n{chunk.content}")
    return "\n\n".join(sections)


class RetrievalEngine:
    def __init__(
        self,
        repository,
        embedding_service,
        completion_service,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.repository = repository
        self.embedding_service = embedding_service
        self.completion_service = completion_service
        self.settings = settings or get_settings()
        self._sleep = sleep

    def _retry(self, func, description: str):
        return call_with_retries(
            func,
            attempts=self.settings.retry_attempts,
            retry_on=(UpstreamUnavailable,),
            base_delay=self.settings.retry_base_delay_seconds,
            max_delay=self.settings.retry_max_delay_seconds,
            sleep=self._sleep,
            description=description,
        )

    def query(
        self,
        question: str,
        filters: Optional[QueryFilters] = None,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """
        Answer a question from the most similar stored chunks.

        When nothing matches, returns NO_EVIDENCE_ANSWER without calling the
        completion service.

        Raises:
            InvalidInput: Empty question, non-positive limit or unknown flag filter
            UpstreamUnavailable: Embedding or completion still failing after retries
        """
        if not (question or "").strip():
            raise InvalidInput("Question must not be empty")
        limit = self.settings.default_query_limit if limit is None else limit
        if limit <= 0:
            raise InvalidInput(f"limit must be positive, got {limit}")
        filters = validate_filters(filters)
        question = question.strip()

        query_vector = self._retry(lambda: self.embedding_service.embed(question), "Query embedding")
        sources = self.repository.find_similar_chunks(query_vector, filters, limit)
        analysis = self.repository.get_campaign_analysis(filters)

        metadata = {
            "query": question,
            "filters": filters.model_dump(exclude_none=True),
            "results_count": len(sources),
            "completion_invoked": False,
        }

        if not sources:
            logger.info("No chunks matched query %r with filters %s", question, metadata["filters"])
            return QueryResult(answer=NO_EVIDENCE_ANSWER, sources=[], analysis=analysis, metadata=metadata)

        context = build_context(sources)
        answer = self._retry(
            lambda: self.completion_service.complete(SYSTEM_PROMPT, context, question),
            "Completion",
        )
        metadata["completion_invoked"] = True
        return QueryResult(answer=answer, sources=sources, analysis=analysis, metadata=metadata)
