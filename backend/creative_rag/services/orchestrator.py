"""
Campaign ingestion pipeline and the query entry point.

A run goes GROUPING -> PER_DOCUMENT_ANALYSIS -> PERSISTING -> COMPLETED or
PARTIALLY_FAILED. Documents are analyzed and persisted by a bounded thread pool;
each document commits in its own transaction, so one failure never aborts the run.
"""
import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from creative_rag.config import Settings, get_settings, validate_settings
from creative_rag.exceptions import (
    CampaignRAGError,
    InvalidConfiguration,
    InvalidInput,
    PersistenceFailure,
    ProcessingCancelled,
    UpstreamUnavailable,
)
from creative_rag.schemas import (
    AnalysisRecord,
    CampaignComposition,
    CampaignDocumentInput,
    DocumentError,
    EmbeddedChunk,
    ProcessingState,
    ProcessingSummary,
    QueryFilters,
    QueryResult,
)
from creative_rag.services.campaign_analysis import (
    analyze_composition,
    extract_features,
    predict_outcomes,
    validate_rule_tables,
)
from creative_rag.services.campaign_analysis.classification import (
    classify_file_kind,
    derive_campaign_name,
    derive_client_name,
)
from creative_rag.services.campaign_analysis.rules import normalize_text
from creative_rag.services.chunking import chunk_text
from creative_rag.services.retrieval import RetrievalEngine
from creative_rag.utils import call_with_retries, utcnow

logger = logging.getLogger(__name__)

PERSIST_ATTEMPTS = 2  # one retry


def _error(document_id: Optional[str], filename: Optional[str], exc: BaseException) -> DocumentError:
    return DocumentError(
        document_id=document_id,
        filename=filename,
        error_type=type(exc).__name__,
        message=str(exc),
    )


class CampaignOrchestrator:
    def __init__(
        self,
        source,
        repository,
        embedding_service,
        settings: Optional[Settings] = None,
        completion_service=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = validate_settings(settings or get_settings())
        validate_rule_tables()

        self.source = source
        self.repository = repository
        self.embedding_service = embedding_service
        self.completion_service = completion_service
        self._sleep = sleep
        self._cancel_event = threading.Event()
        self.state: Optional[ProcessingState] = None

        self.retrieval = None
        if completion_service is not None:
            self.retrieval = RetrievalEngine(
                repository=repository,
                embedding_service=embedding_service,
                completion_service=completion_service,
                settings=self.settings,
                sleep=sleep,
            )

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Ask the current run to stop: pending documents are skipped, in-flight ones roll back."""
        logger.info("Cancellation requested")
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _transition(self, state: ProcessingState) -> None:
        logger.info("Processing state %s -> %s", self.state.value if self.state else None, state.value)
        self.state = state

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    def resolve_document(self, record: Dict[str, Any]) -> CampaignDocumentInput:
        """Validate a raw record and fill in file kind, campaign and client."""
        try:
            document = CampaignDocumentInput.model_validate(record)
        except ValidationError as e:
            raise InvalidInput(f"Malformed document record: {e.errors()[0]['msg']}") from e

        updates = {}
        if "file_kind" not in document.model_fields_set:
            updates["file_kind"] = classify_file_kind(document.filename, document.mime_type)
        if not document.campaign_name:
            updates["campaign_name"] = derive_campaign_name(document.path, document.filename)
        if not document.client_name:
            updates["client_name"] = derive_client_name(document.path, document.filename)
        return document.model_copy(update=updates) if updates else document

    def group_documents(
        self, records: List[Dict[str, Any]]
    ) -> Tuple[Dict[str, List[CampaignDocumentInput]], List[DocumentError]]:
        """Group valid records by campaign; malformed records come back as errors."""
        groups: Dict[str, List[CampaignDocumentInput]] = {}
        errors: List[DocumentError] = []
        seen_ids = set()

        for record in records:
            record_id = record.get("id") if isinstance(record, dict) else None
            record_name = record.get("filename") if isinstance(record, dict) else None
            if not isinstance(record, dict):
                errors.append(_error(None, None, InvalidInput(f"Document record is not a mapping: {record!r}")))
                continue
            try:
                document = self.resolve_document(record)
            except InvalidInput as e:
                logger.warning("Skipping document %s: %s", record_id, e)
                errors.append(_error(record_id, record_name, e))
                continue
            if document.id in seen_ids:
                logger.warning("Duplicate document id %s in collection; keeping the first", document.id)
                continue
            seen_ids.add(document.id)
            groups.setdefault(document.campaign_name, []).append(document)

        return groups, errors

    # ------------------------------------------------------------------
    # Per-document work
    # ------------------------------------------------------------------

    def _embed(self, text: str) -> List[float]:
        return call_with_retries(
            lambda: self.embedding_service.embed(text),
            attempts=self.settings.retry_attempts,
            retry_on=(UpstreamUnavailable,),
            base_delay=self.settings.retry_base_delay_seconds,
            max_delay=self.settings.retry_max_delay_seconds,
            sleep=self._sleep,
            should_stop=self.is_cancelled,
            description="Chunk embedding",
        )

    def analyze_document(
        self,
        document: CampaignDocumentInput,
        siblings: List[CampaignDocumentInput],
        composition: CampaignComposition,
    ) -> Tuple[AnalysisRecord, List[EmbeddedChunk]]:
        """Features, outcomes, chunks and chunk embeddings for one document."""
        if self.is_cancelled():
            raise ProcessingCancelled(f"Run cancelled before document {document.id} started")

        text = normalize_text(document.text)
        features = extract_features(document, text, siblings)
        outcomes = predict_outcomes(document, text, siblings, features)
        confidence = (
            self.settings.analysis_confidence_score if text else self.settings.analysis_confidence_no_text
        )
        analysis = AnalysisRecord(
            creative_features=features,
            business_outcomes=outcomes,
            campaign_composition=composition,
            confidence_score=confidence,
            analyzed_at=utcnow(),
        )

        chunks = []
        for index, content in enumerate(chunk_text(text, self.settings.chunk_size, self.settings.chunk_overlap)):
            if self.is_cancelled():
                raise ProcessingCancelled(f"Run cancelled while embedding document {document.id}")
            chunks.append(EmbeddedChunk(chunk_index=index, content=content, embedding=self._embed(content)))

        logger.debug(
            "Analyzed %s: %s features, %s outcomes, %s chunks",
            document.filename, len(features.enabled()), len(outcomes.enabled()), len(chunks),
        )
        return analysis, chunks

    def persist_document(
        self,
        document: CampaignDocumentInput,
        analysis: AnalysisRecord,
        chunks: List[EmbeddedChunk],
    ) -> int:
        if self.is_cancelled():
            raise ProcessingCancelled(f"Run cancelled before document {document.id} was persisted")
        return call_with_retries(
            lambda: self.repository.save_document_analysis(
                document, analysis, chunks, should_abort=self.is_cancelled
            ),
            attempts=PERSIST_ATTEMPTS,
            retry_on=(PersistenceFailure,),
            base_delay=self.settings.retry_base_delay_seconds,
            max_delay=self.settings.retry_max_delay_seconds,
            sleep=self._sleep,
            should_stop=self.is_cancelled,
            description=f"Persisting {document.id}",
        )

    def _run_pool(self, jobs: List[Tuple[CampaignDocumentInput, Callable[[], Any]]]):
        """Run one callable per document; returns ({doc_id: result}, [errors])."""
        results: Dict[str, Any] = {}
        errors: List[DocumentError] = []
        if not jobs:
            return results, errors

        with ThreadPoolExecutor(max_workers=self.settings.max_concurrency) as executor:
            futures = {executor.submit(job): document for document, job in jobs}
            for future in as_completed(futures):
                document = futures[future]
                try:
                    results[document.id] = future.result()
                except CampaignRAGError as e:
                    logger.warning("Document %s (%s) failed: %s: %s", document.id, document.filename, type(e).__name__, e)
                    errors.append(_error(document.id, document.filename, e))
                except Exception as e:
                    logger.exception("Unexpected error processing document %s", document.id)
                    errors.append(_error(document.id, document.filename, e))
        return results, errors

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def process_campaign_source(self, collection_ref: str) -> ProcessingSummary:
        """
        Ingest every document of a collection.

        Returns a summary with per-document errors; documents that fail are left
        exactly as they were before the run.
        """
        self._cancel_event.clear()
        self.state = None
        run_id = uuid.uuid4()
        started_at = utcnow()
        logger.info("Starting run %s for %s", run_id, collection_ref)

        self._transition(ProcessingState.GROUPING)
        records = self.source.list_documents(collection_ref)
        groups, errors = self.group_documents(records)

        work = []
        for campaign_name, documents in groups.items():
            composition = analyze_composition(documents)
            logger.info("Campaign %s: %s documents", campaign_name, len(documents))
            for document in documents:
                work.append((document, documents, composition))

        self._transition(ProcessingState.PER_DOCUMENT_ANALYSIS)
        analyzed, analysis_errors = self._run_pool([
            (document, lambda d=document, s=siblings, c=composition: self.analyze_document(d, s, c))
            for document, siblings, composition in work
        ])
        errors.extend(analysis_errors)

        self._transition(ProcessingState.PERSISTING)
        to_persist = [document for document, _, _ in work if document.id in analyzed]
        persisted, persist_errors = self._run_pool([
            (document, lambda d=document: self.persist_document(d, *analyzed[d.id]))
            for document in to_persist
        ])
        errors.extend(persist_errors)

        final_state = ProcessingState.COMPLETED if not errors else ProcessingState.PARTIALLY_FAILED
        self._transition(final_state)

        summary = ProcessingSummary(
            run_id=run_id,
            collection_ref=collection_ref,
            state=final_state,
            processed_count=len(persisted),
            error_count=len(errors),
            per_document_errors=errors,
            started_at=started_at,
            completed_at=utcnow(),
        )
        try:
            self.repository.record_processing_run(summary)
        except PersistenceFailure as e:
            logger.error("Could not record run %s: %s", run_id, e)

        logger.info(
            "Run %s %s: %s processed, %s errors",
            run_id, final_state.value, summary.processed_count, summary.error_count,
        )
        return summary

    def query_campaign_insights(
        self,
        question: str,
        filters: Optional[QueryFilters] = None,
        limit: Optional[int] = None,
    ) -> QueryResult:
        if self.retrieval is None:
            raise InvalidConfiguration("A completion service is required to answer questions")
        return self.retrieval.query(question, filters, limit)
