"""
Transactional storage of documents, analyses, chunks and run summaries,
plus cosine-similarity search over stored chunk embeddings.
"""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

import numpy as np
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from creative_rag.exceptions import InvalidInput, PersistenceFailure, ProcessingCancelled
from creative_rag.models import CampaignAnalysis, CampaignDocument, DocumentChunk, ProcessingRun
from creative_rag.schemas import (
    AnalysisRecord,
    AnalysisSummary,
    CampaignDocumentInput,
    DocumentError,
    EmbeddedChunk,
    ProcessingState,
    ProcessingSummary,
    QueryFilters,
    SimilarChunk,
)
from creative_rag.utils import utcnow

logger = logging.getLogger(__name__)


def make_chunk_id(document_id: str, chunk_index: int) -> str:
    return f"{document_id}_chunk_{chunk_index}"


def cosine_similarities(query_vector: Sequence[float], embeddings: Sequence[Sequence[float]]) -> np.ndarray:
    """Cosine of query_vector against each row of embeddings; 0.0 for zero-length vectors."""
    query = np.asarray(query_vector, dtype=float)
    matrix = np.asarray(embeddings, dtype=float).reshape(-1, query.shape[0])
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)


def _timestamp(value) -> float:
    return value.timestamp() if value is not None else 0.0


def _matches_flags(filters: QueryFilters, analysis: Optional[CampaignAnalysis]) -> bool:
    """Flag filters match only documents whose latest analysis has the flag set."""
    if not filters.creative_feature and not filters.business_outcome:
        return True
    if analysis is None:
        return False
    if filters.creative_feature and not (analysis.creative_features or {}).get(filters.creative_feature):
        return False
    if filters.business_outcome and not (analysis.business_outcomes or {}).get(filters.business_outcome):
        return False
    return True


class CampaignRepository:
    """
    All database access for the engine. Every public method opens its own session,
    so one repository can be shared by worker threads.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_document_analysis(
        self,
        document: CampaignDocumentInput,
        analysis: AnalysisRecord,
        chunks: Iterable[EmbeddedChunk],
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> int:
        """
        Upsert the document, append its analysis and replace its chunks in one transaction.

        Returns:
            Number of chunk rows written

        Raises:
            ProcessingCancelled: should_abort() turned true before commit; nothing is written
            PersistenceFailure: Any database error; nothing is written
        """
        if not document.campaign_name:
            raise InvalidInput(f"Document {document.id} has no campaign name")

        chunk_list = list(chunks)
        session: Session = self.session_factory()
        try:
            now = utcnow()
            row = session.get(CampaignDocument, document.id)
            if row is None:
                row = CampaignDocument(id=document.id)
                session.add(row)
            row.filename = document.filename
            row.mime_type = document.mime_type
            row.size = document.size
            row.created_time = document.created_time
            row.modified_time = document.modified_time
            row.path = document.path
            row.campaign_name = document.campaign_name
            row.client_name = document.client_name
            row.file_kind = document.file_kind
            row.processed_at = now
            session.flush()

            session.add(CampaignAnalysis(
                document_id=document.id,
                creative_features=dict(analysis.creative_features.flags),
                business_outcomes=dict(analysis.business_outcomes.flags),
                campaign_composition=analysis.campaign_composition.model_dump(),
                confidence_score=analysis.confidence_score,
                vocabulary_version=analysis.creative_features.version,
                analyzed_at=analysis.analyzed_at,
            ))

            # Supersede the previous chunk set
            session.query(DocumentChunk).filter(
                DocumentChunk.document_id == document.id
            ).delete(synchronize_session=False)

            for chunk in chunk_list:
                session.add(DocumentChunk(
                    document_id=document.id,
                    chunk_id=make_chunk_id(document.id, chunk.chunk_index),
                    content=chunk.content,
                    embedding=list(chunk.embedding),
                    chunk_index=chunk.chunk_index,
                    created_at=now,
                ))
            session.flush()

            if should_abort is not None and should_abort():
                session.rollback()
                raise ProcessingCancelled(f"Cancelled before commit of document {document.id}")

            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Rolled back document %s: %s", document.id, e)
            raise PersistenceFailure(f"Could not persist document {document.id}: {e}") from e
        finally:
            session.close()

        logger.debug("Persisted document %s with %s chunks", document.id, len(chunk_list))
        return len(chunk_list)

    def delete_document(self, document_id: str) -> bool:
        """Delete a document; its analyses and chunks go with it. False if it did not exist."""
        session: Session = self.session_factory()
        try:
            row = session.get(CampaignDocument, document_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceFailure(f"Could not delete document {document_id}: {e}") from e
        finally:
            session.close()

    def record_processing_run(self, summary: ProcessingSummary) -> None:
        session: Session = self.session_factory()
        try:
            session.add(ProcessingRun(
                id=summary.run_id,
                collection_ref=summary.collection_ref,
                status=summary.state.value,
                processed_count=summary.processed_count,
                error_count=summary.error_count,
                errors_json=[e.model_dump() for e in summary.per_document_errors],
                started_at=summary.started_at,
                completed_at=summary.completed_at or utcnow(),
            ))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceFailure(f"Could not record processing run {summary.run_id}: {e}") from e
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_processing_run(self, run_id: UUID) -> Optional[ProcessingSummary]:
        session: Session = self.session_factory()
        try:
            row = session.get(ProcessingRun, run_id)
            if row is None:
                return None
            return ProcessingSummary(
                run_id=row.id,
                collection_ref=row.collection_ref,
                state=ProcessingState(row.status),
                processed_count=row.processed_count,
                error_count=row.error_count,
                per_document_errors=[DocumentError(**e) for e in (row.errors_json or [])],
                started_at=row.started_at,
                completed_at=row.completed_at,
            )
        finally:
            session.close()

    def _latest_analyses(self, session: Session, document_ids: Iterable[str]) -> Dict[str, CampaignAnalysis]:
        """Latest analysis row per document (highest id)."""
        ids = list(set(document_ids))
        if not ids:
            return {}
        latest_ids = (
            select(func.max(CampaignAnalysis.id))
            .where(CampaignAnalysis.document_id.in_(ids))
            .group_by(CampaignAnalysis.document_id)
        )
        rows = session.query(CampaignAnalysis).filter(CampaignAnalysis.id.in_(latest_ids)).all()
        return {row.document_id: row for row in rows}

    def _filtered_documents_query(self, session: Session, filters: QueryFilters):
        query = session.query(CampaignDocument)
        if filters.campaign:
            query = query.filter(CampaignDocument.campaign_name == filters.campaign)
        if filters.client:
            query = query.filter(CampaignDocument.client_name == filters.client)
        return query

    def find_similar_chunks(
        self,
        query_vector: Sequence[float],
        filters: Optional[QueryFilters] = None,
        limit: int = 5,
    ) -> List[SimilarChunk]:
        """
        Top `limit` chunks by cosine similarity to query_vector.
        Ties go to the most recently written chunk, then the lower chunk index.
        """
        if not query_vector:
            raise InvalidInput("Query vector must not be empty")
        if limit <= 0:
            raise InvalidInput(f"limit must be positive, got {limit}")
        filters = filters or QueryFilters()

        session: Session = self.session_factory()
        try:
            query = (
                session.query(DocumentChunk, CampaignDocument)
                .join(CampaignDocument, DocumentChunk.document_id == CampaignDocument.id)
            )
            if filters.campaign:
                query = query.filter(CampaignDocument.campaign_name == filters.campaign)
            if filters.client:
                query = query.filter(CampaignDocument.client_name == filters.client)
            rows: List[Tuple[DocumentChunk, CampaignDocument]] = query.all()

            latest = self._latest_analyses(session, (doc.id for _, doc in rows))

            candidates = []
            for chunk, doc in rows:
                analysis = latest.get(doc.id)
                if not _matches_flags(filters, analysis):
                    continue
                embedding = chunk.embedding or []
                if len(embedding) != len(query_vector):
                    logger.warning(
                        "Skipping chunk %s: embedding has %s dimensions, query has %s",
                        chunk.chunk_id, len(embedding), len(query_vector),
                    )
                    continue
                candidates.append((chunk, doc, analysis))
            if not candidates:
                return []

            similarities = cosine_similarities(query_vector, [chunk.embedding for chunk, _, _ in candidates])
            scored = [
                (float(similarity), chunk, doc, analysis)
                for similarity, (chunk, doc, analysis) in zip(similarities, candidates)
            ]
            scored.sort(key=lambda item: (-item[0], -_timestamp(item[1].created_at), item[1].chunk_index))

            results = []
            for similarity, chunk, doc, analysis in scored[:limit]:
                results.append(SimilarChunk(
                    chunk_id=chunk.chunk_id,
                    document_id=doc.id,
                    chunk_index=chunk.chunk_index,
                    content=chunk.content,
                    similarity=similarity,
                    filename=doc.filename,
                    campaign_name=doc.campaign_name,
                    client_name=doc.client_name,
                    file_kind=doc.file_kind,
                    created_at=chunk.created_at,
                    creative_features=dict(analysis.creative_features) if analysis else {},
                    business_outcomes=dict(analysis.business_outcomes) if analysis else {},
                ))
            return results
        finally:
            session.close()

    def get_campaign_analysis(self, filters: Optional[QueryFilters] = None) -> List[AnalysisSummary]:
        """Latest analysis of every document matching the filters, by campaign then filename."""
        filters = filters or QueryFilters()
        session: Session = self.session_factory()
        try:
            documents = (
                self._filtered_documents_query(session, filters)
                .order_by(CampaignDocument.campaign_name, CampaignDocument.filename)
                .all()
            )
            latest = self._latest_analyses(session, (doc.id for doc in documents))

            summaries = []
            for doc in documents:
                analysis = latest.get(doc.id)
                if analysis is None or not _matches_flags(filters, analysis):
                    continue
                summaries.append(AnalysisSummary(
                    document_id=doc.id,
                    filename=doc.filename,
                    campaign_name=doc.campaign_name,
                    client_name=doc.client_name,
                    file_kind=doc.file_kind,
                    creative_features=dict(analysis.creative_features or {}),
                    business_outcomes=dict(analysis.business_outcomes or {}),
                    campaign_composition=dict(analysis.campaign_composition or {}),
                    confidence_score=analysis.confidence_score,
                    analyzed_at=analysis.analyzed_at,
                ))
            return summaries
        finally:
            session.close()
