"""
Processing run state and summaries.
"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class ProcessingState(str, Enum):
    GROUPING = "grouping"
    PER_DOCUMENT_ANALYSIS = "per_document_analysis"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"


class DocumentError(BaseModel):
    """Why one document did not make it into the store."""
    document_id: Optional[str] = None
    filename: Optional[str] = None
    error_type: str  # InvalidInput, UpstreamUnavailable, PersistenceFailure, ProcessingCancelled, ...
    message: str


class ProcessingSummary(BaseModel):
    run_id: UUID
    collection_ref: Optional[str] = None
    state: ProcessingState
    processed_count: int = 0
    error_count: int = 0
    per_document_errors: List[DocumentError] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
