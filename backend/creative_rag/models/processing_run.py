from sqlalchemy import Column, String, DateTime, Text, Integer, Uuid
from sqlalchemy.sql import func
import uuid
from creative_rag.database import Base
from creative_rag.models.types import JSONType


class ProcessingRun(Base):
    """Summary of one ingestion run. Status: completed, partially_failed."""
    __tablename__ = "processing_runs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    collection_ref = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)
    processed_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    errors_json = Column(JSONType, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ProcessingRun(id={self.id}, status={self.status})>"
