from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from creative_rag.database import Base
from creative_rag.models.types import JSONType


class DocumentChunk(Base):
    """Overlapping text window of a document with its embedding vector."""
    __tablename__ = "document_chunks"
    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_document_chunks_document_index"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(
        String(255),
        ForeignKey('campaign_documents.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    chunk_id = Column(String(300), nullable=False, unique=True)  # "<document_id>_chunk_<index>"
    content = Column(Text, nullable=False)
    embedding = Column(JSONType, nullable=False)  # list of floats
    chunk_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    document = relationship("CampaignDocument", back_populates="chunks")

    def __repr__(self):
        return f"<DocumentChunk(chunk_id={self.chunk_id}, index={self.chunk_index})>"
