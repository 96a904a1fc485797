from sqlalchemy import Column, String, DateTime, Text, BigInteger
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from creative_rag.database import Base


class CampaignDocument(Base):
    """One campaign asset (video, image, deck, doc) keyed by its source id."""
    __tablename__ = "campaign_documents"

    id = Column(String(255), primary_key=True)  # stable id from the document source
    filename = Column(String(512), nullable=False)
    mime_type = Column(String(255), nullable=True)
    size = Column(BigInteger, nullable=True)
    created_time = Column(DateTime(timezone=True), nullable=True)
    modified_time = Column(DateTime(timezone=True), nullable=True)
    path = Column(Text, nullable=True)
    campaign_name = Column(String(255), nullable=False, index=True)
    client_name = Column(String(255), nullable=True, index=True)
    file_kind = Column(String(20), nullable=False)  # video | image | presentation | document | other
    first_seen_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    analyses = relationship(
        "CampaignAnalysis",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    chunks = relationship(
        "DocumentChunk",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DocumentChunk.chunk_index",
    )

    def __repr__(self):
        return f"<CampaignDocument(id={self.id}, filename={self.filename}, campaign={self.campaign_name})>"
