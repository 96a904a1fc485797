from sqlalchemy import Column, String, DateTime, Float, ForeignKey, Integer
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from creative_rag.database import Base
from creative_rag.models.types import JSONType


class CampaignAnalysis(Base):
    """Feature/outcome/composition flags for one processing pass of a document. Latest row wins."""
    __tablename__ = "campaign_analysis"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(
        String(255),
        ForeignKey('campaign_documents.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )
    creative_features = Column(JSONType, nullable=False)
    business_outcomes = Column(JSONType, nullable=False)
    campaign_composition = Column(JSONType, nullable=False)
    confidence_score = Column(Float, nullable=False)
    vocabulary_version = Column(String(20), nullable=False)
    analyzed_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    document = relationship("CampaignDocument", back_populates="analyses")

    def __repr__(self):
        return f"<CampaignAnalysis(id={self.id}, document_id={self.document_id})>"
