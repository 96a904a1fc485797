"""
Query filters and retrieval results.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class QueryFilters(BaseModel):
    """Equality filters on campaign/client; flag filters match the latest analysis."""
    campaign: Optional[str] = None
    client: Optional[str] = None
    creative_feature: Optional[str] = None  # e.g. "detected_storytelling"
    business_outcome: Optional[str] = None  # e.g. "outcome_engagement_high_engagement"


class SimilarChunk(BaseModel):
    """A retrieved chunk with parent-document metadata, for attribution."""
    chunk_id: str
    document_id: str
    chunk_index: int
    content: str
    similarity: float
    filename: str
    campaign_name: str
    client_name: Optional[str] = None
    file_kind: str
    created_at: Optional[datetime] = None
    creative_features: Dict[str, bool] = Field(default_factory=dict)
    business_outcomes: Dict[str, bool] = Field(default_factory=dict)


class AnalysisSummary(BaseModel):
    """Latest analysis for one document."""
    document_id: str
    filename: str
    campaign_name: str
    client_name: Optional[str] = None
    file_kind: str
    creative_features: Dict[str, bool] = Field(default_factory=dict)
    business_outcomes: Dict[str, bool] = Field(default_factory=dict)
    campaign_composition: Dict[str, Any] = Field(default_factory=dict)
    confidence_score: float
    analyzed_at: Optional[datetime] = None


class QueryResult(BaseModel):
    answer: str
    sources: List[SimilarChunk] = Field(default_factory=list)
    analysis: List[AnalysisSummary] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
