"""
Pydantic schemas organized by domain.
"""

from .campaign import (
    FileKind,
    CampaignDocumentInput,
    CreativeFeatureSet,
    BusinessOutcomeSet,
    CampaignComposition,
    AnalysisRecord,
    EmbeddedChunk,
)

from .retrieval import (
    QueryFilters,
    SimilarChunk,
    AnalysisSummary,
    QueryResult,
)

from .processing import (
    ProcessingState,
    DocumentError,
    ProcessingSummary,
)

__all__ = [
    "FileKind",
    "CampaignDocumentInput",
    "CreativeFeatureSet",
    "BusinessOutcomeSet",
    "CampaignComposition",
    "AnalysisRecord",
    "EmbeddedChunk",
    "QueryFilters",
    "SimilarChunk",
    "AnalysisSummary",
    "QueryResult",
    "ProcessingState",
    "DocumentError",
    "ProcessingSummary",
]
