from creative_rag.models.campaign_document import CampaignDocument
from creative_rag.models.campaign_analysis import CampaignAnalysis
from creative_rag.models.document_chunk import DocumentChunk
from creative_rag.models.processing_run import ProcessingRun

__all__ = [
    "CampaignDocument",
    "CampaignAnalysis",
    "DocumentChunk",
    "ProcessingRun",
]
