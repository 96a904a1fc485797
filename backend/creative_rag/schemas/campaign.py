"""
Campaign document, feature, outcome and composition schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Literal
from datetime import datetime


FileKind = Literal["video", "image", "presentation", "document", "other"]


class CampaignDocumentInput(BaseModel):
    """Raw asset metadata from a document source plus best-effort extracted text."""
    class Config:
        populate_by_name = True
        extra = "ignore"

    id: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    mime_type: str = Field(default="", alias="mimeType")
    size: int = Field(default=0, ge=0)
    created_time: Optional[datetime] = Field(default=None, alias="createdTime")
    modified_time: Optional[datetime] = Field(default=None, alias="modifiedTime")
    path: str = ""
    text: str = ""  # extracted text; absent text is treated as empty
    campaign_name: Optional[str] = Field(default=None, alias="campaignName")
    client_name: Optional[str] = Field(default=None, alias="clientName")
    file_kind: FileKind = Field(default="other", alias="fileType")

    @field_validator("mime_type", "path", "text", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("size", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        return 0 if value is None else value

    @field_validator("id", "filename")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CreativeFeatureSet(BaseModel):
    """Boolean creative-feature flags from a fixed, versioned vocabulary."""
    version: str
    flags: Dict[str, bool]

    def by_category(self) -> Dict[str, Dict[str, bool]]:
        grouped: Dict[str, Dict[str, bool]] = {}
        for name, value in self.flags.items():
            category = name.split("_", 1)[0]
            grouped.setdefault(category, {})[name] = value
        return grouped

    def enabled(self) -> List[str]:
        return [name for name, value in self.flags.items() if value]

    def __getitem__(self, name: str) -> bool:
        return self.flags[name]


class BusinessOutcomeSet(BaseModel):
    """Boolean outcome predictions; scores hold the raw totals of weighted outcomes."""
    version: str
    flags: Dict[str, bool]
    scores: Dict[str, int] = Field(default_factory=dict)

    def by_category(self) -> Dict[str, Dict[str, bool]]:
        grouped: Dict[str, Dict[str, bool]] = {}
        for name, value in self.flags.items():
            if name.startswith("business_"):
                category = "business_focus"
            else:
                category = name.split("_")[1]
            grouped.setdefault(category, {})[name] = value
        return grouped

    def enabled(self) -> List[str]:
        return [name for name, value in self.flags.items() if value]

    def __getitem__(self, name: str) -> bool:
        return self.flags[name]


class CampaignComposition(BaseModel):
    """File-kind counts for one campaign and the threshold flags derived from them."""
    total_video_count: int = 0
    total_image_count: int = 0
    total_presentation_count: int = 0
    total_file_count: int = 0
    video_heavy_campaign: bool = False
    image_rich_campaign: bool = False
    strategic_campaign: bool = False
    comprehensive_execution: bool = False


class AnalysisRecord(BaseModel):
    """Everything persisted to campaign_analysis for one document pass."""
    creative_features: CreativeFeatureSet
    business_outcomes: BusinessOutcomeSet
    campaign_composition: CampaignComposition
    confidence_score: float = Field(..., ge=0, le=1)
    analyzed_at: datetime


class EmbeddedChunk(BaseModel):
    chunk_index: int = Field(..., ge=0)
    content: str
    embedding: List[float]
