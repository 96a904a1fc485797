"""
Campaign composition: file-kind counts over a campaign's documents.
"""
from typing import Any, Iterable

from creative_rag.schemas import CampaignComposition

VIDEO_HEAVY_MIN_VIDEOS = 3
IMAGE_RICH_MIN_IMAGES = 10
STRATEGIC_MIN_PRESENTATIONS = 1
COMPREHENSIVE_MIN_FILES = 20


def analyze_composition(documents: Iterable[Any]) -> CampaignComposition:
    """Count kinds over unique document ids; same set in any order gives the same result."""
    kinds_by_id = {}
    for doc in documents:
        kinds_by_id[str(doc.id)] = doc.file_kind or "other"
    kinds = list(kinds_by_id.values())

    video_count = kinds.count("video")
    image_count = kinds.count("image")
    presentation_count = kinds.count("presentation")
    total_count = len(kinds)

    return CampaignComposition(
        total_video_count=video_count,
        total_image_count=image_count,
        total_presentation_count=presentation_count,
        total_file_count=total_count,
        video_heavy_campaign=video_count >= VIDEO_HEAVY_MIN_VIDEOS,
        image_rich_campaign=image_count >= IMAGE_RICH_MIN_IMAGES,
        strategic_campaign=presentation_count >= STRATEGIC_MIN_PRESENTATIONS,
        comprehensive_execution=total_count >= COMPREHENSIVE_MIN_FILES,
    )
