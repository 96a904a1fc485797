"""
File-kind classification and campaign/client key derivation for raw documents.
"""
import logging
import re
from pathlib import PurePosixPath
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

UNKNOWN_CAMPAIGN = "unknown_campaign"

# Checked in order: first match wins
FILE_KIND_RULES: List[Tuple[str, Tuple[str, ...], Tuple[str, ...]]] = [
    ("video", ("video",), (".mp4", ".mov", ".avi", ".m4v", ".webm", ".mkv")),
    ("image", ("image",), (".jpg", ".jpeg", ".png", ".gif", ".webp", ".tif", ".tiff", ".psd", ".ai", ".svg")),
    ("presentation", ("presentation",), (".ppt", ".pptx", ".key", ".odp")),
    ("document", ("document", "pdf", "msword", "text/"), (".doc", ".docx", ".pdf", ".txt", ".md", ".rtf", ".odt")),
]


def classify_file_kind(filename: str, mime_type: Optional[str]) -> str:
    """Return video | image | presentation | document | other from mime type, then extension."""
    name = (filename or "").lower()
    mime = (mime_type or "").lower()
    suffix = PurePosixPath(name).suffix
    for kind, mime_markers, extensions in FILE_KIND_RULES:
        if any(marker in mime for marker in mime_markers):
            return kind
        if suffix in extensions:
            return kind
    return "other"


def _path_segments(path: Optional[str], filename: str) -> List[str]:
    parts = [p.strip() for p in re.split(r"[\\/]+", path or "") if p.strip()]
    # Some sources put the filename at the end of the path
    if parts and parts[-1] == filename:
        parts = parts[:-1]
    return parts


def filename_prefix(filename: str) -> str:
    """Campaign prefix from a filename: stem minus its final '_' token (brand_launch_video1.mp4 -> brand_launch)."""
    stem = PurePosixPath(filename or "").stem.strip().lower()
    if not stem:
        return UNKNOWN_CAMPAIGN
    tokens = [t for t in stem.split("_") if t]
    if len(tokens) > 1:
        return "_".join(tokens[:-1])
    return tokens[0] if tokens else UNKNOWN_CAMPAIGN


def derive_campaign_name(path: Optional[str], filename: str) -> str:
    """
    Campaign key: the folder holding the document.
    Falls back to the filename prefix when the path has no folder segment.
    """
    segments = _path_segments(path, filename)
    if segments:
        return segments[-1]
    prefix = filename_prefix(filename)
    logger.debug("No folder segment in path %r for %s; using filename prefix %r", path, filename, prefix)
    return prefix


def derive_client_name(path: Optional[str], filename: str) -> Optional[str]:
    """Client key: the folder above the campaign folder, if any."""
    segments = _path_segments(path, filename)
    if len(segments) >= 2:
        return segments[-2]
    return None
