"""
Document sources: where raw campaign asset records come from.
"""
import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from creative_rag.exceptions import InvalidInput

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md", ".csv", ".json", ".html", ".htm", ".srt", ".vtt"}
MAX_TEXT_BYTES = 2 * 1024 * 1024


class DocumentSource(Protocol):
    def list_documents(self, collection_ref: str) -> List[Dict[str, Any]]:
        """Raw metadata records (id, filename, mime_type, size, times, path, optional text)."""
        ...


class InMemoryDocumentSource:
    """Records held in memory, keyed by collection ref."""

    def __init__(self, collections: Optional[Dict[str, Iterable[Dict[str, Any]]]] = None):
        self.collections: Dict[str, List[Dict[str, Any]]] = {
            ref: list(records) for ref, records in (collections or {}).items()
        }

    def add(self, collection_ref: str, record: Dict[str, Any]) -> None:
        self.collections.setdefault(collection_ref, []).append(record)

    def list_documents(self, collection_ref: str) -> List[Dict[str, Any]]:
        return [dict(record) for record in self.collections.get(collection_ref, [])]


class LocalFolderDocumentSource:
    """
    Walks a local folder. The collection ref is the folder path; each file's path is
    its folder relative to that root, so client/campaign/file.mp4 yields
    campaign "campaign" and client "client".
    """

    def __init__(self, read_text: bool = True, max_text_bytes: int = MAX_TEXT_BYTES):
        self.read_text = read_text
        self.max_text_bytes = max_text_bytes

    def _text(self, file_path: Path, size: int) -> str:
        if not self.read_text or file_path.suffix.lower() not in TEXT_SUFFIXES:
            return ""
        if size > self.max_text_bytes:
            logger.info("Skipping text of %s: %s bytes exceeds %s", file_path, size, self.max_text_bytes)
            return ""
        try:
            return file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Could not read text from %s: %s", file_path, e)
            return ""

    def list_documents(self, collection_ref: str) -> List[Dict[str, Any]]:
        root = Path(collection_ref).expanduser()
        if not root.is_dir():
            raise InvalidInput(f"Not a folder: {collection_ref}")

        records = []
        for file_path in sorted(root.rglob("*")):
            if not file_path.is_file() or file_path.name.startswith("."):
                continue
            relative = file_path.relative_to(root)
            stat = file_path.stat()
            mime_type, _ = mimetypes.guess_type(file_path.name)
            records.append({
                "id": relative.as_posix(),
                "filename": file_path.name,
                "mime_type": mime_type or "",
                "size": stat.st_size,
                "created_time": datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc),
                "modified_time": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                "path": relative.parent.as_posix() if relative.parent != Path(".") else "",
                "text": self._text(file_path, stat.st_size),
            })

        logger.info("Found %s files under %s", len(records), root)
        return records
