"""
Tests for in-memory and local-folder document sources.
"""
import pytest

from creative_rag.exceptions import InvalidInput
from creative_rag.services.document_source import InMemoryDocumentSource, LocalFolderDocumentSource


def test_in_memory_source_returns_copies():
    source = InMemoryDocumentSource({"drive": [{"id": "1", "filename": "a.mp4"}]})
    records = source.list_documents("drive")
    records[0]["filename"] = "changed"

    assert source.list_documents("drive")[0]["filename"] == "a.mp4"
    assert source.list_documents("missing") == []


def test_in_memory_source_add():
    source = InMemoryDocumentSource()
    source.add("drive", {"id": "1", "filename": "a.mp4"})
    assert [r["id"] for r in source.list_documents("drive")] == ["1"]


class TestLocalFolderDocumentSource:
    """Tests for LocalFolderDocumentSource."""

    @pytest.fixture
    def campaign_folder(self, tmp_path):
        campaign = tmp_path / "acme" / "brand_launch"
        campaign.mkdir(parents=True)
        (campaign / "script.txt").write_text("Our launch story.", encoding="utf-8")
        (campaign / "brand_launch_video1.mp4").write_bytes(b"\x00\x01")
        (campaign / ".DS_Store").write_bytes(b"")
        (tmp_path / "loose_notes.md").write_text("# Notes", encoding="utf-8")
        return tmp_path

    def test_lists_files_with_relative_paths(self, campaign_folder):
        records = LocalFolderDocumentSource().list_documents(str(campaign_folder))
        by_name = {r["filename"]: r for r in records}

        assert set(by_name) == {"script.txt", "brand_launch_video1.mp4", "loose_notes.md"}
        assert by_name["script.txt"]["path"] == "acme/brand_launch"
        assert by_name["script.txt"]["id"] == "acme/brand_launch/script.txt"
        assert by_name["loose_notes.md"]["path"] == ""

    def test_reads_text_only_from_text_files(self, campaign_folder):
        records = LocalFolderDocumentSource().list_documents(str(campaign_folder))
        by_name = {r["filename"]: r for r in records}

        assert by_name["script.txt"]["text"] == "Our launch story."
        assert by_name["brand_launch_video1.mp4"]["text"] == ""
        assert by_name["brand_launch_video1.mp4"]["mime_type"] == "video/mp4"
        assert by_name["brand_launch_video1.mp4"]["size"] == 2

    def test_text_reading_can_be_disabled(self, campaign_folder):
        records = LocalFolderDocumentSource(read_text=False).list_documents(str(campaign_folder))
        assert all(r["text"] == "" for r in records)

    def test_oversized_text_is_skipped(self, campaign_folder):
        records = LocalFolderDocumentSource(max_text_bytes=5).list_documents(str(campaign_folder))
        by_name = {r["filename"]: r for r in records}
        assert by_name["script.txt"]["text"] == ""

    def test_missing_folder_is_invalid_input(self, tmp_path):
        with pytest.raises(InvalidInput):
            LocalFolderDocumentSource().list_documents(str(tmp_path / "nope"))
