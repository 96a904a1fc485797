"""
Tests for file-kind classification and campaign/client key derivation.
"""
import pytest

from creative_rag.services.campaign_analysis.classification import (
    UNKNOWN_CAMPAIGN,
    classify_file_kind,
    derive_campaign_name,
    derive_client_name,
    filename_prefix,
)


class TestClassifyFileKind:
    """Tests for classify_file_kind."""

    @pytest.mark.parametrize("filename,mime_type,expected", [
        ("spot.mp4", "video/mp4", "video"),
        ("spot.MOV", "", "video"),
        ("hero.jpg", "image/jpeg", "image"),
        ("key_visual.png", None, "image"),
        ("deck.pptx", "application/vnd.openxmlformats-officedocument.presentationml.presentation", "presentation"),
        ("brief.docx", "", "document"),
        ("brief.pdf", "application/pdf", "document"),
        ("notes.txt", "text/plain", "document"),
        ("archive.zip", "application/zip", "other"),
        ("README", "", "other"),
    ])
    def test_classifies_by_mime_then_extension(self, filename, mime_type, expected):
        assert classify_file_kind(filename, mime_type) == expected

    def test_mime_type_wins_over_extension(self):
        """A video mime type classifies as video regardless of extension."""
        assert classify_file_kind("clip.bin", "video/quicktime") == "video"


class TestCampaignKey:
    """Tests for campaign and client derivation."""

    def test_last_folder_segment_is_campaign(self):
        assert derive_campaign_name("acme/brand_launch", "hero.jpg") == "brand_launch"

    def test_trailing_filename_in_path_is_ignored(self):
        assert derive_campaign_name("acme/brand_launch/hero.jpg", "hero.jpg") == "brand_launch"

    def test_windows_separators(self):
        assert derive_campaign_name("acme\\summer_sale", "banner.png") == "summer_sale"

    def test_falls_back_to_filename_prefix(self):
        """No folder segment: stem minus its final '_' token."""
        assert derive_campaign_name("", "brand_launch_video1.mp4") == "brand_launch"
        assert derive_campaign_name(None, "brand_launch_hero.jpg") == "brand_launch"
        assert derive_campaign_name("/", "brand_launch_deck.pptx") == "brand_launch"

    def test_filename_prefix_single_token(self):
        assert filename_prefix("manifesto.pdf") == "manifesto"

    def test_filename_prefix_empty(self):
        assert filename_prefix("") == UNKNOWN_CAMPAIGN

    def test_client_is_folder_above_campaign(self):
        assert derive_client_name("clients/acme/brand_launch", "hero.jpg") == "acme"

    def test_no_client_without_parent_folder(self):
        assert derive_client_name("brand_launch", "hero.jpg") is None
        assert derive_client_name("", "brand_launch_hero.jpg") is None
