"""
Tests for creative feature extraction.
"""
import pytest

from creative_rag.exceptions import InvalidConfiguration
from creative_rag.schemas import CampaignDocumentInput
from creative_rag.services.campaign_analysis.features import (
    FEATURE_RULES,
    extract_features,
    validate_feature_rules,
)
from creative_rag.services.campaign_analysis.rules import FEATURE_VOCABULARY, FEATURE_VOCABULARY_VERSION


def doc(filename, file_kind="other", doc_id=None):
    return CampaignDocumentInput(id=doc_id or filename, filename=filename, file_kind=file_kind)


def test_flags_cover_vocabulary_in_order():
    features = extract_features(doc("brief.docx", "document"), "Plain text.")
    assert list(features.flags) == list(FEATURE_VOCABULARY)
    assert features.version == FEATURE_VOCABULARY_VERSION


def test_extraction_is_deterministic():
    document = doc("brand_story_video.mp4", "video")
    text = "Our story: discover the journey. Buy now!"
    siblings = [document, doc("social_post.jpg", "image"), doc("tv_spot.mp4", "video")]

    first = extract_features(document, text, siblings)
    second = extract_features(document, text, siblings)

    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_empty_text_disables_text_only_flags():
    features = extract_features(doc("hero.jpg", "image"), "")
    assert features["messaging_action_oriented_language"] is False
    assert features["messaging_benefit_focused_headlines"] is False
    assert features["messaging_message_clarity"] is False
    assert features["targeting_lookalike_optimization"] is False


def test_none_text_is_treated_as_empty():
    features = extract_features(doc("hero.jpg", "image"), None)
    assert features["messaging_message_clarity"] is False


def test_filename_keywords_match_without_text():
    features = extract_features(doc("brand_story_cta.jpg", "image"), "")
    assert features["detected_storytelling"] is True
    assert features["detected_call_to_action"] is True
    assert features["detected_brand_integration"] is True


def test_matching_is_case_insensitive():
    features = extract_features(doc("hero.jpg", "image"), "An EMOTIONAL STORY of Passion")
    assert features["detected_storytelling"] is True
    assert features["detected_emotional_appeal"] is True


def test_video_sets_visual_hierarchy_and_motion():
    features = extract_features(doc("spot.mp4", "video"), "")
    assert features["design_visual_hierarchy"] is True
    assert features["design_motion_graphics"] is True


def test_animated_filename_sets_motion_graphics():
    features = extract_features(doc("logo_animated.gif", "image"), "")
    assert features["design_motion_graphics"] is True


class TestMessageClarity:
    """Short, simple copy reads as clear."""

    def test_short_text_is_clear(self):
        features = extract_features(doc("copy.txt", "document"), "Fresh coffee, every morning.")
        assert features["messaging_message_clarity"] is True

    def test_long_text_is_not_clear(self):
        features = extract_features(doc("copy.txt", "document"), "word " * 150)
        assert features["messaging_message_clarity"] is False

    def test_complex_text_is_not_clear(self):
        features = extract_features(doc("copy.txt", "document"), "A complex offer.")
        assert features["messaging_message_clarity"] is False


class TestSiblingPredicates:
    """Cross-channel and multi-format flags look at the whole campaign."""

    def test_cross_channel_needs_two_channels(self):
        document = doc("social_post.jpg", "image")
        one_channel = [document, doc("social_story.jpg", "image")]
        two_channels = [document, doc("tv_spot.mp4", "video")]

        assert extract_features(document, "", one_channel)["channel_cross_channel_consistency"] is False
        assert extract_features(document, "", two_channels)["channel_cross_channel_consistency"] is True

    def test_multi_format_needs_three_kinds(self):
        document = doc("a_video.mp4", "video")
        two_kinds = [document, doc("b_hero.jpg", "image")]
        three_kinds = two_kinds + [doc("c_deck.pptx", "presentation")]

        assert extract_features(document, "", two_kinds)["channel_multi_format_adaptation"] is False
        assert extract_features(document, "", three_kinds)["channel_multi_format_adaptation"] is True

    def test_no_siblings(self):
        features = extract_features(doc("a_video.mp4", "video"), "", [])
        assert features["channel_cross_channel_consistency"] is False
        assert features["channel_multi_format_adaptation"] is False


class TestValidateFeatureRules:
    """Startup validation of the rule table."""

    def test_default_table_is_valid(self):
        validate_feature_rules()

    def test_missing_rule_fails(self):
        with pytest.raises(InvalidConfiguration):
            validate_feature_rules(FEATURE_RULES[:-1])

    def test_duplicate_rule_fails(self):
        with pytest.raises(InvalidConfiguration):
            validate_feature_rules(FEATURE_RULES + [FEATURE_RULES[0]])

    def test_unknown_rule_fails(self):
        with pytest.raises(InvalidConfiguration):
            validate_feature_rules(FEATURE_RULES + [("detected_magic", lambda ctx: True)])
