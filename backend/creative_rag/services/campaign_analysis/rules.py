"""
Rule vocabulary and keyword tables for campaign analysis.
Feature and outcome rule tables (features.py, outcomes.py) are checked against these
vocabularies at startup; bump the version whenever a flag or keyword list changes.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

FEATURE_VOCABULARY_VERSION = "1.0.0"

FEATURE_CATEGORIES = ("content", "design", "messaging", "targeting", "channel", "detected")
OUTCOME_CATEGORIES = ("engagement", "conversion", "brand", "efficiency", "behavioral")

FEATURE_VOCABULARY: Tuple[str, ...] = (
    "content_value_proposition_clear",
    "content_urgency_triggers",
    "content_social_proof",
    "content_narrative_construction",
    "design_visual_hierarchy",
    "design_motion_graphics",
    "design_color_psychology",
    "design_visual_distinctiveness",
    "design_mobile_optimization",
    "design_responsive_design",
    "messaging_action_oriented_language",
    "messaging_benefit_focused_headlines",
    "messaging_message_clarity",
    "messaging_emotional_connection",
    "targeting_behavioral_precision",
    "targeting_lookalike_optimization",
    "targeting_values_based_targeting",
    "targeting_lifestyle_segmentation",
    "channel_cross_channel_consistency",
    "channel_platform_optimization",
    "channel_multi_format_adaptation",
    "channel_digital_native_design",
    "detected_storytelling",
    "detected_emotional_appeal",
    "detected_call_to_action",
    "detected_brand_integration",
    "detected_social_proof",
    "detected_personalization",
    "detected_interactive",
)

OUTCOME_VOCABULARY: Tuple[str, ...] = (
    "outcome_engagement_high_engagement",
    "outcome_engagement_creative_breakthrough",
    "outcome_engagement_brand_sentiment_positive",
    "outcome_engagement_social_sharing",
    "outcome_engagement_video_completion_high",
    "outcome_conversion_direct_conversion",
    "outcome_conversion_sales_lift",
    "outcome_conversion_foot_traffic",
    "outcome_conversion_purchase_intent",
    "outcome_conversion_lead_generation",
    "outcome_conversion_consideration_lift",
    "outcome_brand_brand_recall",
    "outcome_brand_brand_equity_lift",
    "outcome_brand_top_of_mind",
    "outcome_brand_brand_differentiation",
    "outcome_brand_cultural_relevance",
    "outcome_brand_brand_authenticity",
    "outcome_brand_brand_trust",
    "outcome_efficiency_media_efficiency",
    "outcome_efficiency_roi_positive",
    "outcome_efficiency_cost_optimization",
    "outcome_behavioral_consideration_behavior",
    "outcome_behavioral_research_intent",
    "outcome_behavioral_purchase_behavior",
    "outcome_behavioral_brand_switching",
    "outcome_behavioral_advocacy_behavior",
    "business_conversion_focus",
    "business_awareness_focus",
    "business_engagement_focus",
    "business_retention_focus",
    "business_acquisition_focus",
    "business_branding_focus",
)

# Creative feature keywords
VALUE_PROPOSITION_KEYWORDS = ("benefit", "value", "advantage", "solution", "unique", "better", "best", "only")
URGENCY_KEYWORDS = ("now", "today", "limited", "hurry", "deadline", "expires", "last chance", "urgent")
SOCIAL_PROOF_KEYWORDS = ("award", "testimonial", "review", "rated", "winner", "trusted", "proven", "customers")
NARRATIVE_KEYWORDS = ("story", "journey", "experience", "adventure", "discovery", "transformation")
COLOR_KEYWORDS = ("color", "colour", "brand", "visual", "palette", "scheme")
DISTINCTIVE_KEYWORDS = ("unique", "distinctive", "standout", "bold", "creative", "innovative")
MOBILE_KEYWORDS = ("mobile", "responsive", "app", "smartphone", "ios", "android")
RESPONSIVE_KEYWORDS = ("responsive", "adaptive", "multi-format", "cross-platform")
ACTION_KEYWORDS = ("buy", "get", "try", "start", "discover", "learn", "join", "subscribe", "download")
BENEFIT_KEYWORDS = ("save", "earn", "gain", "improve", "boost", "increase", "reduce", "enhance")
CLARITY_BLOCKERS = ("complex", "complicated")
EMOTIONAL_CONNECTION_KEYWORDS = ("feel", "love", "happy", "excited", "proud", "confident", "emotional", "heart")
BEHAVIORAL_KEYWORDS = ("targeting", "audience", "behavior", "behaviour", "data", "analytics", "precision")
LOOKALIKE_KEYWORDS = ("lookalike", "similar", "audience", "modeling", "optimization")
VALUES_KEYWORDS = ("values", "purpose", "mission", "beliefs", "sustainability", "social")
LIFESTYLE_KEYWORDS = ("lifestyle", "fashion", "food", "travel", "fitness", "luxury", "premium")
CHANNEL_KEYWORDS = ("social", "digital", "tv", "print", "radio", "outdoor")
PLATFORM_KEYWORDS = ("facebook", "instagram", "youtube", "linkedin", "twitter", "tiktok", "platform")
DIGITAL_KEYWORDS = ("digital", "online", "web", "app", "interactive", "modern")
STORY_KEYWORDS = ("story", "narrative", "chapter", "journey", "tale", "episode")
EMOTIONAL_APPEAL_KEYWORDS = ("emotional", "feelings", "heart", "passion", "inspiration", "motivation")
CTA_KEYWORDS = ("cta", "call to action", "button", "click", "tap", "swipe", "action")
BRAND_KEYWORDS = ("brand", "logo", "identity", "guidelines", "assets", "trademark")
PERSONALIZATION_KEYWORDS = ("personal", "custom", "individual", "tailored", "your", "you")
INTERACTIVE_KEYWORDS = ("interactive", "engage", "click", "swipe", "touch", "experience")

MESSAGE_CLARITY_MAX_WORDS = 100
MULTI_FORMAT_MIN_KINDS = 3
CROSS_CHANNEL_MIN_CHANNELS = 2


@dataclass(frozen=True)
class RuleContext:
    """Lowercased inputs every predicate reads. Built once per document."""
    filename: str
    text: str
    file_kind: str
    sibling_filenames: Tuple[str, ...] = ()
    sibling_kinds: Tuple[str, ...] = ()
    features: Mapping[str, bool] = field(default_factory=dict)
    outcomes: Mapping[str, bool] = field(default_factory=dict)

    @property
    def sibling_count(self) -> int:
        return len(self.sibling_filenames)

    def with_features(self, features: Mapping[str, bool]) -> "RuleContext":
        return RuleContext(
            filename=self.filename,
            text=self.text,
            file_kind=self.file_kind,
            sibling_filenames=self.sibling_filenames,
            sibling_kinds=self.sibling_kinds,
            features=dict(features),
            outcomes=self.outcomes,
        )

    def with_outcomes(self, outcomes: Mapping[str, bool]) -> "RuleContext":
        return RuleContext(
            filename=self.filename,
            text=self.text,
            file_kind=self.file_kind,
            sibling_filenames=self.sibling_filenames,
            sibling_kinds=self.sibling_kinds,
            features=self.features,
            outcomes=dict(outcomes),
        )


def normalize_text(text: Optional[str]) -> str:
    """Trim, collapse whitespace, strip non-printable."""
    if not text:
        return ""
    s = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", (text or "").strip())
    return " ".join(re.split(r"\s+", s)).strip()


def build_context(filename: str, text: Optional[str], file_kind: str, siblings: Iterable = ()) -> RuleContext:
    """Build a RuleContext from a document-like object's fields and its campaign siblings."""
    sibling_list = list(siblings or [])
    return RuleContext(
        filename=(filename or "").lower(),
        text=normalize_text(text).lower(),
        file_kind=file_kind or "other",
        sibling_filenames=tuple((getattr(s, "filename", "") or "").lower() for s in sibling_list),
        sibling_kinds=tuple(getattr(s, "file_kind", "other") or "other" for s in sibling_list),
    )


def text_has(ctx: RuleContext, keywords: Sequence[str]) -> bool:
    """Any keyword in the text. Empty text never matches."""
    if not ctx.text:
        return False
    return any(k in ctx.text for k in keywords)


def text_or_name_has(ctx: RuleContext, keywords: Sequence[str]) -> bool:
    """Any keyword in the text or the filename."""
    return text_has(ctx, keywords) or any(k in ctx.filename for k in keywords)


def word_count(text: str) -> int:
    return len(text.split()) if text else 0


def distinct_channels(filenames: Iterable[str]) -> Tuple[str, ...]:
    """Channel keywords seen across a campaign's filenames, in CHANNEL_KEYWORDS order."""
    names = list(filenames)
    return tuple(c for c in CHANNEL_KEYWORDS if any(c in n for n in names))


def flags_by_name(names: Sequence[str], values: Dict[str, bool]) -> Dict[str, bool]:
    """Order a flag dict by vocabulary order so serialized sets are byte-identical."""
    return {name: bool(values[name]) for name in names}
