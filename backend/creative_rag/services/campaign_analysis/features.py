"""
Creative feature extraction: one predicate per flag, evaluated in vocabulary order.
Pure and deterministic in (filename, text, siblings); siblings are all documents of the
campaign, the document itself included.
"""
from typing import Callable, Iterable, List, Optional, Tuple

from creative_rag.exceptions import InvalidConfiguration
from creative_rag.schemas import CreativeFeatureSet
from creative_rag.services.campaign_analysis.rules import (
    FEATURE_CATEGORIES,
    FEATURE_VOCABULARY,
    FEATURE_VOCABULARY_VERSION,
    VALUE_PROPOSITION_KEYWORDS,
    URGENCY_KEYWORDS,
    SOCIAL_PROOF_KEYWORDS,
    NARRATIVE_KEYWORDS,
    COLOR_KEYWORDS,
    DISTINCTIVE_KEYWORDS,
    MOBILE_KEYWORDS,
    RESPONSIVE_KEYWORDS,
    ACTION_KEYWORDS,
    BENEFIT_KEYWORDS,
    CLARITY_BLOCKERS,
    EMOTIONAL_CONNECTION_KEYWORDS,
    BEHAVIORAL_KEYWORDS,
    LOOKALIKE_KEYWORDS,
    VALUES_KEYWORDS,
    LIFESTYLE_KEYWORDS,
    PLATFORM_KEYWORDS,
    DIGITAL_KEYWORDS,
    STORY_KEYWORDS,
    EMOTIONAL_APPEAL_KEYWORDS,
    CTA_KEYWORDS,
    BRAND_KEYWORDS,
    PERSONALIZATION_KEYWORDS,
    INTERACTIVE_KEYWORDS,
    MESSAGE_CLARITY_MAX_WORDS,
    MULTI_FORMAT_MIN_KINDS,
    CROSS_CHANNEL_MIN_CHANNELS,
    RuleContext,
    build_context,
    distinct_channels,
    flags_by_name,
    text_has,
    text_or_name_has,
    word_count,
)

FeaturePredicate = Callable[[RuleContext], bool]


def _keywords(keywords) -> FeaturePredicate:
    return lambda ctx: text_or_name_has(ctx, keywords)


def _text_keywords(keywords) -> FeaturePredicate:
    return lambda ctx: text_has(ctx, keywords)


def _visual_hierarchy(ctx: RuleContext) -> bool:
    return ctx.file_kind == "video" or text_has(ctx, ("video", "visual"))


def _motion_graphics(ctx: RuleContext) -> bool:
    return ctx.file_kind == "video" or "motion" in ctx.filename or "animated" in ctx.filename


def _message_clarity(ctx: RuleContext) -> bool:
    if not ctx.text:
        return False
    return word_count(ctx.text) < MESSAGE_CLARITY_MAX_WORDS and not text_has(ctx, CLARITY_BLOCKERS)


def _cross_channel_consistency(ctx: RuleContext) -> bool:
    return len(distinct_channels(ctx.sibling_filenames)) >= CROSS_CHANNEL_MIN_CHANNELS


def _multi_format_adaptation(ctx: RuleContext) -> bool:
    return len(set(ctx.sibling_kinds)) >= MULTI_FORMAT_MIN_KINDS


FEATURE_RULES: List[Tuple[str, FeaturePredicate]] = [
    ("content_value_proposition_clear", _keywords(VALUE_PROPOSITION_KEYWORDS)),
    ("content_urgency_triggers", _keywords(URGENCY_KEYWORDS)),
    ("content_social_proof", _keywords(SOCIAL_PROOF_KEYWORDS)),
    ("content_narrative_construction", _keywords(NARRATIVE_KEYWORDS)),
    ("design_visual_hierarchy", _visual_hierarchy),
    ("design_motion_graphics", _motion_graphics),
    ("design_color_psychology", _keywords(COLOR_KEYWORDS)),
    ("design_visual_distinctiveness", _keywords(DISTINCTIVE_KEYWORDS)),
    ("design_mobile_optimization", _keywords(MOBILE_KEYWORDS)),
    ("design_responsive_design", _keywords(RESPONSIVE_KEYWORDS)),
    ("messaging_action_oriented_language", _text_keywords(ACTION_KEYWORDS)),
    ("messaging_benefit_focused_headlines", _text_keywords(BENEFIT_KEYWORDS)),
    ("messaging_message_clarity", _message_clarity),
    ("messaging_emotional_connection", _keywords(EMOTIONAL_CONNECTION_KEYWORDS)),
    ("targeting_behavioral_precision", _keywords(BEHAVIORAL_KEYWORDS)),
    ("targeting_lookalike_optimization", _text_keywords(LOOKALIKE_KEYWORDS)),
    ("targeting_values_based_targeting", _keywords(VALUES_KEYWORDS)),
    ("targeting_lifestyle_segmentation", _keywords(LIFESTYLE_KEYWORDS)),
    ("channel_cross_channel_consistency", _cross_channel_consistency),
    ("channel_platform_optimization", _keywords(PLATFORM_KEYWORDS)),
    ("channel_multi_format_adaptation", _multi_format_adaptation),
    ("channel_digital_native_design", _keywords(DIGITAL_KEYWORDS)),
    ("detected_storytelling", _keywords(STORY_KEYWORDS)),
    ("detected_emotional_appeal", _keywords(EMOTIONAL_APPEAL_KEYWORDS)),
    ("detected_call_to_action", _keywords(CTA_KEYWORDS)),
    ("detected_brand_integration", _keywords(BRAND_KEYWORDS)),
    ("detected_social_proof", _keywords(SOCIAL_PROOF_KEYWORDS)),
    ("detected_personalization", _keywords(PERSONALIZATION_KEYWORDS)),
    ("detected_interactive", _keywords(INTERACTIVE_KEYWORDS)),
]


def validate_feature_rules(rules: Optional[List[Tuple[str, FeaturePredicate]]] = None) -> None:
    """Raise InvalidConfiguration unless the rule table covers the vocabulary exactly once."""
    rules = FEATURE_RULES if rules is None else rules
    names = [name for name, _ in rules]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidConfiguration(f"Duplicate feature rules: {duplicates}")
    missing = sorted(set(FEATURE_VOCABULARY) - set(names))
    extra = sorted(set(names) - set(FEATURE_VOCABULARY))
    if missing or extra:
        raise InvalidConfiguration(f"Feature rules do not match vocabulary: missing={missing} extra={extra}")
    bad_category = [n for n in names if n.split("_", 1)[0] not in FEATURE_CATEGORIES]
    if bad_category:
        raise InvalidConfiguration(f"Feature rules with unknown category: {bad_category}")
    not_callable = [n for n, predicate in rules if not callable(predicate)]
    if not_callable:
        raise InvalidConfiguration(f"Feature rules without a predicate: {not_callable}")


def evaluate_features(ctx: RuleContext) -> dict:
    values = {name: bool(predicate(ctx)) for name, predicate in FEATURE_RULES}
    return flags_by_name(FEATURE_VOCABULARY, values)


def extract_features(document, text: Optional[str], siblings: Iterable = ()) -> CreativeFeatureSet:
    """
    Derive creative-feature flags for one document.
    document needs filename and file_kind; siblings are the campaign's documents.
    """
    ctx = build_context(document.filename, text, document.file_kind, siblings)
    return CreativeFeatureSet(version=FEATURE_VOCABULARY_VERSION, flags=evaluate_features(ctx))
