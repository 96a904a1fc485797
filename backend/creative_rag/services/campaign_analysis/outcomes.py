"""
Business outcome prediction from creative features plus text heuristics.
Rules run in vocabulary order and may read outcomes decided earlier in the table.
Scored outcomes sum (signal, weight) pairs against a threshold; see SCORED_OUTCOMES.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from creative_rag.exceptions import InvalidConfiguration
from creative_rag.schemas import BusinessOutcomeSet, CreativeFeatureSet
from creative_rag.services.campaign_analysis.rules import (
    FEATURE_VOCABULARY,
    FEATURE_VOCABULARY_VERSION,
    OUTCOME_CATEGORIES,
    OUTCOME_VOCABULARY,
    RuleContext,
    build_context,
    flags_by_name,
    text_has,
    text_or_name_has,
)

OutcomePredicate = Callable[[RuleContext], bool]

BREAKTHROUGH_KEYWORDS = ("award", "breakthrough", "innovative", "first", "revolutionary", "unique")
NEGATIVE_KEYWORDS = ("negative", "problem")
SHARING_KEYWORDS = ("share", "viral", "social")
PURCHASE_KEYWORDS = ("buy", "purchase", "order")
SALES_KEYWORDS = ("sales", "revenue", "conversion", "purchase", "buy", "order")
FOOT_TRAFFIC_KEYWORDS = ("store", "visit", "location", "restaurant", "retail", "outlet")
INTENT_KEYWORDS = ("consider", "interested", "want")
LEAD_KEYWORDS = ("signup", "sign up", "register", "contact", "learn more")
RECALL_KEYWORDS = ("memorable", "distinctive")
EQUITY_KEYWORDS = ("premium", "quality", "leader")
TOP_OF_MIND_KEYWORDS = ("first", "leader", "top")
DIFFERENTIATION_KEYWORDS = ("unique", "different", "only")
CULTURAL_KEYWORDS = ("culture", "trend", "moment", "relevant", "current", "timely")
AUTHENTICITY_KEYWORDS = ("authentic", "genuine", "real")
TRUST_KEYWORDS = ("trust", "reliable", "proven")
ROI_KEYWORDS = ("roi", "return", "efficient")
EFFICIENCY_KEYWORDS = ("efficient",)
CONSIDERATION_KEYWORDS = ("consider", "research", "compare", "evaluate", "learn")
RESEARCH_KEYWORDS = ("information", "details", "learn")
SWITCHING_KEYWORDS = ("switch", "change", "better")
ADVOCACY_KEYWORDS = ("share", "recommend", "advocate")
VIRAL_KEYWORDS = ("award", "viral")

CONVERSION_FOCUS_KEYWORDS = ("conversion", "sale", "purchase", "buy", "order", "convert")
AWARENESS_FOCUS_KEYWORDS = ("awareness", "launch", "introduce", "new", "discover", "meet")
ENGAGEMENT_FOCUS_KEYWORDS = ("engagement", "interact", "participate", "join", "connect", "engage")
RETENTION_FOCUS_KEYWORDS = ("retention", "loyalty", "repeat", "return", "member", "subscriber")
ACQUISITION_FOCUS_KEYWORDS = ("acquisition", "new customer", "signup", "register", "join", "get")
BRANDING_FOCUS_KEYWORDS = ("brand", "identity", "image", "reputation", "perception", "positioning")

MEDIA_EFFICIENCY_MIN_FILES = 10
COST_OPTIMIZATION_MIN_FILES = 15


@dataclass(frozen=True)
class WeightedSignal:
    label: str
    predicate: OutcomePredicate
    weight: int


@dataclass(frozen=True)
class ScoredOutcome:
    """Outcome is true when the summed weights of matching signals reach threshold."""
    threshold: int
    signals: Tuple[WeightedSignal, ...]

    def score(self, ctx: RuleContext) -> int:
        return sum(s.weight for s in self.signals if s.predicate(ctx))

    def decide(self, ctx: RuleContext) -> bool:
        return self.score(ctx) >= self.threshold


def _feat(name: str) -> OutcomePredicate:
    return lambda ctx: bool(ctx.features.get(name, False))


def _all(*predicates: OutcomePredicate) -> OutcomePredicate:
    return lambda ctx: all(p(ctx) for p in predicates)


def _text(keywords) -> OutcomePredicate:
    return lambda ctx: text_has(ctx, keywords)


def _text_or_name(keywords) -> OutcomePredicate:
    return lambda ctx: text_or_name_has(ctx, keywords)


def _not(predicate: OutcomePredicate) -> OutcomePredicate:
    return lambda ctx: not predicate(ctx)


def _outcome(name: str) -> OutcomePredicate:
    return lambda ctx: bool(ctx.outcomes.get(name, False))


def _min_siblings(count: int) -> OutcomePredicate:
    return lambda ctx: ctx.sibling_count >= count


def _is_video(ctx: RuleContext) -> bool:
    return ctx.file_kind == "video"


SCORED_OUTCOMES: Dict[str, ScoredOutcome] = {
    "outcome_engagement_high_engagement": ScoredOutcome(
        threshold=4,
        signals=(
            WeightedSignal("storytelling", _feat("detected_storytelling"), 2),
            WeightedSignal("emotional_appeal", _feat("detected_emotional_appeal"), 2),
            WeightedSignal("interactive", _feat("detected_interactive"), 2),
            WeightedSignal("motion_graphics", _feat("design_motion_graphics"), 1),
            WeightedSignal("award_or_viral", _text(VIRAL_KEYWORDS), 2),
        ),
    ),
}


def _scored(name: str) -> OutcomePredicate:
    return lambda ctx: SCORED_OUTCOMES[name].decide(ctx)


VALUE_PROP = _feat("content_value_proposition_clear")
DISTINCT = _feat("design_visual_distinctiveness")
ACTION = _feat("messaging_action_oriented_language")
BENEFIT = _feat("messaging_benefit_focused_headlines")
CTA = _feat("detected_call_to_action")
STORY = _feat("detected_storytelling")
EMOTION = _feat("detected_emotional_appeal")
VALUES = _feat("targeting_values_based_targeting")

OUTCOME_RULES: List[Tuple[str, OutcomePredicate]] = [
    # Engagement
    ("outcome_engagement_high_engagement", _scored("outcome_engagement_high_engagement")),
    ("outcome_engagement_creative_breakthrough", _text_or_name(BREAKTHROUGH_KEYWORDS)),
    ("outcome_engagement_brand_sentiment_positive", _all(
        _feat("messaging_emotional_connection"), VALUE_PROP, _not(_text(NEGATIVE_KEYWORDS)))),
    ("outcome_engagement_social_sharing", _all(STORY, EMOTION, _text(SHARING_KEYWORDS))),
    ("outcome_engagement_video_completion_high", _all(_is_video, _feat("design_motion_graphics"), STORY)),
    # Conversion
    ("outcome_conversion_direct_conversion", _all(ACTION, CTA, _text(PURCHASE_KEYWORDS))),
    ("outcome_conversion_sales_lift", _text_or_name(SALES_KEYWORDS)),
    ("outcome_conversion_foot_traffic", _text_or_name(FOOT_TRAFFIC_KEYWORDS)),
    ("outcome_conversion_purchase_intent", _all(VALUE_PROP, BENEFIT, _text(INTENT_KEYWORDS))),
    ("outcome_conversion_lead_generation", _all(CTA, _text(LEAD_KEYWORDS))),
    ("outcome_conversion_consideration_lift", _all(VALUE_PROP, BENEFIT, _not(ACTION))),
    # Brand
    ("outcome_brand_brand_recall", _all(DISTINCT, _feat("detected_brand_integration"), _text(RECALL_KEYWORDS))),
    ("outcome_brand_brand_equity_lift", _all(VALUE_PROP, DISTINCT, _text(EQUITY_KEYWORDS))),
    ("outcome_brand_top_of_mind", _all(DISTINCT, STORY, _text(TOP_OF_MIND_KEYWORDS))),
    ("outcome_brand_brand_differentiation", _all(DISTINCT, VALUE_PROP, _text(DIFFERENTIATION_KEYWORDS))),
    ("outcome_brand_cultural_relevance", _text_or_name(CULTURAL_KEYWORDS)),
    ("outcome_brand_brand_authenticity", _all(VALUES, STORY, _text(AUTHENTICITY_KEYWORDS))),
    ("outcome_brand_brand_trust", _all(
        _feat("content_social_proof"), _outcome("outcome_brand_brand_authenticity"), _text(TRUST_KEYWORDS))),
    # Efficiency
    ("outcome_efficiency_media_efficiency", _all(
        _feat("channel_multi_format_adaptation"), _min_siblings(MEDIA_EFFICIENCY_MIN_FILES))),
    ("outcome_efficiency_roi_positive", _all(ACTION, VALUE_PROP, _text(ROI_KEYWORDS))),
    ("outcome_efficiency_cost_optimization", _all(
        _min_siblings(COST_OPTIMIZATION_MIN_FILES), _text(EFFICIENCY_KEYWORDS))),
    # Behavioral
    ("outcome_behavioral_consideration_behavior", _text_or_name(CONSIDERATION_KEYWORDS)),
    ("outcome_behavioral_research_intent", _all(VALUE_PROP, _text(RESEARCH_KEYWORDS))),
    ("outcome_behavioral_purchase_behavior", _all(ACTION, CTA)),
    ("outcome_behavioral_brand_switching", _all(VALUE_PROP, _text(SWITCHING_KEYWORDS))),
    ("outcome_behavioral_advocacy_behavior", _all(VALUES, EMOTION, _text(ADVOCACY_KEYWORDS))),
    # Business focus
    ("business_conversion_focus", _text_or_name(CONVERSION_FOCUS_KEYWORDS)),
    ("business_awareness_focus", _text_or_name(AWARENESS_FOCUS_KEYWORDS)),
    ("business_engagement_focus", _text_or_name(ENGAGEMENT_FOCUS_KEYWORDS)),
    ("business_retention_focus", _text_or_name(RETENTION_FOCUS_KEYWORDS)),
    ("business_acquisition_focus", _text_or_name(ACQUISITION_FOCUS_KEYWORDS)),
    ("business_branding_focus", _text_or_name(BRANDING_FOCUS_KEYWORDS)),
]


def validate_outcome_rules(
    rules: Optional[List[Tuple[str, OutcomePredicate]]] = None,
    scored: Optional[Dict[str, ScoredOutcome]] = None,
) -> None:
    """Raise InvalidConfiguration unless rules cover the vocabulary and scored tables are sane."""
    rules = OUTCOME_RULES if rules is None else rules
    scored = SCORED_OUTCOMES if scored is None else scored
    names = [name for name, _ in rules]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidConfiguration(f"Duplicate outcome rules: {duplicates}")
    missing = sorted(set(OUTCOME_VOCABULARY) - set(names))
    extra = sorted(set(names) - set(OUTCOME_VOCABULARY))
    if missing or extra:
        raise InvalidConfiguration(f"Outcome rules do not match vocabulary: missing={missing} extra={extra}")
    for name in names:
        if name.startswith("business_"):
            continue
        parts = name.split("_")
        if parts[0] != "outcome" or parts[1] not in OUTCOME_CATEGORIES:
            raise InvalidConfiguration(f"Outcome rule with unknown category: {name}")
    for name, table in scored.items():
        if name not in OUTCOME_VOCABULARY:
            raise InvalidConfiguration(f"Scored outcome not in vocabulary: {name}")
        if table.threshold <= 0 or not table.signals:
            raise InvalidConfiguration(f"Scored outcome {name} needs a positive threshold and signals")
        if any(s.weight <= 0 for s in table.signals):
            raise InvalidConfiguration(f"Scored outcome {name} has a non-positive weight")


def _context(document, text: Optional[str], siblings: Iterable, features: CreativeFeatureSet) -> RuleContext:
    ctx = build_context(document.filename, text, document.file_kind, siblings)
    return ctx.with_features({n: bool(features.flags.get(n, False)) for n in FEATURE_VOCABULARY})


def score_outcome(name: str, document, text: Optional[str], siblings: Iterable, features: CreativeFeatureSet) -> int:
    """Raw weighted score of a scored outcome, for inspection and tuning."""
    if name not in SCORED_OUTCOMES:
        raise KeyError(f"{name} is not a scored outcome")
    return SCORED_OUTCOMES[name].score(_context(document, text, siblings, features))


def predict_outcomes(
    document,
    text: Optional[str],
    siblings: Iterable,
    features: CreativeFeatureSet,
) -> BusinessOutcomeSet:
    """Derive business-outcome flags for one document from its features, text and campaign."""
    ctx = _context(document, text, siblings, features)
    decided: Dict[str, bool] = {}
    for name, predicate in OUTCOME_RULES:
        decided[name] = bool(predicate(ctx.with_outcomes(decided)))
    scores = {name: table.score(ctx) for name, table in SCORED_OUTCOMES.items()}
    return BusinessOutcomeSet(
        version=FEATURE_VOCABULARY_VERSION,
        flags=flags_by_name(OUTCOME_VOCABULARY, decided),
        scores=scores,
    )
