"""
Campaign analysis: deterministic creative features, business outcomes and composition.
Rule tables only; no model calls.
"""
from creative_rag.services.campaign_analysis.features import extract_features, validate_feature_rules
from creative_rag.services.campaign_analysis.outcomes import predict_outcomes, score_outcome, validate_outcome_rules
from creative_rag.services.campaign_analysis.composition import analyze_composition


def validate_rule_tables() -> None:
    """Startup check of both rule tables against the vocabulary."""
    validate_feature_rules()
    validate_outcome_rules()


__all__ = [
    "extract_features",
    "predict_outcomes",
    "score_outcome",
    "analyze_composition",
    "validate_rule_tables",
]
