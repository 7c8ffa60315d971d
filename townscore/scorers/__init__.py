"""Deterministic scoring modules for area comparison."""

from townscore.scorers.baseline_evaluator import (
    ReferenceDistribution,
    evaluate_baseline,
    load_national_baselines,
)
from townscore.scorers.choice_normalizer import normalize_within_candidates
from townscore.scorers.composite import calculate_composite_score, split_category_weights
from townscore.scorers.confidence import evaluate_confidence, parse_data_year
from townscore.scorers.indicator_catalog import (
    IndicatorCatalog,
    get_catalog,
    get_indicator,
    list_domains,
    list_indicators,
)
from townscore.scorers.orchestrator import score_cities, score_single_city
from townscore.scorers.preset_registry import (
    UnknownPresetError,
    find_preset,
    get_default_preset_name,
    get_preset,
    list_presets,
)
from townscore.scorers.star_mapper import (
    aggregate_stars,
    apply_data_coverage_penalty,
    category_star_averages,
    percentile_to_stars,
    render_star_text,
    round_stars,
    star_label,
)

__all__ = [
    # Registries
    "IndicatorCatalog",
    "get_catalog",
    "get_indicator",
    "list_domains",
    "list_indicators",
    "UnknownPresetError",
    "find_preset",
    "get_default_preset_name",
    "get_preset",
    "list_presets",
    "ReferenceDistribution",
    "load_national_baselines",
    # Candidate-relative scoring
    "normalize_within_candidates",
    "calculate_composite_score",
    "split_category_weights",
    # National scoring
    "evaluate_baseline",
    "percentile_to_stars",
    "aggregate_stars",
    "round_stars",
    "apply_data_coverage_penalty",
    "category_star_averages",
    "render_star_text",
    "star_label",
    # Confidence
    "evaluate_confidence",
    "parse_data_year",
    # Orchestration
    "score_cities",
    "score_single_city",
]
