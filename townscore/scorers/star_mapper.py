"""
Star Mapper - national percentiles to 1-5 star ratings.

Ladder (quintiles of the national distribution):
- [80, 100] = 5 stars
- [60, 80)  = 4 stars
- [40, 60)  = 3 stars
- [20, 40)  = 2 stars
- [0, 20)   = 1 star

Overall stars use the same category-weighted renormalized mean as the
composite score, applied to star values. Category star averages are a plain
unweighted mean for display.
"""

import math
from typing import Optional, Sequence

from townscore.constants import MAX_STARS, MIN_STARS, NEUTRAL_STARS, STAR_LADDER
from townscore.schemas.enums import Category
from townscore.schemas.indicators import IndicatorDefinition
from townscore.schemas.scores import CategoryStarAverage, IndicatorStarRating, WeightPreset
from townscore.scorers.composite import weighted_mean

STAR_LABELS = {
    5: "とても良い",
    4: "良い",
    3: "普通",
    2: "やや低い",
    1: "要注意",
}

FULL_STAR = "★"
EMPTY_STAR = "☆"


def _round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def percentile_to_stars(percentile: float) -> int:
    """Map a national percentile to stars. Input is clamped to [0, 100] first."""
    clamped = max(0.0, min(100.0, percentile))
    for min_percentile, stars in STAR_LADDER:
        if clamped >= min_percentile:
            return stars
    return MIN_STARS


def aggregate_stars(
    indicator_stars: Sequence[IndicatorStarRating],
    definitions: Sequence[IndicatorDefinition],
    preset: WeightPreset,
) -> Optional[float]:
    """
    Preset-weighted mean of indicator stars (1.0-5.0, unrounded).

    Returns:
        None when no star matches a definition or the matched weight is 0
    """
    mean, weight_used, _ = weighted_mean(
        [(s.indicator_id, float(s.stars)) for s in indicator_stars], definitions, preset
    )
    if weight_used <= 0:
        return None
    return max(float(MIN_STARS), min(float(MAX_STARS), mean))


def round_stars(value: float) -> int:
    """Round half-up to an integer star rating and clamp to [1, 5]."""
    return int(max(MIN_STARS, min(MAX_STARS, _round_half_up(value))))


def apply_data_coverage_penalty(raw_stars: float, used: int, total: int) -> float:
    """
    Pull a star value toward neutral (3) in proportion to missing coverage.

        3 + (raw - 3) * used / total

    An area scored on half the catalog keeps half its distance from
    neutral. `total == 0` returns neutral. Rounded half-up to 0.1.
    """
    if total <= 0:
        return NEUTRAL_STARS
    coverage = max(0.0, min(1.0, used / total))
    return _round_half_up(NEUTRAL_STARS + (raw_stars - NEUTRAL_STARS) * coverage, 1)


def category_star_averages(
    indicator_stars: Sequence[IndicatorStarRating],
    definitions: Sequence[IndicatorDefinition],
) -> list[CategoryStarAverage]:
    """Unweighted mean of indicator stars per category, in definition order."""
    by_id = {d.id: d for d in definitions}
    grouped: dict[Category, list[int]] = {}
    for definition in definitions:
        grouped.setdefault(definition.category, [])
    for rating in indicator_stars:
        definition = by_id.get(rating.indicator_id)
        if definition is not None:
            grouped[definition.category].append(rating.stars)

    return [
        CategoryStarAverage(
            category=category,
            average_stars=sum(stars) / len(stars),
            indicator_count=len(stars),
        )
        for category, stars in grouped.items()
        if stars
    ]


def render_star_text(stars: float) -> str:
    """Render stars as text, e.g. 3.7 -> '★★★★☆'."""
    filled = round_stars(stars)
    return FULL_STAR * filled + EMPTY_STAR * (MAX_STARS - filled)


def star_label(stars: int) -> str:
    """Short display label for an integer star rating."""
    return STAR_LABELS[round_stars(stars)]
