"""
Composite Score Calculator - preset-weighted mean of Choice scores.

Weights come from the preset per category. When several indicators of one
category are present, the category weight is split evenly across them, so a
category with data always contributes exactly its preset weight no matter
how many indicators it has. The weighted mean is renormalized over the
indicators actually present:

    composite = sum(score_i * w_i) / sum(w_i)

Fallbacks:
- No matching scores: score 0, used 0
- All matching weights 0: score 0, used > 0
- Scores for indicators not in the definitions are ignored
"""

import logging
from collections import Counter
from typing import Iterable, Sequence

from townscore.schemas.enums import Category
from townscore.schemas.indicators import IndicatorDefinition
from townscore.schemas.scores import ChoiceScore, CompositeResult, WeightPreset

logger = logging.getLogger(__name__)


def split_category_weights(
    indicator_ids: Iterable[str],
    definitions: Sequence[IndicatorDefinition],
    preset: WeightPreset,
) -> dict[str, float]:
    """
    Per-indicator weights for the indicators being combined.

    Each category's preset weight is divided evenly among the given
    indicators of that category. Ids missing from `definitions` are left
    out of the result.
    """
    by_id = {d.id: d for d in definitions}
    matched = [by_id[i] for i in dict.fromkeys(indicator_ids) if i in by_id]
    per_category: Counter[Category] = Counter(d.category for d in matched)

    return {d.id: preset.weight_for(d.category) / per_category[d.category] for d in matched}


def weighted_mean(
    values: Sequence[tuple[str, float]],
    definitions: Sequence[IndicatorDefinition],
    preset: WeightPreset,
) -> tuple[float, float, int]:
    """
    Category-weighted renormalized mean of (indicator_id, value) pairs.

    Returns:
        (mean, weight_used, used_count); mean is 0 when weight_used is 0
    """
    weights = split_category_weights((i for i, _ in values), definitions, preset)

    weighted_sum = 0.0
    weight_used = 0.0
    used_count = 0
    contributing: list[float] = []
    for indicator_id, value in values:
        if indicator_id not in weights:
            continue
        weight = weights[indicator_id]
        weighted_sum += value * weight
        weight_used += weight
        used_count += 1
        if weight > 0:
            contributing.append(value)

    if weight_used <= 0:
        return 0.0, 0.0, used_count
    if len(contributing) == 1:
        # (v * w) / w can drift in floating point
        return contributing[0], weight_used, used_count
    return weighted_sum / weight_used, weight_used, used_count


def calculate_composite_score(
    scores: Sequence[ChoiceScore],
    definitions: Sequence[IndicatorDefinition],
    preset: WeightPreset,
) -> CompositeResult:
    """
    Combine one area's Choice scores into a 0-100 composite.

    Args:
        scores: Choice scores for the area (one per indicator with data)
        definitions: Indicator definitions in play for this report
        preset: Weight preset selected by the user

    Returns:
        CompositeResult with the composite and used/total indicator counts
    """
    mean, weight_used, used_count = weighted_mean(
        [(s.indicator_id, s.score) for s in scores], definitions, preset
    )
    if used_count and weight_used == 0:
        logger.debug(f"Preset '{preset.name}' gives zero weight to all {used_count} present indicators")

    return CompositeResult(
        score=max(0.0, min(100.0, mean)),
        used_indicator_count=used_count,
        total_indicator_count=len(definitions),
    )
