"""
Choice Normalizer - candidate-set relative scores (0-100) per indicator.

Min-max scaling over the areas in the current candidate set:
- higher_better: (v - min) / (max - min) * 100
- lower_better: 100 - the above
- max == min (all tied, or a single valid area): every valid area scores 100
- Missing values are omitted from the output, never defaulted to 0

Choice scores are only meaningful within one candidate set and must never be
compared across reports.
"""

from typing import Hashable, Iterable, Optional, TypeVar

from townscore.constants import CHOICE_SCORE_MAX, CHOICE_SCORE_MIN, TIED_CHOICE_SCORE
from townscore.schemas.enums import Direction
from townscore.schemas.indicators import IndicatorDefinition
from townscore.schemas.scores import ChoiceScore

K = TypeVar("K", bound=Hashable)


def _clamp(score: float) -> float:
    return max(CHOICE_SCORE_MIN, min(CHOICE_SCORE_MAX, score))


def normalize_within_candidates(
    values: Iterable[tuple[K, Optional[float]]],
    definition: IndicatorDefinition,
) -> dict[K, ChoiceScore]:
    """
    Normalize one indicator's raw values across a candidate set.

    Args:
        values: (area_key, raw_value) pairs; any hashable key, raw_value None means no data
        definition: Indicator being normalized (supplies id and direction)

    Returns:
        area_key -> ChoiceScore for every area with a value, in input order.
        Areas without a value are absent from the result.
    """
    present = [(key, value) for key, value in values if value is not None]
    if not present:
        return {}

    raw_values = [value for _, value in present]
    low, high = min(raw_values), max(raw_values)
    spread = high - low

    scores: dict[K, ChoiceScore] = {}
    for key, value in present:
        if spread == 0:
            score = TIED_CHOICE_SCORE
        else:
            score = (value - low) / spread * 100
            if definition.direction == Direction.LOWER_BETTER:
                score = 100 - score
        scores[key] = ChoiceScore(indicator_id=definition.id, score=_clamp(score))

    return scores
