"""
Baseline Evaluator - national percentile for a raw value.

Unlike Choice scores, baseline percentiles are anchored to a fixed national
reference distribution and do not change when the candidate set changes.

A reference distribution comes in one of two shapes:
- values: the full reference set; percentile uses the mid-rank rule
  (below + 0.5 * equal) / n * 100
- breakpoints: only [p20, p40, p60, p80] are known; percentile is estimated
  by piecewise-linear interpolation with tails down to 0.5 * p20 and up to
  1.5 * p80

Both are inverted (100 - p) for lower_better indicators and rounded to one
decimal. No reference for an indicator means the baseline is skipped
(None), never fabricated.
"""

import logging
import math
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from townscore.config import get_registry_dir
from townscore.constants import (
    BREAKPOINT_FLAT_LOWER_PERCENTILE,
    BREAKPOINT_FLAT_UPPER_PERCENTILE,
    BREAKPOINT_LOWER_TAIL_FACTOR,
    BREAKPOINT_PERCENTILES,
    BREAKPOINT_UPPER_TAIL_FACTOR,
    PERCENTILE_DECIMALS,
)
from townscore.schemas.enums import Direction
from townscore.schemas.indicators import IndicatorDefinition
from townscore.schemas.scores import BaselineScore

logger = logging.getLogger(__name__)

BASELINES_FILENAME = "national_baselines.yaml"


class ReferenceDistribution(BaseModel):
    """National reference for one indicator: full values or quantile breakpoints."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    indicator_id: str
    name: str = Field(description="Reference name reported on BaselineScore (e.g. 'national-2020')")
    values: tuple[float, ...] = Field(default_factory=tuple, description="Full reference set")
    breakpoints: Optional[tuple[float, float, float, float]] = Field(
        default=None, description="Ascending raw values at p20, p40, p60, p80"
    )
    population_size: Optional[int] = Field(
        default=None,
        ge=0,
        description="Size of the population summarized by breakpoints; derived for values",
    )

    @field_validator("values")
    @classmethod
    def _drop_non_finite(cls, values: tuple[float, ...]) -> tuple[float, ...]:
        return tuple(v for v in values if math.isfinite(v))

    @field_validator("breakpoints")
    @classmethod
    def _validate_breakpoints(
        cls, breakpoints: Optional[tuple[float, float, float, float]]
    ) -> Optional[tuple[float, float, float, float]]:
        if breakpoints is None:
            return None
        if any(not math.isfinite(b) for b in breakpoints):
            raise ValueError(f"breakpoints must be finite, got {breakpoints}")
        if list(breakpoints) != sorted(breakpoints):
            raise ValueError(f"breakpoints must be ascending, got {breakpoints}")
        return breakpoints

    @model_validator(mode="after")
    def _one_shape(self) -> "ReferenceDistribution":
        if self.values and self.breakpoints is not None:
            raise ValueError("reference distribution takes values or breakpoints, not both")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.values and self.breakpoints is None

    @property
    def size(self) -> int:
        """Number of reference observations actually behind the percentile."""
        if self.values:
            return len(self.values)
        return self.population_size or 0


def _mid_rank_percentile(value: float, reference: tuple[float, ...]) -> float:
    below = sum(1 for v in reference if v < value)
    equal = sum(1 for v in reference if v == value)
    return (below + 0.5 * equal) / len(reference) * 100


def _interpolate_breakpoints(value: float, breakpoints: tuple[float, float, float, float]) -> float:
    """Estimate a raw percentile from [p20, p40, p60, p80] breakpoints."""
    p20, p80 = breakpoints[0], breakpoints[-1]

    if value <= p20:
        lower_bound = p20 * BREAKPOINT_LOWER_TAIL_FACTOR
        span = p20 - lower_bound
        if span <= 0:
            return BREAKPOINT_FLAT_LOWER_PERCENTILE
        return max(0.0, (value - lower_bound) / span * BREAKPOINT_PERCENTILES[0])

    if value >= p80:
        upper_bound = p80 * BREAKPOINT_UPPER_TAIL_FACTOR
        span = upper_bound - p80
        if span <= 0:
            return BREAKPOINT_FLAT_UPPER_PERCENTILE
        return min(100.0, BREAKPOINT_PERCENTILES[-1] + (value - p80) / span * 20)

    for i in range(len(breakpoints) - 1):
        if value <= breakpoints[i + 1]:
            segment = breakpoints[i + 1] - breakpoints[i]
            pct_span = BREAKPOINT_PERCENTILES[i + 1] - BREAKPOINT_PERCENTILES[i]
            if segment <= 0:
                return BREAKPOINT_PERCENTILES[i]
            return BREAKPOINT_PERCENTILES[i] + (value - breakpoints[i]) / segment * pct_span

    # Unreachable for ascending breakpoints: p20 < value < p80
    return 50.0


def evaluate_baseline(
    value: Optional[float],
    definition: IndicatorDefinition,
    reference: Optional[ReferenceDistribution],
) -> Optional[BaselineScore]:
    """
    Place one raw value within the national reference distribution.

    Args:
        value: Raw indicator value (None means no data)
        definition: Indicator definition (supplies id and direction)
        reference: National reference for this indicator, if one exists

    Returns:
        BaselineScore, or None when the value or the reference is missing
    """
    if value is None or reference is None or reference.is_empty:
        return None

    if reference.breakpoints is not None:
        raw_percentile = _interpolate_breakpoints(value, reference.breakpoints)
    else:
        raw_percentile = _mid_rank_percentile(value, reference.values)

    if definition.direction == Direction.LOWER_BETTER:
        raw_percentile = 100 - raw_percentile

    percentile = round(max(0.0, min(100.0, raw_percentile)), PERCENTILE_DECIMALS)
    return BaselineScore(
        indicator_id=definition.id,
        percentile=percentile,
        population_size=reference.size,
        baseline_name=reference.name,
    )


# ============================================================================
# Bundled national baselines
# ============================================================================

_baselines_cache: Optional[dict[str, ReferenceDistribution]] = None


def parse_national_baselines(raw: dict) -> dict[str, ReferenceDistribution]:
    """Build indicator_id -> ReferenceDistribution from the parsed YAML document.

    Entries under `breakpoints` list [p20, p40, p60, p80]; entries under
    `values` list a full reference set.
    """
    if not isinstance(raw, dict):
        raise ValueError("National baselines must be a mapping")

    name = raw.get("name", "national")
    population_size = raw.get("population_size")

    baselines: dict[str, ReferenceDistribution] = {}
    for indicator_id, breakpoints in (raw.get("breakpoints") or {}).items():
        baselines[indicator_id] = ReferenceDistribution(
            indicator_id=indicator_id,
            name=name,
            breakpoints=tuple(breakpoints),
            population_size=population_size,
        )
    for indicator_id, values in (raw.get("values") or {}).items():
        if indicator_id in baselines:
            raise ValueError(f"Baseline for '{indicator_id}' defined as both breakpoints and values")
        baselines[indicator_id] = ReferenceDistribution(
            indicator_id=indicator_id,
            name=name,
            values=tuple(values),
        )
    return baselines


def load_national_baselines(path: Optional[Path] = None) -> dict[str, ReferenceDistribution]:
    """Load and cache the bundled national baselines.

    Passing `path` loads that file instead and leaves the cache untouched.
    """
    global _baselines_cache
    if path is not None:
        with open(path, encoding="utf-8") as f:
            return parse_national_baselines(yaml.safe_load(f))

    if _baselines_cache is not None:
        return _baselines_cache

    config_path = get_registry_dir() / BASELINES_FILENAME
    with open(config_path, encoding="utf-8") as f:
        _baselines_cache = parse_national_baselines(yaml.safe_load(f))
    logger.info(f"Loaded national baselines for {len(_baselines_cache)} indicators")
    return _baselines_cache


def clear_cache():
    """Clear the baselines cache (useful for testing)."""
    global _baselines_cache
    _baselines_cache = None
