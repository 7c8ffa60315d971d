"""
Confidence Evaluator - how far a score can be trusted.

Classifies three signals and combines them with a fixed decision table:

Age (current_year - data_year):
- fresh: 2 years or newer
- aging: 3-4 years
- stale: 5+ years, or the data year cannot be parsed

Missing rate:
- clean: below 0.1
- partial: 0.1-0.3 inclusive
- poor: above 0.3

Decision table (first match wins):
1. poor missingness -> low
2. stale age -> low
3. fresh + clean + known sample size -> high
4. fresh + clean + unknown sample size -> medium
5. fresh/aging + partial -> medium
6. anything else -> medium

Unknown sample size caps confidence at medium: high is never reported when
the sample size cannot be verified.
"""

import re
from typing import Optional

from townscore.config import get_current_year
from townscore.constants import (
    AGING_MAX_AGE_YEARS,
    CLEAN_MISSING_RATE_BELOW,
    FRESH_MAX_AGE_YEARS,
    PARTIAL_MISSING_RATE_MAX,
)
from townscore.schemas.enums import AgeBand, ConfidenceLevel, MissingnessBand
from townscore.schemas.scores import ConfidenceInput, ConfidenceResult

_YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?!\d)")


def parse_data_year(data_year: str) -> Optional[int]:
    """Extract a four-digit year ('2020', '2020年度', 'FY2020'). None if absent."""
    if not data_year:
        return None
    match = _YEAR_PATTERN.search(data_year)
    return int(match.group(1)) if match else None


def classify_age(data_year: str, current_year: int) -> tuple[AgeBand, Optional[int]]:
    """Age band plus age in years (None when the year is unparsable)."""
    year = parse_data_year(data_year)
    if year is None:
        return AgeBand.STALE, None
    age = max(0, current_year - year)
    if age <= FRESH_MAX_AGE_YEARS:
        return AgeBand.FRESH, age
    if age <= AGING_MAX_AGE_YEARS:
        return AgeBand.AGING, age
    return AgeBand.STALE, age


def classify_missingness(missing_rate: float) -> MissingnessBand:
    if missing_rate < CLEAN_MISSING_RATE_BELOW:
        return MissingnessBand.CLEAN
    if missing_rate <= PARTIAL_MISSING_RATE_MAX:
        return MissingnessBand.PARTIAL
    return MissingnessBand.POOR


def _describe_year(data_year: str, age: Optional[int]) -> str:
    if age is None:
        return f"data year '{data_year or 'unknown'}' could not be determined"
    if age == 0:
        return f"data year {data_year} (current)"
    return f"data year {data_year} ({age}y old)"


def evaluate_confidence(
    confidence_input: ConfidenceInput,
    current_year: Optional[int] = None,
) -> ConfidenceResult:
    """
    Evaluate the confidence label for one area.

    Args:
        confidence_input: Data year, sample count and missing rate for the area
        current_year: Year to age the data against (defaults to the configured clock)

    Returns:
        ConfidenceResult with level and a reason citing the data year
    """
    year_now = current_year if current_year is not None else get_current_year()
    age_band, age = classify_age(confidence_input.data_year, year_now)
    missingness = classify_missingness(confidence_input.missing_rate)
    sample_count = confidence_input.sample_count

    year_text = _describe_year(confidence_input.data_year, age)
    missing_text = f"{confidence_input.missing_rate:.0%} of indicators missing"

    if missingness == MissingnessBand.POOR:
        level = ConfidenceLevel.LOW
        reason = f"Too much missing data: {missing_text}, {year_text}"
    elif age_band == AgeBand.STALE:
        level = ConfidenceLevel.LOW
        reason = f"Statistics are outdated: {year_text}"
    elif age_band == AgeBand.FRESH and missingness == MissingnessBand.CLEAN:
        if sample_count is not None:
            level = ConfidenceLevel.HIGH
            reason = f"Recent and complete: {year_text}, {sample_count} samples"
        else:
            level = ConfidenceLevel.MEDIUM
            reason = f"Recent and complete but sample size unknown: {year_text}"
    elif missingness == MissingnessBand.PARTIAL:
        level = ConfidenceLevel.MEDIUM
        reason = f"Partially missing: {missing_text}, {year_text}"
    else:
        level = ConfidenceLevel.MEDIUM
        reason = f"Statistics are aging: {year_text}"

    return ConfidenceResult(level=level, reason=reason)
