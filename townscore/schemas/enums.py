"""Enums shared by indicator definitions, presets and score results."""

from enum import Enum


class Direction(str, Enum):
    """Which way an indicator's raw value is preferred."""

    HIGHER_BETTER = "higher_better"
    LOWER_BETTER = "lower_better"


class Category(str, Enum):
    """Indicator category. Weight presets assign one weight per category."""

    CHILDCARE = "childcare"
    PRICE = "price"
    SAFETY = "safety"
    DISASTER = "disaster"
    TRANSPORT = "transport"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"


class ConfidenceLevel(str, Enum):
    """Three-level trust label attached to every scored area."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AgeBand(str, Enum):
    """Data age classification used by the confidence evaluator.

    - FRESH: 2 years old or newer
    - AGING: 3-4 years old
    - STALE: 5+ years old, or the data year is unparsable
    """

    FRESH = "fresh"
    AGING = "aging"
    STALE = "stale"


class MissingnessBand(str, Enum):
    """Missing-rate classification used by the confidence evaluator.

    - CLEAN: below 10%
    - PARTIAL: 10% to 30% inclusive
    - POOR: above 30%
    """

    CLEAN = "clean"
    PARTIAL = "partial"
    POOR = "poor"


class RankBasis(str, Enum):
    """Score used to order a candidate set."""

    COMPOSITE = "composite"
    STARS = "stars"
