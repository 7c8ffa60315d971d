"""
Global constants for scoring configuration.

Centralizes thresholds used by the normalizer, baseline evaluator, star
mapper and confidence evaluator so boundaries are documented in one place.
"""

# Choice scores
CHOICE_SCORE_MIN = 0.0
CHOICE_SCORE_MAX = 100.0
TIED_CHOICE_SCORE = 100.0  # All candidates tied (or a single candidate): no penalty

# Percentiles
PERCENTILE_DECIMALS = 1

# Breakpoint baselines: [p20, p40, p60, p80] with linear tails
BREAKPOINT_PERCENTILES = (20.0, 40.0, 60.0, 80.0)
BREAKPOINT_LOWER_TAIL_FACTOR = 0.5  # p0 assumed at half of p20
BREAKPOINT_UPPER_TAIL_FACTOR = 1.5  # p100 assumed at 1.5x p80
BREAKPOINT_FLAT_LOWER_PERCENTILE = 10.0  # p20 == 0, value at or below it
BREAKPOINT_FLAT_UPPER_PERCENTILE = 90.0  # p80 == 0, value at or above it

# Star ladder (quintiles): (minimum national percentile, stars), highest first
STAR_LADDER = (
    (80.0, 5),
    (60.0, 4),
    (40.0, 3),
    (20.0, 2),
    (0.0, 1),
)
MIN_STARS = 1
MAX_STARS = 5
NEUTRAL_STARS = 3.0  # Pull-toward value for thin data coverage

# Confidence: data age bands (years)
FRESH_MAX_AGE_YEARS = 2
AGING_MAX_AGE_YEARS = 4  # 3-4 aging, 5+ stale

# Confidence: missing-rate bands
CLEAN_MISSING_RATE_BELOW = 0.1  # < 0.1 clean
PARTIAL_MISSING_RATE_MAX = 0.3  # 0.1-0.3 inclusive partial, > 0.3 poor

UNKNOWN_DATA_YEAR = "unknown"
