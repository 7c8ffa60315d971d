"""Shared fixtures for townscore tests.

Registry caches are cleared around every test so tests that point
TOWNSCORE_REGISTRY_DIR at a temporary directory never leak into others.
"""

import sys
from pathlib import Path

import pytest

# Add repo root to path so tests can import townscore without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from townscore.schemas.enums import Category, Direction  # noqa: E402
from townscore.schemas.indicators import IndicatorDefinition  # noqa: E402
from townscore.schemas.scores import WeightPreset  # noqa: E402
from townscore.scorers import baseline_evaluator, indicator_catalog, preset_registry  # noqa: E402
from townscore.scorers.baseline_evaluator import ReferenceDistribution  # noqa: E402

CURRENT_YEAR = 2024


@pytest.fixture(autouse=True)
def clear_registry_caches():
    """Reset module-level registry caches before and after each test."""
    indicator_catalog.clear_cache()
    preset_registry.clear_cache()
    baseline_evaluator.clear_cache()
    yield
    indicator_catalog.clear_cache()
    preset_registry.clear_cache()
    baseline_evaluator.clear_cache()


@pytest.fixture
def current_year() -> int:
    return CURRENT_YEAR


@pytest.fixture
def definitions() -> list[IndicatorDefinition]:
    """Small catalog: two childcare indicators, one price, one safety."""
    return [
        IndicatorDefinition(
            id="kids_ratio",
            label="Kids ratio",
            unit="%",
            direction=Direction.HIGHER_BETTER,
            category=Category.CHILDCARE,
            precision=1,
        ),
        IndicatorDefinition(
            id="population_total",
            label="Population",
            unit="people",
            direction=Direction.HIGHER_BETTER,
            category=Category.CHILDCARE,
            precision=0,
        ),
        IndicatorDefinition(
            id="condo_price_median",
            label="Condo price",
            unit="10k JPY",
            direction=Direction.LOWER_BETTER,
            category=Category.PRICE,
            precision=0,
        ),
        IndicatorDefinition(
            id="crime_rate",
            label="Crime rate",
            unit="cases/1k people",
            direction=Direction.LOWER_BETTER,
            category=Category.SAFETY,
            precision=2,
        ),
    ]


@pytest.fixture
def preset() -> WeightPreset:
    return WeightPreset(
        name="childcare",
        label="Childcare focus",
        weights={
            Category.CHILDCARE: 0.5,
            Category.PRICE: 0.3,
            Category.SAFETY: 0.2,
        },
    )


@pytest.fixture
def baselines() -> dict[str, ReferenceDistribution]:
    """Breakpoint baselines for the small catalog (same shape as the bundled file)."""
    return {
        "kids_ratio": ReferenceDistribution(
            indicator_id="kids_ratio", name="national-test", breakpoints=(9.0, 10.5, 12.0, 13.5), population_size=1741
        ),
        "population_total": ReferenceDistribution(
            indicator_id="population_total",
            name="national-test",
            breakpoints=(15000, 50000, 120000, 300000),
            population_size=1741,
        ),
        "condo_price_median": ReferenceDistribution(
            indicator_id="condo_price_median",
            name="national-test",
            breakpoints=(800, 1500, 2500, 4000),
            population_size=1741,
        ),
        "crime_rate": ReferenceDistribution(
            indicator_id="crime_rate", name="national-test", breakpoints=(2.0, 4.0, 6.0, 9.0), population_size=1741
        ),
    }
