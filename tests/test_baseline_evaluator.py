"""Tests for national baseline percentiles."""

import pytest
from pydantic import ValidationError

from townscore.schemas.enums import Category, Direction
from townscore.schemas.indicators import IndicatorDefinition
from townscore.scorers.baseline_evaluator import (
    ReferenceDistribution,
    evaluate_baseline,
    load_national_baselines,
    parse_national_baselines,
)
from townscore.scorers.indicator_catalog import list_indicators


def _definition(indicator_id: str = "kids_ratio", direction: Direction = Direction.HIGHER_BETTER):
    return IndicatorDefinition(
        id=indicator_id, label=indicator_id, unit="", direction=direction, category=Category.CHILDCARE, precision=1
    )


def _values(*values: float) -> ReferenceDistribution:
    return ReferenceDistribution(indicator_id="kids_ratio", name="national-test", values=values)


def _breakpoints(*breakpoints: float) -> ReferenceDistribution:
    return ReferenceDistribution(
        indicator_id="kids_ratio", name="national-test", breakpoints=breakpoints, population_size=1741
    )


# ─── Full reference set ───────────────────────────────────────────────────────


class TestMidRank:
    def test_mid_rank_rule(self):
        result = evaluate_baseline(3.0, _definition(), _values(1, 2, 3, 4))
        # (2 below + 0.5 * 1 equal) / 4
        assert result.percentile == 62.5
        assert result.population_size == 4
        assert result.baseline_name == "national-test"

    def test_lower_better_inverted(self):
        result = evaluate_baseline(3.0, _definition(direction=Direction.LOWER_BETTER), _values(1, 2, 3, 4))
        assert result.percentile == 37.5

    def test_above_all(self):
        assert evaluate_baseline(10.0, _definition(), _values(1, 2, 3)).percentile == 100.0

    def test_rounded_to_one_decimal(self):
        assert evaluate_baseline(1.0, _definition(), _values(1, 2, 3)).percentile == 16.7

    def test_independent_of_candidate_set(self):
        """Same value, same reference: same percentile no matter who else is compared."""
        reference = _values(5, 10, 15, 20, 25)
        first = evaluate_baseline(12.0, _definition(), reference)
        second = evaluate_baseline(12.0, _definition(), reference)
        assert first == second

    def test_non_finite_reference_values_dropped(self):
        reference = _values(1, 2, float("nan"), 3)
        assert reference.size == 3


# ─── Skips ────────────────────────────────────────────────────────────────────


class TestSkips:
    def test_no_reference(self):
        assert evaluate_baseline(3.0, _definition(), None) is None

    def test_empty_reference(self):
        assert evaluate_baseline(3.0, _definition(), _values()) is None

    def test_missing_value(self):
        assert evaluate_baseline(None, _definition(), _values(1, 2, 3)) is None


# ─── Breakpoints ──────────────────────────────────────────────────────────────


class TestBreakpoints:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (12.0, 60.0),  # exactly p60
            (11.25, 50.0),  # halfway p40-p60
            (9.0, 20.0),  # exactly p20
            (6.75, 10.0),  # halfway between 0.5 * p20 and p20
            (4.0, 0.0),  # below the lower tail
            (13.5, 80.0),  # exactly p80
            (20.25, 100.0),  # 1.5 * p80
            (30.0, 100.0),  # above the upper tail
        ],
    )
    def test_interpolation(self, value, expected):
        result = evaluate_baseline(value, _definition(), _breakpoints(9.0, 10.5, 12.0, 13.5))
        assert result.percentile == pytest.approx(expected)

    def test_lower_better(self):
        reference = _breakpoints(2.0, 4.0, 6.0, 9.0)
        definition = _definition("crime_rate", Direction.LOWER_BETTER)
        assert evaluate_baseline(5.0, definition, reference).percentile == pytest.approx(50.0)
        assert evaluate_baseline(3.0, definition, reference).percentile == pytest.approx(70.0)

    def test_flat_tails(self):
        """Zero breakpoints (flood risk) use the fixed tail percentiles."""
        reference = _breakpoints(0, 0, 1, 1)
        definition = _definition("flood_risk", Direction.LOWER_BETTER)
        assert evaluate_baseline(0, definition, reference).percentile == pytest.approx(90.0)
        assert evaluate_baseline(1, definition, reference).percentile == pytest.approx(20.0)

    def test_population_size_reported(self):
        result = evaluate_baseline(12.0, _definition(), _breakpoints(9.0, 10.5, 12.0, 13.5))
        assert result.population_size == 1741

    def test_descending_breakpoints_rejected(self):
        with pytest.raises(ValidationError, match="ascending"):
            _breakpoints(4, 3, 2, 1)

    def test_values_and_breakpoints_rejected(self):
        with pytest.raises(ValidationError):
            ReferenceDistribution(indicator_id="x", name="n", values=(1, 2), breakpoints=(1, 2, 3, 4))


# ─── Bundled baselines ────────────────────────────────────────────────────────


class TestBundledBaselines:
    def test_cover_every_catalog_indicator(self):
        baselines = load_national_baselines()
        assert {d.id for d in list_indicators()} <= set(baselines)

    def test_cached(self):
        assert load_national_baselines() is load_national_baselines()

    def test_named_reference(self):
        baseline = load_national_baselines()["crime_rate"]
        assert baseline.name == "national-2020"
        assert baseline.breakpoints == (2.0, 4.0, 6.0, 9.0)

    def test_values_section(self):
        baselines = parse_national_baselines({"name": "custom", "values": {"kids_ratio": [10, 11, 12]}})
        assert baselines["kids_ratio"].values == (10.0, 11.0, 12.0)
        assert baselines["kids_ratio"].size == 3

    def test_duplicate_shapes_rejected(self):
        with pytest.raises(ValueError, match="both"):
            parse_national_baselines(
                {"breakpoints": {"kids_ratio": [1, 2, 3, 4]}, "values": {"kids_ratio": [1, 2]}}
            )
