"""Tests for the preset-weighted composite score."""

import pytest

from townscore.schemas.enums import Category, Direction
from townscore.schemas.indicators import IndicatorDefinition
from townscore.schemas.scores import ChoiceScore, WeightPreset
from townscore.scorers.composite import calculate_composite_score, split_category_weights


def _choice(indicator_id: str, score: float) -> ChoiceScore:
    return ChoiceScore(indicator_id=indicator_id, score=score)


# ─── Fallbacks ────────────────────────────────────────────────────────────────


class TestFallbacks:
    def test_empty_scores(self, definitions, preset):
        result = calculate_composite_score([], definitions, preset)
        assert result.score == 0
        assert result.used_indicator_count == 0
        assert result.total_indicator_count == len(definitions)

    def test_single_indicator_is_exact(self, definitions, preset):
        """One matching indicator: composite equals its score regardless of weight."""
        for score in (0.0, 33.3, 73.3, 99.99, 100.0):
            result = calculate_composite_score([_choice("crime_rate", score)], definitions, preset)
            assert result.score == score
            assert result.used_indicator_count == 1

    def test_unknown_indicator_ignored(self, definitions, preset):
        with_unknown = calculate_composite_score(
            [_choice("kids_ratio", 80.0), _choice("nightlife_index", 10.0)], definitions, preset
        )
        without = calculate_composite_score([_choice("kids_ratio", 80.0)], definitions, preset)
        assert with_unknown == without
        assert with_unknown.used_indicator_count == 1

    def test_zero_weight_preset(self, definitions):
        zero = WeightPreset(name="zero", label="Zero", weights={})
        result = calculate_composite_score(
            [_choice("kids_ratio", 80.0), _choice("crime_rate", 40.0)], definitions, zero
        )
        assert result.score == 0
        assert result.used_indicator_count == 2

    def test_zero_weight_category_does_not_dilute(self, definitions):
        """Indicators in a zero-weight category count as used but add no weight."""
        price_only = WeightPreset(name="price", label="Price", weights={Category.PRICE: 1.0})
        result = calculate_composite_score(
            [_choice("condo_price_median", 60.0), _choice("crime_rate", 0.0)], definitions, price_only
        )
        assert result.score == 60.0
        assert result.used_indicator_count == 2


# ─── Weighted mean ────────────────────────────────────────────────────────────


class TestWeightedMean:
    def test_two_category_scenario(self):
        """kids 80 @ 0.5, price 60 @ 0.15 -> 49 / 0.65."""
        definitions = [
            IndicatorDefinition(
                id="kids_ratio", label="Kids", unit="%", direction=Direction.HIGHER_BETTER,
                category=Category.CHILDCARE, precision=1,
            ),
            IndicatorDefinition(
                id="price_median", label="Price", unit="10k JPY", direction=Direction.LOWER_BETTER,
                category=Category.PRICE, precision=0,
            ),
        ]
        preset = WeightPreset(
            name="custom", label="Custom", weights={Category.CHILDCARE: 0.5, Category.PRICE: 0.15}
        )
        result = calculate_composite_score(
            [_choice("kids_ratio", 80.0), _choice("price_median", 60.0)], definitions, preset
        )
        assert result.score == pytest.approx(75.38, abs=0.05)
        assert result.score == pytest.approx(49 / 0.65)
        assert result.used_indicator_count == 2
        assert result.total_indicator_count == 2

    def test_renormalized_over_present_indicators(self, definitions, preset):
        """Missing indicators drop out of the denominator instead of counting as 0."""
        result = calculate_composite_score(
            [_choice("kids_ratio", 100.0), _choice("crime_rate", 50.0)], definitions, preset
        )
        # (0.5 * 100 + 0.2 * 50) / 0.7
        assert result.score == pytest.approx(60 / 0.7)

    def test_bounds(self, definitions, preset):
        for scores in ([0.0, 0.0, 0.0, 0.0], [100.0, 100.0, 100.0, 100.0], [0.0, 100.0, 50.0, 25.0]):
            choices = [_choice(d.id, s) for d, s in zip(definitions, scores)]
            result = calculate_composite_score(choices, definitions, preset)
            assert 0.0 <= result.score <= 100.0


# ─── Shared category weights ─────────────────────────────────────────────────


class TestSharedCategoryWeights:
    def test_category_weight_split_across_present_indicators(self, definitions, preset):
        weights = split_category_weights(["kids_ratio", "population_total", "condo_price_median"], definitions, preset)
        assert weights == {
            "kids_ratio": pytest.approx(0.25),
            "population_total": pytest.approx(0.25),
            "condo_price_median": pytest.approx(0.3),
        }

    def test_lone_indicator_gets_full_category_weight(self, definitions, preset):
        weights = split_category_weights(["kids_ratio", "condo_price_median"], definitions, preset)
        assert weights["kids_ratio"] == pytest.approx(0.5)

    def test_unknown_ids_left_out(self, definitions, preset):
        assert split_category_weights(["nightlife_index"], definitions, preset) == {}

    def test_category_contributes_its_weight_once(self, definitions, preset):
        """Two childcare indicators at 100 and price at 0: childcare weighs 0.5, not 1.0."""
        result = calculate_composite_score(
            [
                _choice("kids_ratio", 100.0),
                _choice("population_total", 100.0),
                _choice("condo_price_median", 0.0),
            ],
            definitions,
            preset,
        )
        # (0.25 * 100 + 0.25 * 100 + 0.3 * 0) / 0.8
        assert result.score == pytest.approx(62.5)
        assert result.used_indicator_count == 3
