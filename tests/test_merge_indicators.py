"""Tests for merging per-domain fetch results into area observation sets."""

from townscore.schemas.indicators import AreaIndicatorSet, IndicatorObservation
from townscore.utils.merge_indicators import merge_indicators, observations_extractor


def _area(code: str, *observations: IndicatorObservation) -> AreaIndicatorSet:
    return AreaIndicatorSet(area_name=f"Area {code}", area_code=code, observations=observations)


def _obs(indicator_id: str, value: float) -> IndicatorObservation:
    return IndicatorObservation(indicator_id=indicator_id, raw_value=value, data_year="2023")


def _crime_extractor(record: dict) -> list[IndicatorObservation]:
    return [_obs("crime_rate", record["rate"])]


class TestMergeIndicators:
    def test_empty_domain_data_is_noop(self):
        areas = [_area("1", _obs("kids_ratio", 11.0))]
        merged = merge_indicators(areas, {}, _crime_extractor)
        assert merged == areas
        assert merged[0] is areas[0]

    def test_appends_to_matching_areas(self):
        areas = [_area("1", _obs("kids_ratio", 11.0)), _area("2")]
        merged = merge_indicators(areas, {"1": {"rate": 4.2}}, _crime_extractor)

        assert [o.indicator_id for o in merged[0].observations] == ["kids_ratio", "crime_rate"]
        assert merged[0].find("crime_rate").raw_value == 4.2
        # Absent from the domain result: the same object comes back
        assert merged[1] is areas[1]

    def test_inputs_not_mutated(self):
        areas = [_area("1")]
        merge_indicators(areas, {"1": {"rate": 4.2}}, _crime_extractor)
        assert areas[0].observations == ()

    def test_unknown_area_codes_ignored(self):
        areas = [_area("1")]
        merged = merge_indicators(areas, {"999": {"rate": 1.0}}, _crime_extractor)
        assert merged[0] is areas[0]

    def test_merge_order_does_not_change_lookups(self):
        """Merging domains in either order yields the same value per indicator."""
        areas = [_area("1"), _area("2")]
        crime = {"1": {"rate": 4.2}, "2": {"rate": 6.0}}
        price = {"1": [_obs("condo_price_median", 3000)]}

        crime_first = merge_indicators(merge_indicators(areas, crime, _crime_extractor), price, observations_extractor)
        price_first = merge_indicators(merge_indicators(areas, price, observations_extractor), crime, _crime_extractor)

        for a, b in zip(crime_first, price_first):
            for indicator_id in ("crime_rate", "condo_price_median"):
                assert a.find(indicator_id) == b.find(indicator_id)
