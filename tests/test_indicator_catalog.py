"""Tests for the indicator catalog registry."""

import pytest
import yaml
from pydantic import ValidationError

from townscore.schemas.enums import Category, Direction
from townscore.scorers.indicator_catalog import (
    get_catalog,
    get_indicator,
    list_domains,
    list_indicators,
    parse_catalog,
)

EXPECTED_IDS = {
    "population_total",
    "kids_ratio",
    "condo_price_median",
    "crime_rate",
    "flood_risk",
    "evacuation_sites",
    "elementary_schools_per_capita",
    "junior_high_schools_per_capita",
    "station_count_per_capita",
    "terminal_access_km",
    "hospitals_per_capita",
    "clinics_per_capita",
    "pediatrics_per_capita",
}


def _entry(indicator_id: str, **overrides) -> dict:
    entry = {
        "id": indicator_id,
        "label": indicator_id,
        "unit": "",
        "direction": "higher_better",
        "category": "childcare",
        "precision": 1,
    }
    entry.update(overrides)
    return entry


# ─── Bundled catalog ──────────────────────────────────────────────────────────


class TestBundledCatalog:
    def test_all_indicators_present(self):
        assert {d.id for d in list_indicators()} == EXPECTED_IDS

    def test_ids_unique(self):
        ids = [d.id for d in list_indicators()]
        assert len(ids) == len(set(ids))

    def test_domains_in_file_order(self):
        assert list_domains() == [
            "population",
            "price",
            "safety",
            "disaster",
            "education",
            "transport",
            "healthcare",
        ]

    def test_directions(self):
        assert get_indicator("crime_rate").direction == Direction.LOWER_BETTER
        assert get_indicator("condo_price_median").direction == Direction.LOWER_BETTER
        assert get_indicator("flood_risk").direction == Direction.LOWER_BETTER
        assert get_indicator("terminal_access_km").direction == Direction.LOWER_BETTER
        assert get_indicator("kids_ratio").direction == Direction.HIGHER_BETTER

    def test_categories(self):
        assert get_indicator("kids_ratio").category == Category.CHILDCARE
        assert get_indicator("evacuation_sites").category == Category.DISASTER

    def test_for_domain(self):
        assert [d.id for d in list_indicators(domain="transport")] == [
            "station_count_per_capita",
            "terminal_access_km",
        ]

    def test_unknown_domain(self):
        with pytest.raises(KeyError, match="nightlife"):
            list_indicators(domain="nightlife")

    def test_unknown_indicator(self):
        assert get_indicator("nightlife_index") is None

    def test_cached(self):
        assert get_catalog() is get_catalog()

    def test_versioned(self):
        assert get_catalog().version


# ─── Validation ───────────────────────────────────────────────────────────────


class TestParseCatalog:
    def test_duplicate_id_across_domains(self):
        raw = {"domains": {"population": [_entry("kids_ratio")], "extra": [_entry("kids_ratio")]}}
        with pytest.raises(ValueError, match="Duplicate indicator id 'kids_ratio'"):
            parse_catalog(raw)

    def test_missing_domains_section(self):
        with pytest.raises(ValueError):
            parse_catalog({"version": "1"})

    def test_bad_direction(self):
        with pytest.raises(ValidationError):
            parse_catalog({"domains": {"population": [_entry("kids_ratio", direction="sideways")]}})

    def test_negative_precision(self):
        with pytest.raises(ValidationError):
            parse_catalog({"domains": {"population": [_entry("kids_ratio", precision=-1)]}})

    def test_empty_domain(self):
        catalog = parse_catalog({"version": "x", "domains": {"population": None}})
        assert catalog.for_domain("population") == ()


class TestRegistryDirOverride:
    def test_loads_from_env_dir(self, tmp_path, monkeypatch):
        (tmp_path / "indicators.yaml").write_text(
            yaml.safe_dump({"version": "test", "domains": {"custom": [_entry("custom_metric")]}}),
            encoding="utf-8",
        )
        monkeypatch.setenv("TOWNSCORE_REGISTRY_DIR", str(tmp_path))

        assert [d.id for d in list_indicators()] == ["custom_metric"]
        assert get_catalog().version == "test"
