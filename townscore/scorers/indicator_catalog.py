"""Indicator Catalog - typed registry of indicator definitions keyed by id.

Definitions are grouped by data domain (the per-domain fetch phase that
produces them). The catalog is loaded from YAML once per process and cached
read-only; callers pass definitions explicitly into the scoring functions.

Usage:
    from townscore.scorers.indicator_catalog import get_indicator, list_indicators

    definitions = list_indicators()                  # whole catalog
    transport = list_indicators(domain="transport")  # one domain
    crime = get_indicator("crime_rate")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from townscore.config import get_registry_dir
from townscore.schemas.indicators import IndicatorDefinition

logger = logging.getLogger(__name__)

CATALOG_FILENAME = "indicators.yaml"


@dataclass(frozen=True)
class IndicatorCatalog:
    """Versioned, domain-grouped set of indicator definitions."""

    version: str
    domains: dict[str, tuple[IndicatorDefinition, ...]] = field(default_factory=dict)

    @property
    def definitions(self) -> tuple[IndicatorDefinition, ...]:
        """All definitions in catalog order."""
        return tuple(d for group in self.domains.values() for d in group)

    def get(self, indicator_id: str) -> Optional[IndicatorDefinition]:
        for definition in self.definitions:
            if definition.id == indicator_id:
                return definition
        return None

    def for_domain(self, domain: str) -> tuple[IndicatorDefinition, ...]:
        if domain not in self.domains:
            raise KeyError(f"Unknown indicator domain '{domain}' (known: {', '.join(self.domains)})")
        return self.domains[domain]


# Module-level cache
_catalog_cache: Optional[IndicatorCatalog] = None


def _get_config_path() -> Path:
    return get_registry_dir() / CATALOG_FILENAME


def _validate_unique_ids(domains: dict[str, tuple[IndicatorDefinition, ...]]) -> None:
    """Fail fast on duplicate indicator ids anywhere in the catalog."""
    seen: dict[str, str] = {}
    for domain, definitions in domains.items():
        for definition in definitions:
            if definition.id in seen:
                raise ValueError(
                    f"Duplicate indicator id '{definition.id}' in domains "
                    f"'{seen[definition.id]}' and '{domain}'"
                )
            seen[definition.id] = domain


def parse_catalog(raw: dict) -> IndicatorCatalog:
    """Build a catalog from the parsed YAML document.

    Raises:
        ValueError: On duplicate ids or a malformed document
        pydantic.ValidationError: On a malformed indicator entry
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("domains"), dict):
        raise ValueError("Indicator catalog must be a mapping with a 'domains' section")

    domains: dict[str, tuple[IndicatorDefinition, ...]] = {}
    for domain, entries in raw["domains"].items():
        domains[domain] = tuple(IndicatorDefinition(**entry) for entry in entries or [])

    _validate_unique_ids(domains)
    return IndicatorCatalog(version=str(raw.get("version", "")), domains=domains)


def load_catalog(path: Optional[Path] = None) -> IndicatorCatalog:
    """Load and validate a catalog file without touching the cache."""
    config_path = path or _get_config_path()
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return parse_catalog(raw)


def get_catalog() -> IndicatorCatalog:
    """Load and cache the indicator catalog."""
    global _catalog_cache
    if _catalog_cache is not None:
        return _catalog_cache

    _catalog_cache = load_catalog()
    logger.info(
        f"Loaded {len(_catalog_cache.definitions)} indicators in "
        f"{len(_catalog_cache.domains)} domains (catalog {_catalog_cache.version})"
    )
    return _catalog_cache


def list_indicators(domain: Optional[str] = None) -> tuple[IndicatorDefinition, ...]:
    """List definitions for one domain, or the whole catalog when domain is None."""
    catalog = get_catalog()
    if domain is None:
        return catalog.definitions
    return catalog.for_domain(domain)


def list_domains() -> list[str]:
    """List domain names in catalog order."""
    return list(get_catalog().domains.keys())


def get_indicator(indicator_id: str) -> Optional[IndicatorDefinition]:
    """Look up one definition by id. Returns None for unknown ids."""
    return get_catalog().get(indicator_id)


def clear_cache():
    """Clear the catalog cache (useful for testing)."""
    global _catalog_cache
    _catalog_cache = None
