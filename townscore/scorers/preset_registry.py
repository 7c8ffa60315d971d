"""Preset Registry - the closed set of named weight presets.

An unknown preset name fails closed with UnknownPresetError. The registry
never substitutes a default on the caller's behalf; callers that want a
fallback ask for `get_default_preset_name()` explicitly.

Usage:
    from townscore.scorers.preset_registry import get_preset

    preset = get_preset("childcare")
    # preset.weight_for(Category.PRICE) == 0.2
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from townscore.config import get_registry_dir
from townscore.schemas.scores import WeightPreset

logger = logging.getLogger(__name__)

PRESETS_FILENAME = "weight_presets.yaml"


class UnknownPresetError(ValueError):
    """Raised when a preset name is not in the registry."""

    def __init__(self, name: str, known: list[str]):
        self.name = name
        self.known = known
        super().__init__(f"Unknown weight preset '{name}' (known: {', '.join(known)})")


# Module-level cache
_registry_cache: Optional[dict] = None


def _get_config_path() -> Path:
    return get_registry_dir() / PRESETS_FILENAME


def parse_presets(raw: dict) -> dict:
    """Build the registry dict from the parsed YAML document.

    Raises:
        ValueError: On a malformed document or a default that is not a preset
        pydantic.ValidationError: On negative, non-numeric or unknown-category weights
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("presets"), dict):
        raise ValueError("Weight preset registry must be a mapping with a 'presets' section")

    presets: dict[str, WeightPreset] = {}
    for name, data in raw["presets"].items():
        presets[name] = WeightPreset(
            name=name,
            label=data.get("label", name),
            weights=data.get("weights") or {},
        )

    default_preset = raw.get("default_preset")
    if default_preset is not None and default_preset not in presets:
        raise ValueError(f"default_preset '{default_preset}' is not a defined preset")

    return {"presets": presets, "default_preset": default_preset}


def _load_registry() -> dict:
    """Load and cache presets from YAML."""
    global _registry_cache
    if _registry_cache is not None:
        return _registry_cache

    config_path = _get_config_path()
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    _registry_cache = parse_presets(raw)
    logger.info(f"Loaded {len(_registry_cache['presets'])} weight presets")
    return _registry_cache


def find_preset(name: str) -> Optional[WeightPreset]:
    """Look up a preset by name. Returns None when unknown."""
    return _load_registry()["presets"].get(name)


def get_preset(name: str) -> WeightPreset:
    """Get a preset by name.

    Raises:
        UnknownPresetError: If the name is not a registered preset
    """
    preset = find_preset(name)
    if preset is None:
        raise UnknownPresetError(name, list_presets())
    return preset


def list_presets() -> list[str]:
    """List all available preset names."""
    return list(_load_registry()["presets"].keys())


def get_default_preset_name() -> Optional[str]:
    """Preset name callers may fall back to, if the registry declares one."""
    return _load_registry()["default_preset"]


def clear_cache():
    """Clear the registry cache (useful for testing)."""
    global _registry_cache
    _registry_cache = None
