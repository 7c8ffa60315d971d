"""
Central configuration for the scoring engine.

Registries (indicator catalog, weight presets, national baselines) ship as
YAML inside the package. Runtime options come from environment variables,
optionally loaded from a .env file:
  - TOWNSCORE_REGISTRY_DIR (default: bundled townscore/data/)
  - TOWNSCORE_DATA_DIR (default: ~/.townscore-data/)
  - TOWNSCORE_CURRENT_YEAR (default: system clock year)
  - TOWNSCORE_LOG_LEVEL (default: INFO)
"""

import os
from datetime import date
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

BUNDLED_REGISTRY_DIR = Path(__file__).parent / "data"


def get_registry_dir() -> Path:
    """
    Get the directory holding the YAML registries.

    Uses TOWNSCORE_REGISTRY_DIR if set, otherwise the files bundled with
    the package.

    Returns:
        Path to registry directory
    """
    env_path = os.environ.get("TOWNSCORE_REGISTRY_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return BUNDLED_REGISTRY_DIR


def get_data_dir() -> Path:
    """Get the local directory for exported report documents."""
    env_path = os.environ.get("TOWNSCORE_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.home() / ".townscore-data"


def get_reports_dir() -> Path:
    """Get the report export directory."""
    return get_data_dir() / "reports"


def get_current_year() -> int:
    """Year used to age statistics when evaluating confidence.

    TOWNSCORE_CURRENT_YEAR pins the year for reproducible report runs.
    """
    pinned = os.environ.get("TOWNSCORE_CURRENT_YEAR")
    if pinned:
        try:
            return int(pinned)
        except ValueError:
            raise ValueError(f"TOWNSCORE_CURRENT_YEAR must be an integer year, got {pinned!r}") from None
    return date.today().year


def get_log_level(default: str = "INFO") -> str:
    """Get the configured log level name."""
    return os.environ.get("TOWNSCORE_LOG_LEVEL", default).upper()


def ensure_reports_dir(base: Optional[Path] = None) -> Path:
    """Ensure the report export directory exists."""
    reports_dir = base or get_reports_dir()
    reports_dir.mkdir(parents=True, exist_ok=True)
    return reports_dir
