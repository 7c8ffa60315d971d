"""Indicator definitions, observations and per-area observation sets.

Definitions come from the catalog registry. Observations are produced by the
per-domain data collectors and merged into one AreaIndicatorSet per area.
"""

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Category, Direction


class IndicatorDefinition(BaseModel):
    """Static metadata for one indicator. Identity is `id`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1, description="Stable indicator key (e.g. 'crime_rate')")
    label: str = Field(description="Display label")
    unit: str = Field(description="Display unit (e.g. '%', 'cases/1k people')")
    direction: Direction = Field(description="higher_better or lower_better")
    category: Category = Field(description="Category used to look up the preset weight")
    precision: int = Field(ge=0, description="Display decimal places")


class IndicatorObservation(BaseModel):
    """One raw value for one area x one indicator x one data year."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    indicator_id: str = Field(description="Indicator key this value belongs to")
    raw_value: Optional[float] = Field(default=None, description="Raw value; None when the source had no value")
    data_year: str = Field(default="", description="Data year as reported by the source (may be empty)")
    source_id: str = Field(default="", description="Source identifier (e.g. 'estat', 'reinfolib')")
    sample_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Number of underlying records (e.g. transactions), None when unknown",
    )

    @field_validator("raw_value")
    @classmethod
    def _reject_non_finite(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not math.isfinite(value):
            return None
        return value

    @property
    def has_value(self) -> bool:
        return self.raw_value is not None


class AreaIndicatorSet(BaseModel):
    """All observations collected for one area in one report request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    area_name: str = Field(description="Area display name (municipality, mesh cell, station)")
    area_code: str = Field(description="Area code used to join per-domain datasets")
    observations: tuple[IndicatorObservation, ...] = Field(default_factory=tuple)
    sample_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Area-level sample size override; derived from observations when None",
    )

    def find(self, indicator_id: str) -> Optional[IndicatorObservation]:
        """First observation with a value for the indicator, if any."""
        for observation in self.observations:
            if observation.indicator_id == indicator_id and observation.has_value:
                return observation
        return None

    def with_observations(self, extra: list[IndicatorObservation]) -> "AreaIndicatorSet":
        """Return a copy with `extra` appended. Empty `extra` returns self."""
        if not extra:
            return self
        return self.model_copy(update={"observations": self.observations + tuple(extra)})
