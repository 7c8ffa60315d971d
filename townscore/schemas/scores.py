"""Score, preset and result models produced by the scoring engine.

Two axes are kept apart throughout:
- Choice scores are relative to the current candidate set (min-max, 0-100)
- Baseline percentiles and stars are relative to the national distribution

Renderers must label which axis they are showing and never mix them.
"""

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Category, ConfidenceLevel


class WeightPreset(BaseModel):
    """Named per-category weights expressing one user priority.

    Weights are non-negative and need not sum to 1; the composite is
    renormalized over the indicators actually present. Categories missing
    from `weights` count as weight 0.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Preset key (e.g. 'childcare')")
    label: str = Field(description="Display label")
    weights: dict[Category, float] = Field(description="Category -> non-negative weight")

    @field_validator("weights")
    @classmethod
    def _validate_weights(cls, weights: dict[Category, float]) -> dict[Category, float]:
        for category, weight in weights.items():
            if not math.isfinite(weight):
                raise ValueError(f"weight for {category.value} must be finite, got {weight}")
            if weight < 0:
                raise ValueError(f"weight for {category.value} must be non-negative, got {weight}")
        return weights

    def weight_for(self, category: Category) -> float:
        return self.weights.get(category, 0.0)


class ChoiceScore(BaseModel):
    """Candidate-relative score for one indicator (0-100)."""

    model_config = ConfigDict(frozen=True)

    indicator_id: str
    score: float = Field(ge=0.0, le=100.0)


class BaselineScore(BaseModel):
    """National percentile for one indicator, independent of the candidate set."""

    model_config = ConfigDict(frozen=True)

    indicator_id: str
    percentile: float = Field(ge=0.0, le=100.0)
    population_size: int = Field(ge=0, description="Size of the reference set actually used")
    baseline_name: str = Field(description="Reference distribution name (e.g. 'national-2020')")


class IndicatorStarRating(BaseModel):
    """1-5 star rating derived from a national percentile."""

    model_config = ConfigDict(frozen=True)

    indicator_id: str
    stars: int = Field(ge=1, le=5)
    national_percentile: float = Field(ge=0.0, le=100.0)


class CategoryStarAverage(BaseModel):
    """Unweighted mean of indicator stars within one category (display aggregate)."""

    model_config = ConfigDict(frozen=True)

    category: Category
    average_stars: float = Field(ge=1.0, le=5.0)
    indicator_count: int = Field(ge=1)


class ConfidenceInput(BaseModel):
    """Data-quality signals behind one area's score."""

    model_config = ConfigDict(frozen=True)

    data_year: str = Field(description="Data year string; unparsable values are treated as maximally stale")
    sample_count: Optional[int] = Field(default=None, ge=0, description="None when sample size is unknown")
    missing_rate: float = Field(ge=0.0, le=1.0)


class ConfidenceResult(BaseModel):
    """Trust label with a human-readable reason citing the data year."""

    model_config = ConfigDict(frozen=True)

    level: ConfidenceLevel
    reason: str = Field(min_length=1)


class CompositeResult(BaseModel):
    """Weighted composite of Choice scores for one area."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=100.0)
    used_indicator_count: int = Field(ge=0)
    total_indicator_count: int = Field(ge=0)


class CityScoreResult(BaseModel):
    """Final per-area record for a candidate-set comparison.

    `composite_score` and `rank` are candidate-set relative; `star_rating`
    and `indicator_stars` are nationally anchored.
    """

    model_config = ConfigDict(frozen=True)

    city_name: str
    area_code: str
    composite_score: float = Field(ge=0.0, le=100.0)
    rank: int = Field(ge=1, description="1-based rank within the candidate set")
    choice: tuple[ChoiceScore, ...] = ()
    baseline: tuple[BaselineScore, ...] = ()
    confidence: ConfidenceResult
    notes: tuple[str, ...] = ()
    star_rating: Optional[int] = Field(default=None, ge=1, le=5)
    indicator_stars: tuple[IndicatorStarRating, ...] = ()


class SingleAreaScore(BaseModel):
    """Nationally anchored profile for one area with no candidate set.

    Carries no rank and no Choice scores: min-max normalization is not
    meaningful for a single area.
    """

    model_config = ConfigDict(frozen=True)

    city_name: str
    area_code: str
    star_rating: int = Field(ge=1, le=5)
    indicator_stars: tuple[IndicatorStarRating, ...] = ()
    baseline: tuple[BaselineScore, ...] = ()
    confidence: ConfidenceResult
    notes: tuple[str, ...] = ()
