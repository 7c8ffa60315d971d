"""Pydantic models shared by the scoring engine and its callers."""

from townscore.schemas.enums import (
    AgeBand,
    Category,
    ConfidenceLevel,
    Direction,
    MissingnessBand,
    RankBasis,
)
from townscore.schemas.indicators import (
    AreaIndicatorSet,
    IndicatorDefinition,
    IndicatorObservation,
)
from townscore.schemas.scores import (
    BaselineScore,
    CategoryStarAverage,
    ChoiceScore,
    CityScoreResult,
    CompositeResult,
    ConfidenceInput,
    ConfidenceResult,
    IndicatorStarRating,
    SingleAreaScore,
    WeightPreset,
)

__all__ = [
    # Enums
    "AgeBand",
    "Category",
    "ConfidenceLevel",
    "Direction",
    "MissingnessBand",
    "RankBasis",
    # Inputs
    "AreaIndicatorSet",
    "IndicatorDefinition",
    "IndicatorObservation",
    "WeightPreset",
    "ConfidenceInput",
    # Outputs
    "BaselineScore",
    "CategoryStarAverage",
    "ChoiceScore",
    "CityScoreResult",
    "CompositeResult",
    "ConfidenceResult",
    "IndicatorStarRating",
    "SingleAreaScore",
]
