"""
Scoring Orchestrator - scores a candidate set (or a single area) for one preset.

Two entry points:
- score_cities: Choice scores, composite, national baselines, stars,
  confidence and rank for every area in a candidate set
- score_single_city: national baselines and stars only, for a standalone
  area profile where candidate-relative scores are meaningless

Ranking is by descending composite (or overall stars). Ties keep input
order: the earlier area gets the better rank. Results are returned in input
order with `rank` filled in.

Everything here is pure: registries are passed in, the clock is read once
per call, and missing data never raises.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from townscore.config import get_current_year
from townscore.constants import NEUTRAL_STARS, UNKNOWN_DATA_YEAR
from townscore.schemas.enums import RankBasis
from townscore.schemas.indicators import AreaIndicatorSet, IndicatorDefinition, IndicatorObservation
from townscore.schemas.scores import (
    BaselineScore,
    ChoiceScore,
    CityScoreResult,
    ConfidenceInput,
    ConfidenceResult,
    IndicatorStarRating,
    SingleAreaScore,
    WeightPreset,
)
from townscore.scorers.baseline_evaluator import (
    ReferenceDistribution,
    evaluate_baseline,
    load_national_baselines,
)
from townscore.scorers.choice_normalizer import normalize_within_candidates
from townscore.scorers.composite import calculate_composite_score
from townscore.scorers.confidence import evaluate_confidence, parse_data_year
from townscore.scorers.star_mapper import (
    aggregate_stars,
    apply_data_coverage_penalty,
    percentile_to_stars,
    round_stars,
)
from townscore.utils.scoring_audit import OmissionKind, ScoringAuditLog

logger = logging.getLogger(__name__)

Baselines = Mapping[str, ReferenceDistribution]


@dataclass(frozen=True)
class PreparedArea:
    """Per-area results that do not depend on the rest of the candidate set."""

    selected: dict[str, IndicatorObservation]
    baseline: tuple[BaselineScore, ...]
    indicator_stars: tuple[IndicatorStarRating, ...]
    confidence: ConfidenceResult


# ─── Per-area preparation ─────────────────────────────────────────────────────


def _select_observations(
    area: AreaIndicatorSet,
    definitions: Sequence[IndicatorDefinition],
    audit_log: ScoringAuditLog,
) -> dict[str, IndicatorObservation]:
    """Pick one observation per defined indicator; first with a value wins."""
    selected: dict[str, IndicatorObservation] = {}
    for definition in definitions:
        with_value = [
            o for o in area.observations if o.indicator_id == definition.id and o.has_value
        ]
        if not with_value:
            audit_log.record(
                area.area_code,
                OmissionKind.MISSING_INDICATOR,
                f"{definition.label}: no data (excluded from scoring)",
                indicator_id=definition.id,
            )
            continue
        if len(with_value) > 1:
            audit_log.record(
                area.area_code,
                OmissionKind.DUPLICATE_OBSERVATION,
                f"{definition.label}: {len(with_value) - 1} duplicate value(s) ignored, "
                f"used {with_value[0].raw_value} ({with_value[0].data_year or 'year unknown'})",
                indicator_id=definition.id,
            )
        selected[definition.id] = with_value[0]
    return selected


def _latest_data_year(selected: Mapping[str, IndicatorObservation]) -> Optional[int]:
    years = [parse_data_year(o.data_year) for o in selected.values()]
    known = [y for y in years if y is not None]
    return max(known) if known else None


def _area_sample_count(
    area: AreaIndicatorSet, selected: Mapping[str, IndicatorObservation]
) -> Optional[int]:
    """Explicit override, else the smallest observation sample count.

    The derived count is only known when every selected observation reports
    one; a single unverified observation leaves the area's sample size None.
    """
    if area.sample_count is not None:
        return area.sample_count
    counts = [o.sample_count for o in selected.values()]
    if not counts or any(c is None for c in counts):
        return None
    return min(counts)


def _note_older_years(
    area: AreaIndicatorSet,
    definitions: Sequence[IndicatorDefinition],
    selected: Mapping[str, IndicatorObservation],
    latest_year: Optional[int],
    audit_log: ScoringAuditLog,
) -> None:
    if latest_year is None:
        return
    for definition in definitions:
        observation = selected.get(definition.id)
        if observation is None:
            continue
        year = parse_data_year(observation.data_year)
        if year is not None and year < latest_year:
            audit_log.record(
                area.area_code,
                OmissionKind.OLDER_DATA_YEAR,
                f"{definition.label}: uses older data year {observation.data_year} (latest {latest_year})",
                indicator_id=definition.id,
            )


def _national_ratings(
    area: AreaIndicatorSet,
    definitions: Sequence[IndicatorDefinition],
    selected: Mapping[str, IndicatorObservation],
    baselines: Baselines,
    audit_log: ScoringAuditLog,
) -> tuple[list[BaselineScore], list[IndicatorStarRating]]:
    baseline_scores: list[BaselineScore] = []
    indicator_stars: list[IndicatorStarRating] = []
    for definition in definitions:
        observation = selected.get(definition.id)
        if observation is None:
            continue
        baseline = evaluate_baseline(observation.raw_value, definition, baselines.get(definition.id))
        if baseline is None:
            audit_log.record(
                area.area_code,
                OmissionKind.BASELINE_SKIPPED,
                f"{definition.label}: no national baseline (star rating skipped)",
                indicator_id=definition.id,
            )
            continue
        baseline_scores.append(baseline)
        indicator_stars.append(
            IndicatorStarRating(
                indicator_id=definition.id,
                stars=percentile_to_stars(baseline.percentile),
                national_percentile=baseline.percentile,
            )
        )
    return baseline_scores, indicator_stars


def _prepare_area(
    area: AreaIndicatorSet,
    definitions: Sequence[IndicatorDefinition],
    baselines: Baselines,
    current_year: int,
    audit_log: ScoringAuditLog,
) -> PreparedArea:
    """Everything about one area that does not depend on the candidate set."""
    selected = _select_observations(area, definitions, audit_log)

    total = len(definitions)
    missing = total - len(selected)
    missing_rate = missing / total if total else 1.0
    if missing:
        audit_log.record(
            area.area_code,
            OmissionKind.PARTIAL_COVERAGE,
            f"{missing} of {total} indicators missing",
        )

    latest_year = _latest_data_year(selected)
    _note_older_years(area, definitions, selected, latest_year, audit_log)

    baseline_scores, indicator_stars = _national_ratings(
        area, definitions, selected, baselines, audit_log
    )

    confidence = evaluate_confidence(
        ConfidenceInput(
            data_year=str(latest_year) if latest_year is not None else UNKNOWN_DATA_YEAR,
            sample_count=_area_sample_count(area, selected),
            missing_rate=missing_rate,
        ),
        current_year=current_year,
    )

    return PreparedArea(
        selected=selected,
        baseline=tuple(baseline_scores),
        indicator_stars=tuple(indicator_stars),
        confidence=confidence,
    )


def _resolve_baselines(baselines: Optional[Baselines]) -> Baselines:
    return load_national_baselines() if baselines is None else baselines


# ─── Entry points ─────────────────────────────────────────────────────────────


def score_cities(
    areas: Sequence[AreaIndicatorSet],
    definitions: Sequence[IndicatorDefinition],
    preset: WeightPreset,
    baselines: Optional[Baselines] = None,
    rank_by: Union[RankBasis, str] = RankBasis.COMPOSITE,
    current_year: Optional[int] = None,
    audit_log: Optional[ScoringAuditLog] = None,
) -> list[CityScoreResult]:
    """
    Score and rank a candidate set.

    Args:
        areas: Candidate set, one AreaIndicatorSet per area
        definitions: Indicator definitions in play for this report
        preset: Resolved weight preset
        baselines: indicator_id -> national reference (bundled baselines when None)
        rank_by: "composite" (default) or "stars"
        current_year: Year used to age data (configured clock when None)
        audit_log: Optional log that collects every omission recorded

    Returns:
        One CityScoreResult per area, in input order, with 1-based ranks
    """
    basis = RankBasis(rank_by)
    if not areas:
        return []

    reference = _resolve_baselines(baselines)
    year_now = current_year if current_year is not None else get_current_year()
    audits = [ScoringAuditLog() for _ in areas]

    prepared = [
        _prepare_area(area, definitions, reference, year_now, audit)
        for area, audit in zip(areas, audits)
    ]

    # Candidate-relative scores, keyed by input position so repeated area codes stay distinct
    choice_by_area: list[list[ChoiceScore]] = [[] for _ in areas]
    for definition in definitions:
        values = []
        for index, info in enumerate(prepared):
            observation = info.selected.get(definition.id)
            values.append((index, observation.raw_value if observation else None))
        for index, choice in normalize_within_candidates(values, definition).items():
            choice_by_area[index].append(choice)

    unranked = []
    for index, (area, info) in enumerate(zip(areas, prepared)):
        composite = calculate_composite_score(choice_by_area[index], definitions, preset)
        overall = aggregate_stars(info.indicator_stars, definitions, preset)
        unranked.append(
            {
                "city_name": area.area_name,
                "area_code": area.area_code,
                "composite_score": composite.score,
                "choice": tuple(choice_by_area[index]),
                "baseline": info.baseline,
                "confidence": info.confidence,
                "notes": audits[index].notes_for(area.area_code),
                "star_rating": round_stars(overall) if overall is not None else None,
                "indicator_stars": info.indicator_stars,
            }
        )

    if basis == RankBasis.STARS:
        order = sorted(range(len(unranked)), key=lambda i: -(unranked[i]["star_rating"] or 0))
    else:
        order = sorted(range(len(unranked)), key=lambda i: -unranked[i]["composite_score"])
    ranks = {position: rank for rank, position in enumerate(order, start=1)}

    omissions = sum(len(audit) for audit in audits)
    if audit_log is not None:
        for audit in audits:
            audit_log.extend(audit)

    logger.info(
        f"Scored {len(areas)} areas with preset '{preset.name}' "
        f"(rank by {basis.value}, {omissions} omissions)"
    )
    return [CityScoreResult(rank=ranks[i], **fields) for i, fields in enumerate(unranked)]


def score_single_city(
    area: AreaIndicatorSet,
    definitions: Sequence[IndicatorDefinition],
    preset: WeightPreset,
    baselines: Optional[Baselines] = None,
    current_year: Optional[int] = None,
    audit_log: Optional[ScoringAuditLog] = None,
) -> SingleAreaScore:
    """
    Nationally anchored profile for one area.

    The overall star rating is the preset-weighted mean of indicator stars
    (neutral 3 when nothing usable), pulled toward neutral by the data
    coverage penalty, then rounded half-up to an integer.
    """
    reference = _resolve_baselines(baselines)
    year_now = current_year if current_year is not None else get_current_year()
    audit = ScoringAuditLog()

    info = _prepare_area(area, definitions, reference, year_now, audit)
    indicator_stars = info.indicator_stars

    overall = aggregate_stars(indicator_stars, definitions, preset)
    raw_stars = overall if overall is not None else NEUTRAL_STARS
    adjusted = apply_data_coverage_penalty(raw_stars, len(indicator_stars), len(definitions))

    if audit_log is not None:
        audit_log.extend(audit)

    logger.debug(
        f"Profiled {area.area_code} with preset '{preset.name}': "
        f"raw stars {raw_stars:.2f}, after coverage {adjusted}"
    )
    return SingleAreaScore(
        city_name=area.area_name,
        area_code=area.area_code,
        star_rating=round_stars(adjusted),
        indicator_stars=indicator_stars,
        baseline=info.baseline,
        confidence=info.confidence,
        notes=audit.notes_for(area.area_code),
    )
