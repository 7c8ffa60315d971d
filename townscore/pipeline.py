"""
Report pipeline - per-domain fetch phases feeding the scoring engine.

Flow for one report:
1. Resolve the preset (unknown names fail closed before any fetching)
2. Split the candidate areas into batches
3. For each batch, fetch every enabled data domain in parallel and merge the
   results into the areas' observation sets
4. Score the merged candidate set and bundle everything for rendering and
   persistence

A domain that fails for one batch is skipped for the rest of the run
(bounded degradation instead of retrying into cascading latency). The
engine tolerates the reduced observation sets that leaves behind; every
area that lost a domain gets a note naming it and the failure.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from townscore.config import get_log_level
from townscore.schemas.enums import RankBasis
from townscore.schemas.indicators import AreaIndicatorSet, IndicatorDefinition, IndicatorObservation
from townscore.schemas.scores import CityScoreResult, WeightPreset
from townscore.scorers.baseline_evaluator import ReferenceDistribution
from townscore.scorers.indicator_catalog import get_catalog
from townscore.scorers.orchestrator import score_cities
from townscore.scorers.preset_registry import get_preset
from townscore.utils.fetch_pool import FetchPool
from townscore.utils.logger import ScoringLogger, get_logger
from townscore.utils.merge_indicators import merge_indicators
from townscore.utils.scoring_audit import OmissionKind, ScoringAuditLog

DEFAULT_BATCH_SIZE = 20


@dataclass(frozen=True)
class DomainSource:
    """One per-domain fetch phase.

    `fetch` receives a batch of area codes and returns area_code -> record;
    `extract` converts one record into observations.
    """

    name: str
    fetch: Callable[[list[str]], Mapping[str, Any]]
    extract: Callable[[Any], Sequence[IndicatorObservation]]


class DomainBreaker:
    """
    Short-circuit breaker for per-domain fetches within one report run.

    Once a domain trips, every later batch in the same run skips it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tripped: dict[str, str] = {}

    def allows(self, domain: str) -> bool:
        with self._lock:
            return domain not in self._tripped

    def trip(self, domain: str, reason: str) -> None:
        with self._lock:
            self._tripped.setdefault(domain, reason)

    @property
    def tripped(self) -> dict[str, str]:
        """domain -> reason for the first failure."""
        with self._lock:
            return dict(self._tripped)


@dataclass
class ReportBundle:
    """Everything one report run produced, ready for rendering or persistence."""

    preset: WeightPreset
    definitions: tuple[IndicatorDefinition, ...]
    results: list[CityScoreResult]
    areas: list[AreaIndicatorSet]
    domains_with_data: list[str] = field(default_factory=list)
    skipped_domains: dict[str, str] = field(default_factory=dict)
    audit_log: ScoringAuditLog = field(default_factory=ScoringAuditLog)
    rank_by: RankBasis = RankBasis.COMPOSITE
    warnings: list[dict] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)


def _batches(items: Sequence[AreaIndicatorSet], size: int) -> list[list[AreaIndicatorSet]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _definitions_for(domains: Sequence[str]) -> tuple[IndicatorDefinition, ...]:
    """Catalog definitions for the given domains, in catalog order."""
    catalog = get_catalog()
    wanted = set(domains)
    return tuple(d for name, group in catalog.domains.items() if name in wanted for d in group)


def _note_unavailable_domains(
    result: CityScoreResult,
    missed: Sequence[tuple[str, str]],
    audit_log: ScoringAuditLog,
) -> CityScoreResult:
    """Prepend one note per data domain that produced nothing for the area."""
    if not missed:
        return result
    notes = []
    for domain, reason in missed:
        entry = audit_log.record(
            result.area_code,
            OmissionKind.DOMAIN_SKIPPED,
            f"{domain}: data unavailable ({reason}), its indicators count as missing",
        )
        notes.append(entry.message)
    return result.model_copy(update={"notes": tuple(notes) + result.notes})


def run_report(
    areas: Sequence[AreaIndicatorSet],
    preset_name: str,
    sources: Sequence[DomainSource] = (),
    base_domains: Sequence[str] = ("population",),
    definitions: Optional[Sequence[IndicatorDefinition]] = None,
    baselines: Optional[Mapping[str, ReferenceDistribution]] = None,
    rank_by: Union[RankBasis, str] = RankBasis.COMPOSITE,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_workers: int = 4,
    current_year: Optional[int] = None,
    log: Optional[ScoringLogger] = None,
) -> ReportBundle:
    """
    Run the fetch phases, merge, and score one candidate set.

    Args:
        areas: Candidate areas with their base observations (e.g. population)
        preset_name: Weight preset name; unknown names raise UnknownPresetError
        sources: Optional per-domain fetch phases
        base_domains: Catalog domains already present in `areas`
        definitions: Explicit definitions; when None, the catalog domains in
            `base_domains` plus every requested source are used, so a domain
            that failed still counts against coverage
        baselines: National references (bundled when None)
        rank_by: "composite" or "stars"
        batch_size: Areas per fetch batch
        max_workers: Parallel domain fetches per batch
        current_year: Year used to age data
        log: Logger for the run (default scoring logger when None); its
            tracked warnings are reset at the start and returned on the bundle

    Returns:
        ReportBundle with results, definitions, preset, skipped domains and
        the run's warnings
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    preset = get_preset(preset_name)
    basis = RankBasis(rank_by)
    log = log or get_logger(log_level=get_log_level())
    log.clear_tracking()
    breaker = DomainBreaker()
    pool = FetchPool(max_workers=max_workers, logger=log.logger)
    by_name = {source.name: source for source in sources}
    domains_with_data: list[str] = []

    merged: list[AreaIndicatorSet] = []
    # Per input position: (domain, reason) for every domain that produced nothing for the area
    unavailable: list[list[tuple[str, str]]] = []
    for batch_number, batch in enumerate(_batches(areas, batch_size), start=1):
        codes = [area.area_code for area in batch]
        missed: list[tuple[str, str]] = []
        active = []
        for source in sources:
            if breaker.allows(source.name):
                active.append(source.name)
            else:
                reason = breaker.tripped[source.name]
                log.log_domain_skipped(source.name, batch_number, reason)
                missed.append((source.name, reason))

        outcomes = pool.map(lambda name: by_name[name].fetch(codes), active, desc=f"Batch {batch_number}")
        for success, name, payload in outcomes:
            if not success:
                reason = f"{type(payload).__name__}: {payload}"
                breaker.trip(name, reason)
                log.warning("Domain fetch failed, skipping for rest of run", domain=name, batch=batch_number)
                missed.append((name, reason))
                continue
            if payload and name not in domains_with_data:
                domains_with_data.append(name)
            batch = merge_indicators(batch, payload, by_name[name].extract)
        merged.extend(batch)
        unavailable.extend(list(missed) for _ in batch)

    if definitions is None:
        # Every requested domain stays in play so failed ones count as missing
        definitions = _definitions_for(list(base_domains) + [source.name for source in sources])

    audit_log = ScoringAuditLog()
    with log.time_batch("score_cities", len(merged)):
        results = score_cities(
            merged,
            definitions,
            preset,
            baselines=baselines,
            rank_by=basis,
            current_year=current_year,
            audit_log=audit_log,
        )

    results = [
        _note_unavailable_domains(result, missed, audit_log)
        for result, missed in zip(results, unavailable)
    ]

    return ReportBundle(
        preset=preset,
        definitions=tuple(definitions),
        results=results,
        areas=merged,
        domains_with_data=domains_with_data,
        skipped_domains=breaker.tripped,
        audit_log=audit_log,
        rank_by=basis,
        warnings=log.get_warning_summary()["warnings"],
    )
