"""
Additive merge of per-domain fetch results into area observation sets.

Each data domain (population, price, crime, ...) is fetched independently and
keyed by area code. Merging appends the domain's observations to the
matching areas:
- Areas absent from the domain result are returned unchanged
- An empty domain result returns the input areas untouched
- Merges commute: the orchestrator looks observations up by indicator id,
  so the order domains are merged in does not change any score
"""

from typing import Callable, Mapping, Sequence, TypeVar

from townscore.schemas.indicators import AreaIndicatorSet, IndicatorObservation

T = TypeVar("T")

Extractor = Callable[[T], Sequence[IndicatorObservation]]


def merge_indicators(
    areas: Sequence[AreaIndicatorSet],
    domain_data: Mapping[str, T],
    extractor: Extractor,
) -> list[AreaIndicatorSet]:
    """
    Append one domain's observations to each area it covers.

    Args:
        areas: Current observation sets, one per area
        domain_data: area_code -> raw domain record
        extractor: Converts one domain record into observations

    Returns:
        New list of areas; areas without domain data are the same objects
    """
    if not domain_data:
        return list(areas)

    merged = []
    for area in areas:
        record = domain_data.get(area.area_code)
        if record is None:
            merged.append(area)
            continue
        merged.append(area.with_observations(list(extractor(record))))
    return merged


def observations_extractor(record: Sequence[IndicatorObservation]) -> Sequence[IndicatorObservation]:
    """Extractor for domains that already return observations per area."""
    return record
