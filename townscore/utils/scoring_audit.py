"""
Scoring Audit Trail - records why indicators were left out of a score.

When an area is scored on partial data, this module logs:
- Indicators with no value for the area
- Indicators whose national baseline was skipped
- Indicators that used an older data year than the area's latest
- Duplicate observations that were ignored
- Data domains whose fetch failed or was short-circuited for the area

The orchestrator (and the report pipeline, for domain skips) turns each
area's entries into the `notes` on its result, so downstream renderers can
explain discrepancies instead of silently dropping indicators.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class OmissionKind(Enum):
    """Why an indicator did not contribute fully to an area's score."""

    MISSING_INDICATOR = "missing_indicator"  # No value for the area
    BASELINE_SKIPPED = "baseline_skipped"  # No national reference
    OLDER_DATA_YEAR = "older_data_year"  # Older than the area's latest year
    DUPLICATE_OBSERVATION = "duplicate_observation"  # Extra values ignored
    PARTIAL_COVERAGE = "partial_coverage"  # Area-level summary
    DOMAIN_SKIPPED = "domain_skipped"  # Fetch failed or breaker open


@dataclass
class ScoringAuditEntry:
    """A single omission recorded while scoring one area."""

    area_code: str
    kind: OmissionKind
    message: str
    indicator_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """JSON-ready form (enum as its value, timestamp as ISO 8601)."""
        return {
            "area_code": self.area_code,
            "kind": self.kind.value,
            "message": self.message,
            "indicator_id": self.indicator_id,
            "timestamp": self.timestamp.isoformat(),
        }


class ScoringAuditLog:
    """Collects omission entries while scoring a batch of areas.

    Usage:
        audit_log = ScoringAuditLog()

        audit_log.record(
            area_code="13112",
            kind=OmissionKind.MISSING_INDICATOR,
            message="Crime rate: no data (excluded from scoring)",
            indicator_id="crime_rate",
        )

        notes = audit_log.notes_for("13112")
    """

    def __init__(self):
        self._entries: list[ScoringAuditEntry] = []

    def record(
        self,
        area_code: str,
        kind: OmissionKind,
        message: str,
        indicator_id: Optional[str] = None,
    ) -> ScoringAuditEntry:
        """Record one omission for an area.

        Omissions are expected states on partial data, so they are logged at
        DEBUG rather than WARNING.
        """
        entry = ScoringAuditEntry(
            area_code=area_code,
            kind=kind,
            message=message,
            indicator_id=indicator_id,
        )
        self._entries.append(entry)
        logger.debug(f"Area {area_code}: {kind.value}: {message}")
        return entry

    def extend(self, other: "ScoringAuditLog") -> None:
        """Append every entry from another log (e.g. one area's log into a report's)."""
        self._entries.extend(other.get_all_entries())

    def entries_for(self, area_code: str) -> list[ScoringAuditEntry]:
        return [e for e in self._entries if e.area_code == area_code]

    def notes_for(self, area_code: str) -> tuple[str, ...]:
        """Free-text notes for one area, in the order they were recorded."""
        return tuple(e.message for e in self.entries_for(area_code))

    def get_all_entries(self) -> list[ScoringAuditEntry]:
        return list(self._entries)

    def counts_by_kind(self) -> dict[str, int]:
        """How often each omission kind was recorded, across all areas."""
        return dict(Counter(e.kind.value for e in self._entries))

    def get_summary_for_area(self, area_code: str) -> dict:
        """One area's omissions grouped by kind, for debugging a surprising score."""
        by_kind: dict[str, list[dict]] = {}
        for entry in self.entries_for(area_code):
            by_kind.setdefault(entry.kind.value, []).append(entry.to_dict())
        return {
            "area_code": area_code,
            "total_entries": sum(len(v) for v in by_kind.values()),
            "entries_by_kind": by_kind,
        }

    def export_to_json(self, filepath: Union[str, Path]) -> Path:
        """Write every entry plus per-kind counts to a JSON file; returns the path."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            "exported_at": datetime.now().isoformat(),
            "total_entries": len(self),
            "counts_by_kind": self.counts_by_kind(),
            "entries": [e.to_dict() for e in self._entries],
        }
        path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info(f"Wrote {len(self)} scoring omissions to {path}")
        return path

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)
