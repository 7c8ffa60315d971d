"""
Persisted report documents.

A report document is the result batch plus the preset and indicator
definitions that produced it, keyed by a report identifier. The document is
plain JSON-ready data; storage is up to the caller.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from townscore.config import ensure_reports_dir
from townscore.pipeline import ReportBundle
from townscore.scorers.star_mapper import category_star_averages

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


def build_report_document(bundle: ReportBundle, report_id: str) -> dict[str, Any]:
    """
    Serialize a report bundle into a JSON-ready document.

    Composite scores and ranks are candidate-set relative; star ratings and
    baselines are nationally anchored. The document keeps them in separate
    fields so renderers can label each axis.
    """
    if not report_id:
        raise ValueError("report_id must be non-empty")

    results = []
    for result in bundle.results:
        entry = result.model_dump(mode="json")
        entry["category_stars"] = [
            average.model_dump(mode="json")
            for average in category_star_averages(result.indicator_stars, bundle.definitions)
        ]
        results.append(entry)

    return {
        "version": DOCUMENT_VERSION,
        "report_id": report_id,
        "generated_at": bundle.generated_at.isoformat(),
        "preset": bundle.preset.model_dump(mode="json"),
        "rank_by": bundle.rank_by.value,
        "definitions": [d.model_dump(mode="json") for d in bundle.definitions],
        "domains_with_data": list(bundle.domains_with_data),
        "skipped_domains": dict(bundle.skipped_domains),
        "results": results,
    }


def save_report_document(document: dict[str, Any], output_path: Optional[Path] = None) -> Path:
    """Write a report document as JSON (default: <reports dir>/<report_id>.json)."""
    if output_path is None:
        output_path = ensure_reports_dir() / f"{document['report_id']}.json"
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved report {document['report_id']} to {output_path}")
    return output_path
