#!/usr/bin/env python3
"""
townscore command line.

Usage:
    townscore score areas.json --preset childcare
    townscore score areas.json --preset safety --rank-by stars --output report.json
    townscore profile areas.json --area 13112
    townscore presets
    townscore indicators

areas.json holds a list of area observation sets (or {"areas": [...]}):

    [{"area_name": "世田谷区", "area_code": "13112",
      "observations": [{"indicator_id": "kids_ratio", "raw_value": 11.8,
                        "data_year": "2020", "source_id": "estat"}]}]
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from townscore.config import get_log_level
from townscore.export import build_report_document, save_report_document
from townscore.pipeline import run_report
from townscore.schemas.enums import ConfidenceLevel, RankBasis
from townscore.schemas.indicators import AreaIndicatorSet
from townscore.scorers.indicator_catalog import get_catalog, list_indicators
from townscore.scorers.orchestrator import score_single_city
from townscore.scorers.preset_registry import (
    UnknownPresetError,
    get_default_preset_name,
    get_preset,
    list_presets,
)
from townscore.scorers.star_mapper import category_star_averages, render_star_text, star_label
from townscore.utils.logger import ScoringLogger, configure_global_logging

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONFIDENCE_STYLES = {
    ConfidenceLevel.HIGH: "[green]high[/green]",
    ConfidenceLevel.MEDIUM: "[yellow]medium[/yellow]",
    ConfidenceLevel.LOW: "[red]low[/red]",
}


def load_areas(path: Path) -> list[AreaIndicatorSet]:
    """Load area observation sets from a JSON file."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("areas", [])
    return [AreaIndicatorSet.model_validate(entry) for entry in raw]


def _resolve_preset_name(requested: Optional[str]) -> str:
    name = requested or get_default_preset_name()
    if name is None:
        raise UnknownPresetError("", list_presets())
    return name


# ─── Commands ─────────────────────────────────────────────────────────────────


def cmd_score(args) -> int:
    areas = load_areas(args.areas)
    if not areas:
        console.print("[yellow]No areas to score[/yellow]")
        return 0

    preset_name = _resolve_preset_name(args.preset)
    bundle = run_report(
        areas,
        preset_name,
        definitions=list_indicators(),
        rank_by=args.rank_by,
        log=ScoringLogger(log_level=args.log_level),
    )

    table = Table(title=f"Ranking: {bundle.preset.label} ({bundle.preset.name})")
    table.add_column("Rank", justify="right")
    table.add_column("Area")
    table.add_column("Code", style="cyan")
    table.add_column("Composite (candidates)", justify="right")
    table.add_column("Stars (national)", justify="center")
    table.add_column("Confidence", justify="center")

    for result in sorted(bundle.results, key=lambda r: r.rank):
        stars = render_star_text(result.star_rating) if result.star_rating is not None else "-"
        table.add_row(
            str(result.rank),
            result.city_name,
            result.area_code,
            f"{result.composite_score:.1f}",
            stars,
            CONFIDENCE_STYLES[result.confidence.level],
        )
    console.print(table)

    if args.verbose:
        for result in sorted(bundle.results, key=lambda r: r.rank):
            console.print()
            console.print(f"[bold]{result.area_code} - {result.city_name}[/bold]")
            console.print(f"  Confidence: {result.confidence.reason}")
            for note in result.notes:
                console.print(f"  [dim]{note}[/dim]")

    if args.output:
        report_id = args.report_id or f"report-{datetime.now():%Y%m%d-%H%M%S}"
        document = build_report_document(bundle, report_id)
        saved = save_report_document(document, args.output)
        console.print(f"\nReport saved to: {saved}")
    return 0


def cmd_profile(args) -> int:
    areas = load_areas(args.areas)
    area = next((a for a in areas if a.area_code == args.area), None)
    if area is None:
        console.print(f"[red]Area {args.area} not found in {args.areas}[/red]")
        return 1

    definitions = list_indicators()
    preset = get_preset(_resolve_preset_name(args.preset))
    profile = score_single_city(area, definitions, preset)

    summary = (
        f"Overall: {render_star_text(profile.star_rating)} {star_label(profile.star_rating)}\n"
        f"Preset: {preset.label} ({preset.name})\n"
        f"Confidence: {profile.confidence.level.value} - {profile.confidence.reason}"
    )
    console.print(Panel(summary, title=f"{profile.city_name} ({profile.area_code})", border_style="blue"))

    by_id = {d.id: d for d in definitions}
    table = Table(title="Indicators (national percentile)")
    table.add_column("Indicator")
    table.add_column("Category")
    table.add_column("Percentile", justify="right")
    table.add_column("Stars", justify="center")
    for rating in profile.indicator_stars:
        definition = by_id[rating.indicator_id]
        table.add_row(
            definition.label,
            definition.category.value,
            f"{rating.national_percentile:.1f}",
            render_star_text(rating.stars),
        )
    console.print(table)

    averages = category_star_averages(profile.indicator_stars, definitions)
    if averages:
        category_table = Table(title="Categories")
        category_table.add_column("Category")
        category_table.add_column("Average stars", justify="right")
        category_table.add_column("Indicators", justify="right")
        for average in averages:
            category_table.add_row(
                average.category.value, f"{average.average_stars:.1f}", str(average.indicator_count)
            )
        console.print(category_table)

    for note in profile.notes:
        console.print(f"[dim]{note}[/dim]")
    return 0


def cmd_presets(args) -> int:
    default = get_default_preset_name()
    table = Table(title="Weight presets")
    table.add_column("Name", style="cyan")
    table.add_column("Label")
    table.add_column("Weights")
    for name in list_presets():
        preset = get_preset(name)
        weights = ", ".join(f"{category.value}={weight:g}" for category, weight in preset.weights.items())
        marker = " (default)" if name == default else ""
        table.add_row(name + marker, preset.label, weights)
    console.print(table)
    return 0


def cmd_indicators(args) -> int:
    catalog = get_catalog()
    table = Table(title=f"Indicator catalog {catalog.version}")
    table.add_column("Domain", style="cyan")
    table.add_column("ID")
    table.add_column("Label")
    table.add_column("Unit")
    table.add_column("Direction")
    table.add_column("Category")
    for domain, definitions in catalog.domains.items():
        for definition in definitions:
            table.add_row(
                domain,
                definition.id,
                definition.label,
                definition.unit,
                definition.direction.value,
                definition.category.value,
            )
    console.print(table)
    return 0


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Score and rank areas from government statistics")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=get_log_level("WARNING"),
        help="Logging level (default: TOWNSCORE_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    score_parser = subparsers.add_parser("score", help="Score and rank a candidate set")
    score_parser.add_argument("areas", type=Path, help="JSON file of area observation sets")
    score_parser.add_argument("--preset", help="Weight preset name (default: registry default)")
    score_parser.add_argument(
        "--rank-by",
        choices=[basis.value for basis in RankBasis],
        default=RankBasis.COMPOSITE.value,
        help="Rank by candidate-relative composite or national stars (default: composite)",
    )
    score_parser.add_argument("--output", type=Path, help="Save report document to JSON file")
    score_parser.add_argument("--report-id", help="Report identifier stored in the document")
    score_parser.add_argument("--verbose", "-v", action="store_true", help="Show confidence reasons and notes")
    score_parser.set_defaults(func=cmd_score)

    profile_parser = subparsers.add_parser("profile", help="National star profile for one area")
    profile_parser.add_argument("areas", type=Path, help="JSON file of area observation sets")
    profile_parser.add_argument("--area", required=True, help="Area code to profile")
    profile_parser.add_argument("--preset", help="Weight preset name (default: registry default)")
    profile_parser.set_defaults(func=cmd_profile)

    presets_parser = subparsers.add_parser("presets", help="List weight presets")
    presets_parser.set_defaults(func=cmd_presets)

    indicators_parser = subparsers.add_parser("indicators", help="List the indicator catalog")
    indicators_parser.set_defaults(func=cmd_indicators)

    args = parser.parse_args()
    configure_global_logging(args.log_level)

    try:
        exit_code = args.func(args)
    except UnknownPresetError as e:
        console.print(f"[red]{e}[/red]")
        exit_code = 2
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Could not load input: {e}[/red]")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
