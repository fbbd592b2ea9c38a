#!/usr/bin/env python3
"""Aggregate proximal Kindle highlights and notes of one notebook export.

Reads a Kindle notebook HTML export, repairs its crossed end tags, parses
every note heading into a chapter/page/location, and merges runs of
annotations that sit within the configured proximity of each other.

Output is JSON (or JSON Lines when the output path ends in ``.jsonl``),
one record per merged block with its element and location ranges.

Usage::

    python3 scripts/aggregate_highlights.py "Book - Notebook.html"
    python3 scripts/aggregate_highlights.py notebook.html --location-proximity 10
    python3 scripts/aggregate_highlights.py notebook.html --config prox.json -o out.jsonl
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from highlight_aggregator.aggregator import (
    AggregationResult,
    ProximityConfig,
    aggregate,
    load_proximity_config,
)
from highlight_aggregator.io_utils import save_json, save_jsonl
from highlight_aggregator.notebook import (
    DEFAULT_SELECTOR,
    is_kindle_notebook,
    parse_notebook,
    read_file,
    repair_markup,
)

log = logging.getLogger("aggregate_highlights")

DEFAULT_OUTPUT_MARKER = "Aggregated"


def default_output_path(input_path: Path, marker: str) -> Path:
    """``<dir>/<stem><marker>.json`` beside the input."""
    return input_path.with_name(f"{input_path.stem}{marker}.json")


def resolve_config(args: argparse.Namespace) -> ProximityConfig:
    """Config file values, overridden by any explicit proximity flag."""
    base = load_proximity_config(Path(args.config)) if args.config else ProximityConfig()
    overrides = base.to_dict()
    for key, value in (
        ("chapter", args.chapter_proximity),
        ("page", args.page_proximity),
        ("location", args.location_proximity),
    ):
        if value is not None:
            overrides[key] = value
    return ProximityConfig.from_dict(overrides)


def build_payload(
    source: Path,
    title: str,
    config: ProximityConfig,
    result: AggregationResult,
) -> dict[str, Any]:
    return {
        "source": str(source),
        "title": title,
        "proximity": config.to_dict(),
        "blocks": [b.to_dict() for b in result.blocks],
        "skipped": [s.to_dict() for s in result.skipped],
    }


def run(
    input_path: Path,
    output_path: Path,
    config: ProximityConfig,
    selector: str = DEFAULT_SELECTOR,
) -> AggregationResult:
    """Aggregate one notebook file and write the result."""
    html = read_file(input_path)
    if not is_kindle_notebook(html):
        raise ValueError(f"{input_path} does not appear to be a Kindle notebook")
    notebook = parse_notebook(repair_markup(html), selector)
    log.info(
        "Read %d annotations from %s (%s)",
        len(notebook.annotations), input_path, notebook.title or "untitled",
    )
    result = aggregate(notebook.annotations, config)

    if output_path.suffix == ".jsonl":
        save_jsonl([b.to_dict() for b in result.blocks], output_path)
    else:
        save_json(build_payload(input_path, notebook.title, config, result), output_path)
    log.info("Wrote %d blocks to %s", len(result.blocks), output_path)
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Merge proximal Kindle highlights into location-ranged blocks.",
    )
    parser.add_argument("input", help="Kindle notebook HTML export")
    parser.add_argument(
        "--output", "-o", default=None,
        help="Output path (.json or .jsonl). Default: <input stem><marker>.json",
    )
    parser.add_argument(
        "--output-marker", default=DEFAULT_OUTPUT_MARKER,
        help=f"Appended to the input stem for the default output name (default: {DEFAULT_OUTPUT_MARKER})",
    )
    parser.add_argument("--config", default=None, help="JSON proximity config file")
    parser.add_argument(
        "--chapter-proximity", type=int, default=None,
        help="Chapter drift tolerated within one block (default: 0)",
    )
    parser.add_argument(
        "--page-proximity", type=int, default=None,
        help="Page drift tolerated within one block (default: 0)",
    )
    parser.add_argument(
        "--location-proximity", type=int, default=None,
        help="Location drift tolerated within one block (default: 5)",
    )
    parser.add_argument(
        "--selector", default=DEFAULT_SELECTOR,
        help=f"CSS selector for note headings (default: {DEFAULT_SELECTOR})",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    input_path = Path(args.input)
    if not input_path.is_file():
        log.error("Input file not found: %s", input_path)
        return 1
    output_path = (
        Path(args.output) if args.output
        else default_output_path(input_path, args.output_marker)
    )

    try:
        config = resolve_config(args)
        log.info(
            "Proximities chapter %d, page %d, location %d",
            config.chapter, config.page, config.location,
        )
        run(input_path, output_path, config, args.selector)
    except (ValueError, OSError) as exc:
        log.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
