#!/usr/bin/env python3
"""
Align scanner reports into one frame and print the puzzle answers.

Usage:
    python scripts/solve_scanners.py --input day19.txt
    python scripts/solve_scanners.py --input day19.txt --name sample --runs-dir runs -v
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from beacon_alignment import (
    AlignmentConfig,
    NoSolutionError,
    ParseError,
    parse_reports,
    solve_reports,
)
from beacon_alignment.run_folder import RunFolder

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconstruct beacon positions from overlapping scanner reports"
    )
    parser.add_argument("--input", required=True, help="Path to the puzzle input")
    parser.add_argument("--name", default="beacon_alignment", help="Run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--no-prefilter",
        action="store_true",
        help="Disable the pairwise-distance prefilter (slower, same result)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input)
    if not input_path.is_file():
        parser.error(f"Input file not found: {input_path}")

    try:
        reports = parse_reports(input_path.read_text(encoding="utf-8"))
    except ParseError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1

    started = time.perf_counter()
    run = RunFolder.create(args.runs_dir, args.name, input_path)
    config = AlignmentConfig(distance_prefilter=not args.no_prefilter)
    audit = run.audit_trail()

    try:
        model = solve_reports(reports, config=config, audit=audit)
    except NoSolutionError as exc:
        print(f"No solution: {exc}", file=sys.stderr)
        return 1

    run.write_results(
        model=model,
        reports=reports,
        config=config,
        audit=audit,
        elapsed_s=time.perf_counter() - started,
    )
    logger.debug("Run artifacts written to %s", run.run_dir)

    print(f"Run ID: {run.run_id}")
    print(f"Beacons: {model.beacon_count()}")
    print(f"Max scanner distance: {model.max_scanner_distance()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
