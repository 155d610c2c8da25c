from __future__ import annotations

import argparse
import datetime as dt
import sys
from pathlib import Path

from .analysis_periods import resolve_time_range
from .analysis_project import DEFAULT_THRESHOLD
from .analysis_run import run_chart_safely
from .errors import GitChartError
from .models import RunConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chart monthly git commits and commits per author for one repository.")
    parser.add_argument("-r", "--repo", type=Path, required=True, help="Path to the git repository.")
    parser.add_argument("-s", "--start", type=str, required=True, help="Start month (YYYYMM).")
    parser.add_argument(
        "-e",
        "--end",
        type=str,
        default="",
        help="End month (YYYYMM, inclusive). Defaults to the current month.",
    )
    parser.add_argument(
        "-t",
        "--threshold",
        type=int,
        default=DEFAULT_THRESHOLD,
        help="Authors with fewer commits are grouped into 'others' in the pie chart (0 = no grouping, default: %(default)s).",
    )
    parser.add_argument("-o", "--output", type=Path, default=Path("output.html"), help="Chart output file (default: %(default)s).")
    parser.add_argument("--json", dest="json_output", type=Path, default=None, help="Also write a JSON summary to this path.")
    parser.add_argument("--no-merges", action="store_true", help="Skip merge commits.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print ignored commits and per-month details.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors.")
    return parser


def config_from_args(args: argparse.Namespace, *, today: dt.date | None = None) -> RunConfig:
    time_range = resolve_time_range(str(args.start), str(args.end or ""), today=today)
    return RunConfig(
        repo=Path(args.repo),
        time_range=time_range,
        threshold=int(args.threshold),
        output=Path(args.output),
        json_output=Path(args.json_output) if args.json_output else None,
        include_merges=not bool(args.no_merges),
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
    )


def main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except GitChartError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return run_chart_safely(config)
