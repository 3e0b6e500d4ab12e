"""
speedstats Command-Line Interface

Exposes one subcommand per study summary:

    speedstats daily        --study <dir> [...]   Gap-filled daily buckets
    speedstats hourly       --study <dir> [...]   Gap-filled hourly buckets
    speedstats hour-of-day  --study <dir> [...]   24 hour-of-day slots
    speedstats stats        --study <dir> [...]   Window statistics (JSON)
    speedstats bins         --study <dir> [...]   Daily speed-bin distribution
    speedstats summary      --study <dir> --date YYYY-MM-DD
                                                  24-hour speed and volume tables

The package must be installed (``pip install -e .``) for the ``speedstats``
entry point to be available.

Package Location: src/speedstats/cli.py
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .analysis.records import summaries_to_frame
from .analysis.tables import SpeedSummaryTable, VolumeSummaryTable
from .data.config import StudyConfigError
from .data.engine import StudyEngine
from .data.reader import StudyDataError
from .utils.dates import date_key
from .utils.logging import configure_logging

log = logging.getLogger(__name__)


# ===========================================================================
# Shared helpers
# ===========================================================================

def _die(message: str) -> None:
    """Print an error message and exit with status 1.

    Args:
        message: Human-readable error text.
    """
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _engine(args: argparse.Namespace) -> StudyEngine:
    return StudyEngine(Path(args.study), timezone=args.timezone)


def _output_dir(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.output) if args.output else None


def _print_frame(frame: pd.DataFrame) -> None:
    if frame.empty:
        print("(no data)")
        return
    print(frame.to_string(index=False, na_rep="-", float_format=lambda v: f"{v:.1f}"))


# ===========================================================================
# Subcommand handlers
# ===========================================================================

def handle_daily(args: argparse.Namespace) -> None:
    """Print gap-filled daily buckets."""
    result = _engine(args).daily(output_dir=_output_dir(args))
    _print_frame(summaries_to_frame(result).drop(columns=["start"], errors="ignore"))


def handle_hourly(args: argparse.Namespace) -> None:
    """Print gap-filled hourly buckets."""
    result = _engine(args).hourly(output_dir=_output_dir(args))
    _print_frame(summaries_to_frame(result).drop(columns=["start"], errors="ignore"))


def handle_hour_of_day(args: argparse.Namespace) -> None:
    """Print the 24 hour-of-day slots."""
    result = _engine(args).hour_of_day(output_dir=_output_dir(args))
    _print_frame(summaries_to_frame(result))


def handle_stats(args: argparse.Namespace) -> None:
    """Print window statistics as JSON (camelCase keys)."""
    engine = _engine(args)
    result = engine.statistics(output_dir=_output_dir(args))
    payload = {"studyId": engine.study_id, **result.to_dict()}
    print(json.dumps(payload, indent=2))


def handle_bins(args: argparse.Namespace) -> None:
    """Print the daily speed-bin distribution with its totals row."""
    table = _engine(args).speed_bins(
        start=args.start, end=args.end, output_dir=_output_dir(args)
    )
    labels = [b.label for b in table.bins]
    frame = pd.DataFrame(
        [
            {"date": row.label, "vehicles": row.vehicles, "violators": row.violators,
             **dict(zip(labels, row.bins)), "p85": _fmt(row.p85), "p50": _fmt(row.p50)}
            for row in table.rows
        ]
    )
    _print_frame(frame)
    if table.rows:
        print(
            f"\nTotal: {table.total_vehicles} vehicles, "
            f"{table.total_violators} violators ({table.violation_rate:.1f}%)"
        )
        print(f"p85: {_fmt(table.p85)}   p50: {_fmt(table.p50)}")


def handle_summary(args: argparse.Namespace) -> None:
    """Print the 24-hour speed and volume tables for one date."""
    engine = _engine(args)
    speed = engine.speed_summary(args.date)
    volume = engine.volume_summary(args.date)
    _print_speed_summary(speed)
    print()
    _print_volume_summary(volume)


def _print_speed_summary(table: SpeedSummaryTable) -> None:
    print(f"24-hour speed summary for {table.date}")
    labels = [b.label for b in table.bins]
    frame = pd.DataFrame(
        [
            {"hour": row.label, "vehicles": row.vehicles, "violators": row.violators,
             "pct_speeders": row.pct_speeders, "avg_speed": row.avg_speed,
             **dict(zip(labels, row.bins))}
            for row in table.rows
        ]
    )
    _print_frame(frame)
    print(
        f"\nTotal: {table.total_vehicles} vehicles, {table.total_violators} violators "
        f"({table.violation_rate:.1f}%)   avg: {_fmt(table.avg_speed)}   "
        f"p85: {_fmt(table.p85)}"
    )


def _print_volume_summary(table: VolumeSummaryTable) -> None:
    print(f"24-hour volume summary for {table.date}")
    frame = pd.DataFrame(
        [
            {"hour": row.label, "vehicles": row.vehicles, "pct_of_total": row.pct_of_total}
            for row in table.rows
        ]
    )
    _print_frame(frame)
    print(f"\nTotal: {table.total_vehicles} vehicles")


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.1f}"


def _date_arg(text: str) -> str:
    """argparse ``type=`` for ``YYYY-MM-DD`` arguments."""
    try:
        return date_key(pd.Timestamp(text))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {text!r}") from None


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the top-level argument parser.

    Returns:
        Configured ``ArgumentParser`` with one subcommand per summary.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--study",
        required=True,
        metavar="DIR",
        help="Study directory holding study.json and the data files.",
    )
    common.add_argument(
        "--timezone",
        default=None,
        metavar="TZ",
        help="Override the study timezone from study.json (e.g. 'US/Pacific').",
    )
    common.add_argument(
        "--output",
        default=None,
        metavar="DIR",
        help="Also write the result as CSV into this directory.",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log at DEBUG level.",
    )
    common.add_argument(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit log records as single-line JSON.",
    )

    parser = argparse.ArgumentParser(
        prog="speedstats",
        description=(
            "speedstats - traffic speed study statistics\n"
            "Daily/hourly summaries, window statistics and speed-bin tables."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subs = parser.add_subparsers(dest="command", metavar="<command>")
    subs.required = True

    p_daily = subs.add_parser(
        "daily", parents=[common], help="Gap-filled daily summaries."
    )
    p_daily.set_defaults(func=handle_daily)

    p_hourly = subs.add_parser(
        "hourly", parents=[common], help="Gap-filled hourly summaries."
    )
    p_hourly.set_defaults(func=handle_hourly)

    p_hod = subs.add_parser(
        "hour-of-day", parents=[common], help="Volume and speed by hour of day (24 slots)."
    )
    p_hod.set_defaults(func=handle_hour_of_day)

    p_stats = subs.add_parser(
        "stats", parents=[common], help="Totals, violation rate, average/peak speed and p85."
    )
    p_stats.set_defaults(func=handle_stats)

    p_bins = subs.add_parser(
        "bins",
        parents=[common],
        help="Daily speed-bin distribution.",
        description=(
            "Per-day vehicle counts by speed bin over an inclusive date range.\n"
            "The bin layout follows bin_scheme in study.json (12 by default)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_bins.add_argument("--start", type=_date_arg, default=None, metavar="YYYY-MM-DD",
                        help="First date to include (default: study start).")
    p_bins.add_argument("--end", type=_date_arg, default=None, metavar="YYYY-MM-DD",
                        help="Last date to include (default: study end).")
    p_bins.set_defaults(func=handle_bins)

    p_sum = subs.add_parser(
        "summary", parents=[common], help="24-hour speed and volume tables for one date."
    )
    p_sum.add_argument("--date", type=_date_arg, required=True, metavar="YYYY-MM-DD",
                       help="Local calendar date to summarise.")
    p_sum.set_defaults(func=handle_summary)

    return parser


# ===========================================================================
# Entry point
# ===========================================================================

def main(argv: Optional[List[str]] = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate handler.

    This function is registered as the ``speedstats`` console script entry
    point in ``pyproject.toml``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        json_format=args.log_json,
    )

    try:
        args.func(args)
    except (StudyDataError, StudyConfigError) as exc:
        log.debug("Command %s failed", args.command, exc_info=True)
        _die(str(exc))


if __name__ == "__main__":
    main()
