"""Command-line argument parsing for the GitHub response time tracker."""

from __future__ import annotations

import argparse
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple

from .business_hours import week_start
from .config import DEFAULT_CONFIG_PATH

DEFAULT_WEEKS_BACK = 4


def _iso_date(value: str) -> date:
    """Parse and validate a ``YYYY-MM-DD`` CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a calendar date.
    """
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a date in YYYY-MM-DD format") from exc


def resolve_date_range(
    start_date: Optional[date],
    end_date: Optional[date],
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """Fill in the default window: four full weeks before the current week, through today."""
    today = today or datetime.now(timezone.utc).date()
    end = end_date or today
    if start_date is not None:
        start = start_date
    else:
        current_week = week_start(datetime.combine(end, datetime.min.time(), tzinfo=timezone.utc))
        start = current_week - timedelta(weeks=DEFAULT_WEEKS_BACK)
    return start, end


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for response time analysis.

    Returns:
        Parsed CLI arguments containing the date window, configuration path,
        CSV output path and notification switches.
    """
    parser = argparse.ArgumentParser(
        prog="gh-response-time-tracker",
        description=(
            "Measure how quickly organization members respond to community issues "
            "and pull requests (business hours, weekends excluded)."
        ),
    )

    parser.add_argument(
        "--start-date",
        type=_iso_date,
        default=None,
        help="Start date for analysis, YYYY-MM-DD (default: 4 full weeks before the current week).",
    )
    parser.add_argument(
        "--end-date",
        type=_iso_date,
        default=None,
        help="End date for analysis, YYYY-MM-DD, inclusive (default: today).",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the JSON configuration file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Path of the CSV report (default: response-times-<today>.csv).",
    )
    parser.add_argument(
        "--slack",
        action="store_true",
        help="Post the summary to Slack using the configured webhook.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    args = parser.parse_args()
    if args.start_date and args.end_date and args.start_date > args.end_date:
        parser.error("--start-date must not be after --end-date")

    return args
