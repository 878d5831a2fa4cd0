"""Tests for command-line argument parsing."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from response_tracker.cli import parse_args, resolve_date_range


def test_parse_args_with_valid_arguments(monkeypatch):
    """Verify CLI parsing succeeds when every option is provided."""
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "gh-response-time-tracker",
            "--start-date",
            "2024-01-01",
            "--end-date",
            "2024-03-31",
            "--config",
            "./my-config.json",
            "--output",
            "out.csv",
            "--slack",
        ],
    )

    args = parse_args()

    assert args.start_date == date(2024, 1, 1)
    assert args.end_date == date(2024, 3, 31)
    assert args.config == "./my-config.json"
    assert args.output == "out.csv"
    assert args.slack is True
    assert args.verbose is False


def test_parse_args_defaults(monkeypatch):
    """Verify CLI parsing leaves the date window unset and uses the default config path."""
    monkeypatch.setattr(sys, "argv", ["gh-response-time-tracker"])

    args = parse_args()

    assert args.start_date is None
    assert args.end_date is None
    assert args.config == "./config.json"
    assert args.slack is False


def test_parse_args_with_invalid_date_fails_validation(monkeypatch):
    """Verify CLI parsing exits with an error when a date is malformed."""
    monkeypatch.setattr(sys, "argv", ["gh-response-time-tracker", "--start-date", "01/02/2024"])

    with pytest.raises(SystemExit):
        parse_args()


def test_parse_args_with_reversed_dates_fails_validation(monkeypatch):
    """Verify CLI parsing exits with an error when the window is reversed."""
    monkeypatch.setattr(
        sys,
        "argv",
        ["gh-response-time-tracker", "--start-date", "2024-02-01", "--end-date", "2024-01-01"],
    )

    with pytest.raises(SystemExit):
        parse_args()


def test_resolve_date_range_defaults_to_four_full_weeks_plus_current():
    """Verify the default window starts four weeks before the current week's Monday."""
    start, end = resolve_date_range(None, None, today=date(2024, 1, 31))

    assert start == date(2024, 1, 1)
    assert end == date(2024, 1, 31)


def test_resolve_date_range_keeps_explicit_dates():
    """Verify explicit dates are kept unchanged."""
    assert resolve_date_range(date(2024, 1, 3), date(2024, 1, 9)) == (date(2024, 1, 3), date(2024, 1, 9))
