"""CSV and console rendering for response time reports.

This module provides utilities for:
- Serializing normalized records as CSV with a fixed column order.
- Formatting overall metrics and the weekly summary as text blocks.
- Building the full human-readable console report.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from .models import NormalizedRecord, OverallMetrics, WeeklySummary

CSV_HEADERS = [
    "Repository",
    "Type",
    "Number",
    "Title",
    "Created At",
    "First Response At",
    "Response Time (hours)",
    "Responded By",
    "Responded Within 1 Day",
    "Week Starting",
    "URL",
]

NOT_AVAILABLE = "N/A"
_RULE_WIDTH = 80
_TABLE_WIDTH = 60


def format_timestamp(value: datetime) -> str:
    """Format an instant as UTC ISO 8601 with millisecond precision, e.g. ``2024-01-01T09:00:00.000Z``."""
    utc_value = value.astimezone(timezone.utc) if value.tzinfo else value
    return utc_value.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc_value.microsecond // 1000:03d}Z"


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def format_hours(hours: Optional[float]) -> str:
    """Format hours to two decimals, or ``N/A`` when missing."""
    if hours is None:
        return NOT_AVAILABLE
    return f"{hours:.2f}"


def _escape_title(title: str) -> str:
    return '"' + title.replace('"', '""') + '"'


def _csv_row(record: NormalizedRecord) -> List[str]:
    first_response_at = record.first_response_at
    return [
        record.repository,
        record.item_type.value.upper(),
        str(record.number),
        _escape_title(record.title),
        format_timestamp(record.created_at),
        format_timestamp(first_response_at) if first_response_at else NOT_AVAILABLE,
        format_hours(record.response_time_hours),
        record.responded_by or NOT_AVAILABLE,
        "Yes" if record.responded_within_one_day else "No",
        format_date(record.week_start),
        record.url,
    ]


def generate_csv(records: Sequence[NormalizedRecord]) -> str:
    """Render records as CSV text, header first, one row per record."""
    lines = [",".join(CSV_HEADERS)]
    lines.extend(",".join(_csv_row(record)) for record in records)
    return "\n".join(lines)


def default_csv_path(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"response-times-{format_date(today)}.csv"


def save_csv(records: Sequence[NormalizedRecord], path: Optional[str] = None) -> str:
    """Write the CSV report and return the path written to."""
    filepath = path or default_csv_path()
    Path(filepath).write_text(generate_csv(records), encoding="utf-8")
    return filepath


def format_overall_metrics(metrics: OverallMetrics) -> str:
    """Format per-type counts and, when any item was answered, response time statistics."""
    lines = [
        "OVERALL METRICS",
        "",
        "Issues:",
        f"  Total: {metrics.total_issues}",
        f"  Responded: {metrics.issues_responded} ({metrics.issue_response_rate:.1f}%)",
        f"  Within 1 Day: {metrics.issues_within_one_day} ({metrics.issue_one_day_percentage:.1f}%)",
        "",
        "Pull Requests:",
        f"  Total: {metrics.total_prs}",
        f"  Responded: {metrics.prs_responded} ({metrics.pr_response_rate:.1f}%)",
        f"  Within 1 Day: {metrics.prs_within_one_day} ({metrics.pr_one_day_percentage:.1f}%)",
    ]

    if metrics.mean_response_time_hours is not None:
        lines.extend(
            [
                "",
                "RESPONSE TIME STATISTICS (in business hours)",
                "",
                f"  Minimum: {format_hours(metrics.min_response_time_hours)} hours",
                f"  Maximum: {format_hours(metrics.max_response_time_hours)} hours",
                f"  Mean: {format_hours(metrics.mean_response_time_hours)} hours",
                f"  Median: {format_hours(metrics.median_response_time_hours)} hours",
            ]
        )

    return "\n".join(lines)


def format_weekly_table(weekly_summary: Sequence[WeeklySummary]) -> str:
    """Format the weekly summary as a fixed-width table."""
    lines = [
        "WEEKLY SUMMARY - Issues/PRs Responded Within 1 Business Day",
        "",
        "Week Starting       | Total | Within 1 Day | Percentage",
        "-" * _TABLE_WIDTH,
    ]
    for week in weekly_summary:
        lines.append(
            f"{format_date(week.week_start):<18} | "
            f"{week.total_items:>5} | "
            f"{week.responded_within_one_day:>12} | "
            f"{f'{week.percentage:.1f}%':>10}"
        )
    return "\n".join(lines)


def generate_report(
    metrics: OverallMetrics,
    weekly_summary: Sequence[WeeklySummary],
    start_date: date,
    end_date: date,
) -> str:
    """Generate the human-readable console report.

    Args:
        metrics: Overall metrics for the run.
        weekly_summary: Weekly buckets ordered by week start.
        start_date: First day of the analyzed window.
        end_date: Last day of the analyzed window.

    Returns:
        Formatted multi-line text report.
    """
    lines = [
        "=" * _RULE_WIDTH,
        "GitHub Issue Response Time Analysis",
        "=" * _RULE_WIDTH,
        f"Date Range: {format_date(start_date)} to {format_date(end_date)}",
        "=" * _RULE_WIDTH,
        "",
        format_overall_metrics(metrics),
    ]

    if weekly_summary:
        lines.extend(["", format_weekly_table(weekly_summary)])

    lines.extend(["", "=" * _RULE_WIDTH])
    return "\n".join(lines)
