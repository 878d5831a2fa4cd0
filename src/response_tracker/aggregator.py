"""Aggregation of normalized records into run-wide and weekly metrics.

This module provides utilities for:
- Splitting records by item type and computing response and one-day rates.
- Summary statistics (min, max, mean, median) over response times in hours.
- Weekly buckets keyed by the Monday the item was created in.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional, Sequence

from .models import ItemType, NormalizedRecord, OverallMetrics, WeeklySummary


def _percentage(part: int, total: int) -> float:
    """Return ``part / total`` as a percentage, or ``0.0`` for an empty total."""
    if total <= 0:
        return 0.0
    return (part / total) * 100


def calculate_median(values: Sequence[float]) -> Optional[float]:
    """Calculate the median of unsorted samples.

    An even number of samples yields the mean of the two central values.

    Returns:
        Median as ``float`` or ``None`` when input is empty.
    """
    if not values:
        return None

    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def compute_response_time_statistics(hours: Sequence[Optional[float]]) -> Dict[str, Optional[float]]:
    """Compute min, max, mean and median for response time samples in hours.

    ``None`` and NaN values are ignored so unanswered items never skew the
    result.

    Returns:
        Dictionary with keys ``min``, ``max``, ``mean`` and ``median``; every
        value is ``None`` when no valid samples exist.
    """
    samples = [value for value in hours if value is not None and not math.isnan(value)]
    if not samples:
        return {"min": None, "max": None, "mean": None, "median": None}

    return {
        "min": min(samples),
        "max": max(samples),
        "mean": sum(samples) / len(samples),
        "median": calculate_median(samples),
    }


def compute_overall_metrics(records: Sequence[NormalizedRecord]) -> OverallMetrics:
    """Compute counts and rates per item type plus global response time statistics."""
    issues = [record for record in records if record.item_type == ItemType.ISSUE]
    prs = [record for record in records if record.item_type == ItemType.PR]

    issues_responded = sum(1 for record in issues if record.response is not None)
    prs_responded = sum(1 for record in prs if record.response is not None)
    issues_within_one_day = sum(1 for record in issues if record.responded_within_one_day)
    prs_within_one_day = sum(1 for record in prs if record.responded_within_one_day)

    stats = compute_response_time_statistics([record.response_time_hours for record in records])

    return OverallMetrics(
        total_issues=len(issues),
        total_prs=len(prs),
        issues_responded=issues_responded,
        prs_responded=prs_responded,
        issues_within_one_day=issues_within_one_day,
        prs_within_one_day=prs_within_one_day,
        issue_response_rate=_percentage(issues_responded, len(issues)),
        pr_response_rate=_percentage(prs_responded, len(prs)),
        issue_one_day_percentage=_percentage(issues_within_one_day, len(issues)),
        pr_one_day_percentage=_percentage(prs_within_one_day, len(prs)),
        min_response_time_hours=stats["min"],
        max_response_time_hours=stats["max"],
        mean_response_time_hours=stats["mean"],
        median_response_time_hours=stats["median"],
    )


def compute_weekly_summary(records: Sequence[NormalizedRecord]) -> List[WeeklySummary]:
    """Group records by creation week, ordered by week start ascending.

    Only weeks containing at least one record are returned.
    """
    totals: Dict[date, int] = {}
    within_one_day: Dict[date, int] = {}

    for record in records:
        totals[record.week_start] = totals.get(record.week_start, 0) + 1
        if record.responded_within_one_day:
            within_one_day[record.week_start] = within_one_day.get(record.week_start, 0) + 1

    return [
        WeeklySummary(
            week_start=week,
            total_items=totals[week],
            responded_within_one_day=within_one_day.get(week, 0),
            percentage=_percentage(within_one_day.get(week, 0), totals[week]),
        )
        for week in sorted(totals)
    ]


def slow_responses(records: Sequence[NormalizedRecord]) -> List[NormalizedRecord]:
    """Records that were not answered within one business day, including unanswered ones."""
    return [record for record in records if not record.responded_within_one_day]
