"""Business-hour arithmetic on UTC calendar days.

A business hour is any hour that falls on a Monday to Friday UTC calendar day.
Weekends contribute nothing, partial days are counted with sub-hour precision.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

ONE_BUSINESS_DAY_HOURS = 24.0
_SATURDAY = 5


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_business_hours(start: datetime, end: datetime) -> float:
    """Return the hours between ``start`` and ``end`` that fall on weekdays.

    Each calendar day from ``start`` to ``end`` is clipped to the interval
    ``[start, end)``; weekday overlap is summed and weekend overlap ignored.
    Returns ``0.0`` when ``end`` precedes ``start``.
    """
    start = _as_utc(start)
    end = _as_utc(end)
    if end <= start:
        return 0.0

    hours = 0.0
    day = start.date()
    while day <= end.date():
        if day.weekday() < _SATURDAY:
            day_start = datetime.combine(day, time.min, tzinfo=timezone.utc)
            day_end = day_start + timedelta(days=1)
            overlap = min(end, day_end) - max(start, day_start)
            if overlap > timedelta(0):
                hours += overlap.total_seconds() / 3600
        day += timedelta(days=1)

    return hours


def is_within_one_business_day(start: datetime, end: datetime) -> bool:
    """Whether the response landed within 24 business hours of creation."""
    return elapsed_business_hours(start, end) <= ONE_BUSINESS_DAY_HOURS


def week_start(instant: datetime) -> date:
    """Return the Monday beginning the ISO week that contains ``instant`` (UTC)."""
    day = _as_utc(instant).date()
    return day - timedelta(days=day.weekday())
