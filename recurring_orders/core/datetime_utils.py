"""Centralized datetime utilities for consistent timezone handling.

All functions return naive UTC datetimes, matching how timestamps are stored
in the execution log table.

Usage:
    from recurring_orders.core.datetime_utils import utc_now, get_cutoff

    now = utc_now()
    cutoff = get_cutoff(days=30, now=now)
"""

import calendar
from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Get current UTC time as naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def get_cutoff(hours: int = 0, days: int = 0, now: datetime | None = None) -> datetime:
    """Get cutoff datetime for filtering.

    Args:
        hours: Hours to subtract from now
        days: Days to subtract from now
        now: Reference point, defaults to the current UTC time

    Returns:
        Naive UTC datetime representing the cutoff point
    """
    delta = timedelta(hours=hours, days=days)
    return (now or utc_now()) - delta


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to naive UTC.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive UTC datetime for database compatibility
    """
    if dt.tzinfo is None:
        # Already naive, assume it's UTC
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month.

    Args:
        dt: Starting datetime
        months: Number of months to add (may be negative)

    Returns:
        Datetime with the same time of day in the target month
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
