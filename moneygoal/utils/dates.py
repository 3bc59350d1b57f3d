"""Date helpers shared by budgets, bills, the scheduler and reports.

All calendar math runs in UTC. SQLite returns naive datetimes, so values read
back from the database go through `as_utc` before comparison.
"""
from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value).replace(day=1)


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_period(value: datetime, period: str) -> datetime:
    if period == "daily":
        return value + timedelta(days=1)
    if period == "weekly":
        return value + timedelta(days=7)
    if period == "monthly":
        return add_months(value, 1)
    if period == "yearly":
        return add_months(value, 12)
    raise ValueError(f"Unknown period: {period}")


def day_in_month(year: int, month: int, day: int) -> int:
    return min(day, calendar.monthrange(year, month)[1])
