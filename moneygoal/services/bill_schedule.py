"""Due-date arithmetic for bill reminders."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from moneygoal.utils.dates import add_months, add_period, as_utc, day_in_month, now_utc, start_of_day


def compute_next_due_date(due_day: int, now: Optional[datetime] = None) -> datetime:
    """`due_day` of the current month, or of next month once that day has passed.

    The day is clamped to the month length (31 -> 30 in April, 28/29 in February).
    """
    today = start_of_day(now or now_utc())
    candidate = today.replace(day=day_in_month(today.year, today.month, due_day))
    if candidate < today:
        following = add_months(today.replace(day=1), 1)
        candidate = following.replace(day=day_in_month(following.year, following.month, due_day))
    return candidate


def advance_due_date(current: datetime, frequency: str, due_day: int) -> datetime:
    nxt = add_period(as_utc(current), frequency)
    if frequency in ("monthly", "yearly"):
        nxt = nxt.replace(day=day_in_month(nxt.year, nxt.month, due_day))
    return nxt


def days_until(due: datetime, now: Optional[datetime] = None) -> int:
    return (start_of_day(as_utc(due)) - start_of_day(now or now_utc())).days
