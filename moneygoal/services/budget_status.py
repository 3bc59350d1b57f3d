"""Budget windows and usage classification."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from moneygoal.services.currency_service import round_half_up
from moneygoal.utils.dates import add_months


def budget_end_date(start: datetime, period: str) -> datetime:
    if period == "weekly":
        return start + timedelta(days=7)
    return add_months(start, 12 if period == "yearly" else 1)


def usage_percentage(spent: int, limit_amount: int) -> int:
    if limit_amount <= 0:
        return 0
    return round_half_up(spent / limit_amount * 100)


def classify(percentage: int, alert_threshold: int) -> Tuple[str, Optional[str]]:
    if percentage >= 100:
        return "critical", f"Budget exceeded! You've spent {percentage}% of your limit."
    if percentage >= 90:
        return "danger", f"Almost at limit! {percentage}% of budget used."
    if percentage >= alert_threshold:
        return "warning", f"{percentage}% of budget used. Consider slowing down."
    return "ok", None
