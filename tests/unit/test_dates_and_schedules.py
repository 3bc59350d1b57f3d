from datetime import datetime, timezone

import pytest

from moneygoal.services.bill_schedule import advance_due_date, compute_next_due_date, days_until
from moneygoal.services.budget_status import budget_end_date, classify, usage_percentage
from moneygoal.utils.dates import add_months, add_period, as_utc, start_of_month


def _dt(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_add_months_clamps_to_month_length():
    assert add_months(_dt(2024, 1, 31), 1) == _dt(2024, 2, 29)
    assert add_months(_dt(2023, 1, 31), 1) == _dt(2023, 2, 28)
    assert add_months(_dt(2024, 11, 15), 3) == _dt(2025, 2, 15)
    assert add_months(_dt(2024, 3, 10), -3) == _dt(2023, 12, 10)


def test_add_period_units():
    start = _dt(2024, 5, 1)
    assert add_period(start, "daily") == _dt(2024, 5, 2)
    assert add_period(start, "weekly") == _dt(2024, 5, 8)
    assert add_period(start, "monthly") == _dt(2024, 6, 1)
    assert add_period(start, "yearly") == _dt(2025, 5, 1)
    with pytest.raises(ValueError):
        add_period(start, "hourly")


def test_as_utc_treats_naive_values_as_utc():
    naive = datetime(2024, 5, 1, 12, 0)
    assert as_utc(naive) == _dt(2024, 5, 1, 12, 0)
    assert as_utc(None) is None


def test_start_of_month():
    assert start_of_month(_dt(2024, 5, 17, 13, 45)) == _dt(2024, 5, 1)


def test_next_due_date_this_month_when_day_not_passed():
    assert compute_next_due_date(20, now=_dt(2024, 5, 10, 9, 30)) == _dt(2024, 5, 20)


def test_next_due_date_today_is_still_this_month():
    assert compute_next_due_date(10, now=_dt(2024, 5, 10, 23, 0)) == _dt(2024, 5, 10)


def test_next_due_date_rolls_to_next_month():
    assert compute_next_due_date(5, now=_dt(2024, 5, 10)) == _dt(2024, 6, 5)


def test_next_due_date_clamps_short_months():
    assert compute_next_due_date(31, now=_dt(2024, 4, 3)) == _dt(2024, 4, 30)
    assert compute_next_due_date(31, now=_dt(2024, 2, 1)) == _dt(2024, 2, 29)


def test_advance_due_date_keeps_due_day_after_short_month():
    feb = _dt(2024, 2, 29)
    assert advance_due_date(feb, "monthly", 31) == _dt(2024, 3, 31)
    assert advance_due_date(_dt(2024, 3, 1), "weekly", 1) == _dt(2024, 3, 8)
    assert advance_due_date(_dt(2024, 3, 15), "yearly", 15) == _dt(2025, 3, 15)


def test_days_until_counts_calendar_days():
    now = _dt(2024, 5, 10, 22, 0)
    assert days_until(_dt(2024, 5, 12, 1, 0), now) == 2
    assert days_until(_dt(2024, 5, 8), now) == -2


def test_budget_end_date_per_period():
    start = _dt(2024, 1, 31)
    assert budget_end_date(start, "weekly") == _dt(2024, 2, 7)
    assert budget_end_date(start, "monthly") == _dt(2024, 2, 29)
    assert budget_end_date(start, "yearly") == _dt(2025, 1, 31)


def test_usage_percentage_rounds_half_up():
    assert usage_percentage(3, 8) == 38
    assert usage_percentage(1, 8) == 13
    assert usage_percentage(2, 8) == 25
    assert usage_percentage(100, 0) == 0


@pytest.mark.parametrize(
    "percentage,threshold,expected",
    [
        (10, 75, "ok"),
        (75, 75, "warning"),
        (89, 75, "warning"),
        (90, 75, "danger"),
        (100, 75, "critical"),
        (140, 75, "critical"),
        (60, 50, "warning"),
    ],
)
def test_classify_budget_usage(percentage, threshold, expected):
    status, message = classify(percentage, threshold)
    assert status == expected
    if expected == "ok":
        assert message is None
    else:
        assert str(percentage) in message
