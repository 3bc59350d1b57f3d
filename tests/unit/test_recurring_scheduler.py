from datetime import datetime, timedelta, timezone

import pytest

from moneygoal.db import models
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import recurring as recurring_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.workers.recurring_scheduler import (
    RecurringExpenseScheduler,
    auto_reason,
    process_recurring_expenses,
    seconds_until_midnight,
)

TODAY = datetime(2024, 3, 15, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def housing(db_session, user):
    return category_repo.create_category(db_session, user_id=user.id, name="Housing", emoji="🏠", color="#f59e0b")


def _recurring(db, user, category, *, name="Rent", amount=120000, day=15, active=True):
    return recurring_repo.create_recurring(
        db,
        user_id=user.id,
        values={
            "category_id": category.id,
            "name": name,
            "amount": amount,
            "currency": "USD",
            "frequency": "monthly",
            "day_of_month": day,
            "is_active": active,
        },
    )


def test_auto_reason():
    assert auto_reason("Rent") == "[Auto: Rent]"


def test_seconds_until_midnight():
    assert seconds_until_midnight(datetime(2024, 3, 15, 23, 0)) == 3600
    assert seconds_until_midnight(datetime(2024, 3, 31, 0, 0)) == 86400


def test_creates_due_expenses_once_per_day(db_session, user, goal, housing):
    goal.current_amount = 200000
    db_session.commit()
    settings_repo.create_settings(db_session, user_id=user.id, values={"currency": "BRL"})
    _recurring(db_session, user, housing)
    _recurring(db_session, user, housing, name="Gym", amount=5000, day=3)
    _recurring(db_session, user, housing, name="Paused", amount=700, active=False)

    assert process_recurring_expenses(db_session, TODAY) == 1
    txs = db_session.query(models.Transaction).filter_by(user_id=user.id).all()
    assert len(txs) == 1
    tx = txs[0]
    assert (tx.reason, tx.amount, tx.type, tx.source, tx.currency) == ("[Auto: Rent]", 120000, "expense", "recurring", "BRL")
    assert tx.category_id == housing.id

    db_session.refresh(goal)
    assert goal.current_amount == 80000

    # A second run on the same day is a no-op
    assert process_recurring_expenses(db_session, TODAY) == 0


def test_skips_users_without_active_goal(db_session, user, housing):
    _recurring(db_session, user, housing)
    assert process_recurring_expenses(db_session, TODAY) == 0
    assert db_session.query(models.Transaction).count() == 0


def test_run_once_uses_session_factory(db_session, user, goal, housing):
    _recurring(db_session, user, housing, day=datetime.now().day)
    closed = []

    def factory():
        try:
            yield db_session
        finally:
            closed.append(True)

    scheduler = RecurringExpenseScheduler(session_factory=factory)
    assert scheduler.run_once() == 1
    assert closed == [True]
    assert not scheduler.running


def test_run_once_picks_the_local_day(db_session, user, goal, housing):
    # Local midnight of the 5th in UTC+9 is still the 4th in UTC
    local_midnight = datetime(2024, 3, 5, 0, 0, tzinfo=timezone(timedelta(hours=9)))
    _recurring(db_session, user, housing, name="Rent", day=5)
    _recurring(db_session, user, housing, name="Phone", amount=3000, day=4)

    def factory():
        yield db_session

    scheduler = RecurringExpenseScheduler(session_factory=factory, clock=lambda: local_midnight)
    assert scheduler.run_once() == 1
    tx = db_session.query(models.Transaction).one()
    assert tx.reason == "[Auto: Rent]"
    assert tx.created_date.replace(tzinfo=None) == datetime(2024, 3, 4, 15, 0)

    # Same local day, so a restart does not book it twice
    assert scheduler.run_once() == 0


class _RecordingScheduler:
    def __init__(self):
        self.events = []
        self.running = False

    def start(self):
        self.events.append("start")
        self.running = True

    def stop(self):
        self.events.append("stop")
        self.running = False


def test_app_lifespan_starts_and_stops_scheduler(monkeypatch):
    from fastapi.testclient import TestClient

    from moneygoal.api import main

    scheduler = _RecordingScheduler()
    monkeypatch.setattr(main, "_is_pytest_runtime", lambda: False)
    monkeypatch.setattr(main, "get_recurring_scheduler", lambda: scheduler)
    with TestClient(main.app) as client:
        assert client.get("/health").json()["status"] == "ok"
        assert scheduler.events == ["start"]
    assert scheduler.events == ["start", "stop"]


def test_app_lifespan_respects_disabled_flag(monkeypatch):
    from fastapi.testclient import TestClient

    from moneygoal.api import main
    from moneygoal.utils.feature_flags import refresh_feature_flag_cache

    scheduler = _RecordingScheduler()
    monkeypatch.setattr(main, "_is_pytest_runtime", lambda: False)
    monkeypatch.setattr(main, "get_recurring_scheduler", lambda: scheduler)
    monkeypatch.setenv("RECURRING_SCHEDULER_ENABLED", "false")
    refresh_feature_flag_cache()
    with TestClient(main.app):
        pass
    assert scheduler.events == []
