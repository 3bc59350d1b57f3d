"""
Recurring expense scheduler for MoneyGoal.

Materializes recurring expenses into transactions once per day. The app starts
it on boot when RECURRING_SCHEDULER_ENABLED is set; it can also be run on its
own:

Usage:
    python -m moneygoal.workers.recurring_scheduler
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from moneygoal.db.database import get_db_session_local
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import recurring as recurring_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.db.repositories import users as user_repo
from moneygoal.utils.dates import now_utc

logger = logging.getLogger(__name__)


def auto_reason(name: str) -> str:
    return f"[Auto: {name}]"


def process_recurring_expenses(db: Session, today: Optional[datetime] = None) -> int:
    """Create today's transactions for every active recurring expense.

    Returns how many transactions were created. Failures are logged per user
    so one bad record does not stop the run. `today` decides which
    `day_of_month` is due; a naive value is read as server local time.
    """
    today = today or now_utc()
    if today.tzinfo is None:
        today = today.astimezone()
    stamp = today.astimezone(timezone.utc)
    created = 0
    for user in user_repo.list_users(db):
        try:
            due = recurring_repo.list_due_on_day(db, user_id=user.id, day=today.day)
            if not due:
                continue
            goal = goal_repo.get_active_goal(db, user_id=user.id)
            if goal is None:
                logger.warning("User %s has recurring expenses due but no active goal; skipping", user.id)
                continue
            currency = settings_repo.preferred_currency(db, user_id=user.id)
            for expense in due:
                reason = auto_reason(expense.name)
                if tx_repo.reason_exists_on_day(db, user_id=user.id, fragment=reason, day=today):
                    continue
                tx_repo.create_transaction(
                    db,
                    user_id=user.id,
                    goal=goal,
                    type="expense",
                    amount=expense.amount,
                    reason=reason,
                    source="recurring",
                    currency=currency,
                    category_id=expense.category_id,
                    created_date=stamp,
                )
                created += 1
                logger.info("Created recurring transaction %s for user %s", reason, user.id)
        except Exception:
            db.rollback()
            logger.exception("Failed to process recurring expenses for user %s", user.id)
    logger.info("Recurring expense run finished: %d transaction(s) created", created)
    return created


def seconds_until_midnight(now: datetime) -> float:
    next_midnight = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (next_midnight - now).total_seconds()


class RecurringExpenseScheduler:
    """Background thread: one run at start, then one run per local midnight."""

    def __init__(
        self,
        session_factory: Callable = get_db_session_local,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        gen = self._session_factory()
        db = next(gen)
        try:
            return process_recurring_expenses(db, self._clock())
        except Exception:
            logger.exception("Recurring expense run failed")
            return 0
        finally:
            gen.close()

    def _loop(self) -> None:
        logger.info("Recurring expense scheduler started")
        self.run_once()
        while not self._stop.is_set():
            wait = seconds_until_midnight(self._clock())
            logger.debug("Next recurring expense run in %.0f seconds", wait)
            if self._stop.wait(wait):
                break
            self.run_once()
        logger.info("Recurring expense scheduler stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="recurring-expenses", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None


_scheduler: Optional[RecurringExpenseScheduler] = None


def get_recurring_scheduler() -> RecurringExpenseScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = RecurringExpenseScheduler()
    return _scheduler


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    RecurringExpenseScheduler().run_once()
