"""
Repositories for income/expense transactions.

Listing, creation (with optional goal adjustment), import deduplication
helpers and date-window aggregates used by reports.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.utils.dates import start_of_day


def list_transactions(db: Session, *, user_id: uuid.UUID) -> List[models.Transaction]:
    return (
        db.query(models.Transaction)
        .filter(models.Transaction.user_id == user_id)
        .order_by(models.Transaction.created_date.desc())
        .all()
    )


def list_by_goal(db: Session, *, goal_id: uuid.UUID, user_id: uuid.UUID) -> List[models.Transaction]:
    return (
        db.query(models.Transaction)
        .filter(models.Transaction.goal_id == goal_id, models.Transaction.user_id == user_id)
        .order_by(models.Transaction.created_date.desc())
        .all()
    )


def list_since(
    db: Session,
    *,
    user_id: uuid.UUID,
    since: datetime,
    until: Optional[datetime] = None,
    type: Optional[str] = None,
) -> List[models.Transaction]:
    query = db.query(models.Transaction).filter(
        models.Transaction.user_id == user_id,
        models.Transaction.created_date >= since,
    )
    if until is not None:
        query = query.filter(models.Transaction.created_date < until)
    if type:
        query = query.filter(models.Transaction.type == type)
    return query.order_by(models.Transaction.created_date.desc()).all()


def count_transactions(db: Session, *, user_id: uuid.UUID) -> int:
    return db.query(func.count(models.Transaction.id)).filter(models.Transaction.user_id == user_id).scalar() or 0


def get_transaction(db: Session, *, transaction_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.Transaction]:
    return (
        db.query(models.Transaction)
        .filter(models.Transaction.id == transaction_id, models.Transaction.user_id == user_id)
        .first()
    )


def create_transaction(
    db: Session,
    *,
    user_id: uuid.UUID,
    goal: models.Goal,
    type: str,
    amount: int,
    reason: str,
    source: str = "manual",
    currency: str = "USD",
    category_id: Optional[uuid.UUID] = None,
    exchange_rate: Optional[str] = None,
    created_date: Optional[datetime] = None,
    adjust_goal: bool = True,
    commit: bool = True,
) -> models.Transaction:
    tx = models.Transaction(
        user_id=user_id,
        goal_id=goal.id,
        category_id=category_id,
        type=type,
        amount=amount,
        reason=reason[:255],
        source=source,
        currency=currency or "USD",
        exchange_rate=exchange_rate,
    )
    if created_date is not None:
        tx.created_date = created_date
    db.add(tx)
    if adjust_goal:
        goal_repo.apply_transaction(goal, type=type, amount=amount)
    if commit:
        db.commit()
        db.refresh(tx)
    else:
        db.flush()
    return tx


def update_transaction(
    db: Session,
    *,
    transaction_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: Dict[str, Any],
) -> Optional[models.Transaction]:
    tx = get_transaction(db, transaction_id=transaction_id, user_id=user_id)
    if not tx:
        return None
    for field, value in changes.items():
        setattr(tx, field, value)
    db.commit()
    db.refresh(tx)
    return tx


def delete_transaction(db: Session, *, transaction_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    tx = get_transaction(db, transaction_id=transaction_id, user_id=user_id)
    if not tx:
        return False
    db.delete(tx)
    db.commit()
    return True


def reason_exists(db: Session, *, user_id: uuid.UUID, fragment: str) -> bool:
    """True when any of the user's transactions mentions `fragment` in its reason."""
    return (
        db.query(models.Transaction.id)
        .filter(
            models.Transaction.user_id == user_id,
            models.Transaction.reason.contains(fragment, autoescape=True),
        )
        .first()
        is not None
    )


def reason_exists_on_day(db: Session, *, user_id: uuid.UUID, fragment: str, day: datetime) -> bool:
    """Same as `reason_exists` but restricted to the calendar day of `day`."""
    day_start = start_of_day(day)
    day_end = day_start + timedelta(days=1)
    if day.tzinfo is not None:
        # Stored timestamps are UTC; compare against the local day's bounds in UTC
        day_start, day_end = day_start.astimezone(timezone.utc), day_end.astimezone(timezone.utc)
    return (
        db.query(models.Transaction.id)
        .filter(
            models.Transaction.user_id == user_id,
            models.Transaction.reason.contains(fragment, autoescape=True),
            models.Transaction.created_date >= day_start,
            models.Transaction.created_date < day_end,
        )
        .first()
        is not None
    )


def delete_by_source(db: Session, *, goal_id: uuid.UUID, user_id: uuid.UUID, source: str) -> int:
    deleted = (
        db.query(models.Transaction)
        .filter(
            models.Transaction.goal_id == goal_id,
            models.Transaction.user_id == user_id,
            models.Transaction.source == source,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def sum_expenses_for_category(
    db: Session,
    *,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    since: datetime,
) -> int:
    total = (
        db.query(func.coalesce(func.sum(models.Transaction.amount), 0))
        .filter(
            models.Transaction.user_id == user_id,
            models.Transaction.category_id == category_id,
            models.Transaction.type == "expense",
            models.Transaction.created_date >= since,
        )
        .scalar()
    )
    return int(total or 0)
