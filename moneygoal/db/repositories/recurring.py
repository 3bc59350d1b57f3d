"""
Repositories for recurring expense templates.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models


def list_recurring(db: Session, *, user_id: uuid.UUID) -> List[models.RecurringExpense]:
    return (
        db.query(models.RecurringExpense)
        .filter(models.RecurringExpense.user_id == user_id)
        .order_by(models.RecurringExpense.created_date.asc())
        .all()
    )


def list_due_on_day(db: Session, *, user_id: uuid.UUID, day: int) -> List[models.RecurringExpense]:
    return (
        db.query(models.RecurringExpense)
        .filter(
            models.RecurringExpense.user_id == user_id,
            models.RecurringExpense.is_active.is_(True),
            models.RecurringExpense.day_of_month == day,
        )
        .all()
    )


def get_recurring(db: Session, *, expense_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.RecurringExpense]:
    return (
        db.query(models.RecurringExpense)
        .filter(models.RecurringExpense.id == expense_id, models.RecurringExpense.user_id == user_id)
        .first()
    )


def create_recurring(db: Session, *, user_id: uuid.UUID, values: Dict[str, Any]) -> models.RecurringExpense:
    expense = models.RecurringExpense(user_id=user_id, **values)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def update_recurring(
    db: Session,
    *,
    expense_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: Dict[str, Any],
) -> Optional[models.RecurringExpense]:
    expense = get_recurring(db, expense_id=expense_id, user_id=user_id)
    if not expense:
        return None
    for field, value in changes.items():
        setattr(expense, field, value)
    db.commit()
    db.refresh(expense)
    return expense


def delete_recurring(db: Session, *, expense_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    expense = get_recurring(db, expense_id=expense_id, user_id=user_id)
    if not expense:
        return False
    db.delete(expense)
    db.commit()
    return True
