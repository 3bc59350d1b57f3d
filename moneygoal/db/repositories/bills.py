"""
Repositories for bill reminders.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models


def list_active_bills(db: Session, *, user_id: uuid.UUID) -> List[models.BillReminder]:
    return (
        db.query(models.BillReminder)
        .filter(models.BillReminder.user_id == user_id, models.BillReminder.is_active.is_(True))
        .order_by(models.BillReminder.next_due_date.asc())
        .all()
    )


def list_due_before(db: Session, *, user_id: uuid.UUID, until: datetime) -> List[models.BillReminder]:
    return (
        db.query(models.BillReminder)
        .filter(
            models.BillReminder.user_id == user_id,
            models.BillReminder.is_active.is_(True),
            models.BillReminder.next_due_date <= until,
        )
        .order_by(models.BillReminder.next_due_date.asc())
        .all()
    )


def get_bill(db: Session, *, bill_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.BillReminder]:
    return (
        db.query(models.BillReminder)
        .filter(models.BillReminder.id == bill_id, models.BillReminder.user_id == user_id)
        .first()
    )


def create_bill(db: Session, *, user_id: uuid.UUID, values: Dict[str, Any]) -> models.BillReminder:
    bill = models.BillReminder(user_id=user_id, **values)
    db.add(bill)
    db.commit()
    db.refresh(bill)
    return bill


def update_bill(
    db: Session,
    *,
    bill_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: Dict[str, Any],
) -> Optional[models.BillReminder]:
    bill = get_bill(db, bill_id=bill_id, user_id=user_id)
    if not bill:
        return None
    for field, value in changes.items():
        setattr(bill, field, value)
    db.commit()
    db.refresh(bill)
    return bill


def delete_bill(db: Session, *, bill_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    bill = get_bill(db, bill_id=bill_id, user_id=user_id)
    if not bill:
        return False
    db.delete(bill)
    db.commit()
    return True
