"""
Repositories for category budgets.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from moneygoal.db import models


def list_active_budgets(db: Session, *, user_id: uuid.UUID) -> List[models.Budget]:
    return (
        db.query(models.Budget)
        .options(joinedload(models.Budget.category))
        .filter(models.Budget.user_id == user_id, models.Budget.is_active.is_(True))
        .order_by(models.Budget.created_date.asc())
        .all()
    )


def get_budget(db: Session, *, budget_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.Budget]:
    return (
        db.query(models.Budget)
        .filter(models.Budget.id == budget_id, models.Budget.user_id == user_id)
        .first()
    )


def find_active_duplicate(
    db: Session,
    *,
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    period: str,
) -> Optional[models.Budget]:
    return (
        db.query(models.Budget)
        .filter(
            models.Budget.user_id == user_id,
            models.Budget.category_id == category_id,
            models.Budget.period == period,
            models.Budget.is_active.is_(True),
        )
        .first()
    )


def create_budget(db: Session, *, user_id: uuid.UUID, values: Dict[str, Any]) -> models.Budget:
    budget = models.Budget(user_id=user_id, **values)
    db.add(budget)
    db.commit()
    db.refresh(budget)
    return budget


def update_budget(
    db: Session,
    *,
    budget_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: Dict[str, Any],
) -> Optional[models.Budget]:
    budget = get_budget(db, budget_id=budget_id, user_id=user_id)
    if not budget:
        return None
    for field, value in changes.items():
        setattr(budget, field, value)
    db.commit()
    db.refresh(budget)
    return budget


def delete_budget(db: Session, *, budget_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    budget = get_budget(db, budget_id=budget_id, user_id=user_id)
    if not budget:
        return False
    db.delete(budget)
    db.commit()
    return True
