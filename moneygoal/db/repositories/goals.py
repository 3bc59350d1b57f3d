"""
Repositories for savings goals.

CRUD scoped by owner plus the clamped current-amount adjustment shared by
every code path that books a transaction.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models


def create_goal(db: Session, *, user_id: uuid.UUID, name: str, target_amount: int) -> models.Goal:
    goal = models.Goal(
        user_id=user_id,
        name=name,
        target_amount=target_amount,
        current_amount=0,
        status="active",
    )
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


def get_goal(db: Session, *, goal_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.Goal]:
    return (
        db.query(models.Goal)
        .filter(models.Goal.id == goal_id, models.Goal.user_id == user_id)
        .first()
    )


def list_goals(db: Session, *, user_id: uuid.UUID) -> List[models.Goal]:
    return (
        db.query(models.Goal)
        .filter(models.Goal.user_id == user_id)
        .order_by(models.Goal.created_date.desc())
        .all()
    )


def get_active_goal(db: Session, *, user_id: uuid.UUID) -> Optional[models.Goal]:
    return (
        db.query(models.Goal)
        .filter(models.Goal.user_id == user_id, models.Goal.status == "active")
        .order_by(models.Goal.created_date.desc())
        .first()
    )


def get_archived_goals(db: Session, *, user_id: uuid.UUID) -> List[models.Goal]:
    return (
        db.query(models.Goal)
        .filter(models.Goal.user_id == user_id, models.Goal.status == "archived")
        .order_by(models.Goal.archived_date.desc())
        .all()
    )


def update_goal(
    db: Session,
    *,
    goal_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: Dict[str, Any],
) -> Optional[models.Goal]:
    goal = get_goal(db, goal_id=goal_id, user_id=user_id)
    if not goal:
        return None
    for field, value in changes.items():
        setattr(goal, field, value)
    db.commit()
    db.refresh(goal)
    return goal


def delete_goal(db: Session, *, goal_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    goal = get_goal(db, goal_id=goal_id, user_id=user_id)
    if not goal:
        return False
    db.delete(goal)
    db.commit()
    return True


def apply_transaction(goal: models.Goal, *, type: str, amount: int) -> int:
    """Add income / subtract expense on the goal, never going below zero.

    Mutates the instance only; the caller commits.
    """
    current = goal.current_amount or 0
    new_amount = current + amount if type == "income" else current - amount
    goal.current_amount = max(0, new_amount)
    return goal.current_amount
