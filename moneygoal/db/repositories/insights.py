"""
Repositories for generated AI insights.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models


def list_insights(db: Session, *, user_id: uuid.UUID, limit: int = 10) -> List[models.AIInsight]:
    return (
        db.query(models.AIInsight)
        .filter(models.AIInsight.user_id == user_id)
        .order_by(models.AIInsight.priority.desc(), models.AIInsight.created_date.desc())
        .limit(limit)
        .all()
    )


def list_unread(db: Session, *, user_id: uuid.UUID) -> List[models.AIInsight]:
    return (
        db.query(models.AIInsight)
        .filter(models.AIInsight.user_id == user_id, models.AIInsight.is_read.is_(False))
        .order_by(models.AIInsight.priority.desc(), models.AIInsight.created_date.desc())
        .all()
    )


def list_by_type(db: Session, *, user_id: uuid.UUID, type: str) -> List[models.AIInsight]:
    return (
        db.query(models.AIInsight)
        .filter(models.AIInsight.user_id == user_id, models.AIInsight.type == type)
        .all()
    )


def create_insight(
    db: Session,
    *,
    user_id: uuid.UUID,
    type: str,
    title: str,
    message: str,
    priority: int = 0,
    data: Optional[Dict[str, Any]] = None,
) -> models.AIInsight:
    insight = models.AIInsight(
        user_id=user_id,
        type=type,
        title=title[:255],
        message=message,
        priority=priority,
        data=data,
        is_read=False,
    )
    db.add(insight)
    db.commit()
    db.refresh(insight)
    return insight


def mark_read(db: Session, *, insight_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    insight = (
        db.query(models.AIInsight)
        .filter(models.AIInsight.id == insight_id, models.AIInsight.user_id == user_id)
        .first()
    )
    if not insight:
        return False
    insight.is_read = True
    db.commit()
    return True


def delete_insight(db: Session, *, insight_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    deleted = (
        db.query(models.AIInsight)
        .filter(models.AIInsight.id == insight_id, models.AIInsight.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)
