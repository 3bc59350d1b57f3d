"""
Repositories for advisor chat history.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from moneygoal.db import models


def list_messages(db: Session, *, user_id: uuid.UUID) -> List[models.ChatMessage]:
    return (
        db.query(models.ChatMessage)
        .filter(models.ChatMessage.user_id == user_id)
        .order_by(models.ChatMessage.created_date.asc())
        .all()
    )


def recent_messages(db: Session, *, user_id: uuid.UUID, limit: int = 10) -> List[models.ChatMessage]:
    """Last `limit` messages in chronological order."""
    rows = (
        db.query(models.ChatMessage)
        .filter(models.ChatMessage.user_id == user_id)
        .order_by(models.ChatMessage.created_date.desc())
        .limit(limit)
        .all()
    )
    return list(reversed(rows))


def count_user_messages_since(db: Session, *, user_id: uuid.UUID, since: datetime) -> int:
    return (
        db.query(func.count(models.ChatMessage.id))
        .filter(
            models.ChatMessage.user_id == user_id,
            models.ChatMessage.role == "user",
            models.ChatMessage.created_date >= since,
        )
        .scalar()
        or 0
    )


def create_message(
    db: Session,
    *,
    user_id: uuid.UUID,
    role: str,
    content: str,
    conversation_flow: Optional[str] = None,
    flow_step: Optional[int] = None,
) -> models.ChatMessage:
    message = models.ChatMessage(
        user_id=user_id,
        role=role,
        content=content,
        conversation_flow=conversation_flow,
        flow_step=flow_step,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def delete_messages(db: Session, *, user_id: uuid.UUID) -> int:
    deleted = (
        db.query(models.ChatMessage)
        .filter(models.ChatMessage.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
