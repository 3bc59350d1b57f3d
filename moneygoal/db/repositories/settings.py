"""
Repositories for per-user settings (one row per user).
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models

DEFAULT_SETTINGS: Dict[str, Any] = {
    "language": "en",
    "currency": "USD",
    "number_format": "pt-BR",
    "theme": "dark",
    "monthly_saving_target": 0,
}


def get_settings(db: Session, *, user_id: uuid.UUID) -> Optional[models.UserSettings]:
    return db.query(models.UserSettings).filter(models.UserSettings.user_id == user_id).first()


def list_with_webhook_secret(db: Session) -> List[models.UserSettings]:
    return db.query(models.UserSettings).filter(models.UserSettings.wise_webhook_secret.isnot(None)).all()


def create_settings(db: Session, *, user_id: uuid.UUID, values: Optional[Dict[str, Any]] = None) -> models.UserSettings:
    data = dict(DEFAULT_SETTINGS)
    data.update({k: v for k, v in (values or {}).items() if v is not None})
    settings = models.UserSettings(user_id=user_id, **data)
    db.add(settings)
    db.commit()
    db.refresh(settings)
    return settings


def upsert_settings(db: Session, *, user_id: uuid.UUID, changes: Dict[str, Any]) -> models.UserSettings:
    """Apply `changes` to the user's settings, creating the row with defaults when missing.

    Keys present with value None are written as NULL (used to clear secrets).
    """
    settings = get_settings(db, user_id=user_id)
    if not settings:
        settings = create_settings(db, user_id=user_id)
    for field, value in changes.items():
        if value is None and field in DEFAULT_SETTINGS:
            continue
        setattr(settings, field, value)
    db.commit()
    db.refresh(settings)
    return settings


def preferred_currency(db: Session, *, user_id: uuid.UUID) -> str:
    settings = get_settings(db, user_id=user_id)
    return (settings.currency if settings and settings.currency else "USD")
