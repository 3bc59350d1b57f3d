"""
Repositories for categories and learned category patterns.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.utils.dates import now_utc


def list_categories(db: Session, *, user_id: uuid.UUID) -> List[models.Category]:
    return (
        db.query(models.Category)
        .filter(models.Category.user_id == user_id)
        .order_by(models.Category.created_date.asc(), models.Category.name.asc())
        .all()
    )


def get_category(db: Session, *, category_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.Category]:
    return (
        db.query(models.Category)
        .filter(models.Category.id == category_id, models.Category.user_id == user_id)
        .first()
    )


def get_category_by_name(db: Session, *, user_id: uuid.UUID, name: str) -> Optional[models.Category]:
    lowered = name.strip().lower()
    for category in list_categories(db, user_id=user_id):
        if category.name.lower() == lowered:
            return category
    return None


def create_category(
    db: Session,
    *,
    user_id: uuid.UUID,
    name: str,
    emoji: str,
    color: str,
    keywords: Optional[List[str]] = None,
    is_default: bool = False,
    commit: bool = True,
) -> models.Category:
    category = models.Category(
        user_id=user_id,
        name=name,
        emoji=emoji,
        color=color,
        keywords=list(keywords or []),
        is_default=is_default,
    )
    db.add(category)
    if commit:
        db.commit()
        db.refresh(category)
    return category


def seed_default_categories(db: Session, *, user_id: uuid.UUID, defaults: Iterable[Dict[str, Any]]) -> List[models.Category]:
    created = [
        create_category(db, user_id=user_id, is_default=True, commit=False, **spec)
        for spec in defaults
    ]
    db.commit()
    for category in created:
        db.refresh(category)
    return created


def update_category(
    db: Session,
    *,
    category_id: uuid.UUID,
    user_id: uuid.UUID,
    changes: Dict[str, Any],
) -> Optional[models.Category]:
    category = get_category(db, category_id=category_id, user_id=user_id)
    if not category:
        return None
    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, *, category_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    category = get_category(db, category_id=category_id, user_id=user_id)
    if not category:
        return False
    db.delete(category)
    db.commit()
    return True


# Learned patterns


def list_learning(db: Session, *, user_id: uuid.UUID) -> List[models.CategoryLearning]:
    return (
        db.query(models.CategoryLearning)
        .filter(models.CategoryLearning.user_id == user_id)
        .order_by(models.CategoryLearning.confidence.desc(), models.CategoryLearning.last_used.desc())
        .all()
    )


def get_learning_by_keyword(db: Session, *, user_id: uuid.UUID, keyword: str) -> Optional[models.CategoryLearning]:
    return (
        db.query(models.CategoryLearning)
        .filter(
            models.CategoryLearning.user_id == user_id,
            models.CategoryLearning.keyword == keyword,
        )
        .first()
    )


def upsert_learning(
    db: Session,
    *,
    user_id: uuid.UUID,
    keyword: str,
    category_id: uuid.UUID,
) -> models.CategoryLearning:
    """Reinforce or (re)assign a pattern -> category mapping."""
    existing = get_learning_by_keyword(db, user_id=user_id, keyword=keyword)
    if existing:
        if existing.category_id == category_id:
            existing.confidence = min(1.0, (existing.confidence or 0.5) + 0.1)
            existing.usage_count = (existing.usage_count or 0) + 1
        else:
            existing.category_id = category_id
            existing.confidence = 0.5
            existing.usage_count = 1
        existing.last_used = now_utc()
        db.commit()
        db.refresh(existing)
        return existing
    row = models.CategoryLearning(
        user_id=user_id,
        keyword=keyword,
        category_id=category_id,
        confidence=0.5,
        usage_count=1,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_learning(db: Session, *, learning_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    deleted = (
        db.query(models.CategoryLearning)
        .filter(models.CategoryLearning.id == learning_id, models.CategoryLearning.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return bool(deleted)


def reset_learning(db: Session, *, user_id: uuid.UUID) -> int:
    deleted = (
        db.query(models.CategoryLearning)
        .filter(models.CategoryLearning.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
