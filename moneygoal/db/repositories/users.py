"""
Repositories for user accounts.

Lookups by id/email/phone, account creation and sign-in bookkeeping.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.utils.dates import now_utc


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def get_user_by_phone(db: Session, phone_number: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.phone_number == phone_number).first()


def list_users(db: Session) -> List[models.User]:
    return db.query(models.User).order_by(models.User.created_at.asc()).all()


def create_user(
    db: Session,
    *,
    email: str,
    name: Optional[str] = None,
    password_hash: Optional[str] = None,
) -> models.User:
    user = models.User(
        email=email.strip().lower(),
        name=name or email.split("@")[0],
        password_hash=password_hash,
        role="user",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_or_create_user(db: Session, *, email: str, name: Optional[str] = None) -> models.User:
    user = get_user_by_email(db, email)
    if user:
        return user
    return create_user(db, email=email, name=name)


def touch_last_signed_in(db: Session, user: models.User) -> models.User:
    user.last_signed_in = now_utc()
    db.commit()
    db.refresh(user)
    return user


def set_phone_number(db: Session, user: models.User, phone_number: Optional[str]) -> models.User:
    user.phone_number = phone_number
    user.phone_verified = bool(phone_number)
    db.commit()
    db.refresh(user)
    return user
