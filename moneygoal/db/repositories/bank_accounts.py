"""
Repositories for Plaid-linked bank items.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.utils.dates import now_utc


def list_active_accounts(db: Session, *, user_id: uuid.UUID) -> List[models.BankAccount]:
    return (
        db.query(models.BankAccount)
        .filter(models.BankAccount.user_id == user_id, models.BankAccount.is_active.is_(True))
        .order_by(models.BankAccount.created_date.desc())
        .all()
    )


def get_account(db: Session, *, account_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.BankAccount]:
    return (
        db.query(models.BankAccount)
        .filter(models.BankAccount.id == account_id, models.BankAccount.user_id == user_id)
        .first()
    )


def create_account(
    db: Session,
    *,
    user_id: uuid.UUID,
    plaid_item_id: str,
    plaid_access_token: str,
    account_ids: List[str],
    institution_name: Optional[str] = None,
    institution_id: Optional[str] = None,
) -> models.BankAccount:
    account = models.BankAccount(
        user_id=user_id,
        plaid_item_id=plaid_item_id,
        plaid_access_token=plaid_access_token,
        account_ids=list(account_ids),
        institution_name=institution_name,
        institution_id=institution_id,
        is_active=True,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account


def mark_synced(db: Session, account: models.BankAccount) -> None:
    account.last_sync = now_utc()
    db.commit()


def deactivate(db: Session, account: models.BankAccount) -> None:
    account.is_active = False
    db.commit()
