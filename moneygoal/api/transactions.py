"""
Transaction endpoints. Creating a transaction moves the goal balance and
feeds category learning.
"""
import logging
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.api.deps import get_current_user_context
from moneygoal.services.categorization import categorize, load_user_categories

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/", response_model=List[schemas.Transaction])
def list_transactions_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return tx_repo.list_transactions(db, user_id=user.id)


@router.get("/goal/{goal_id}", response_model=List[schemas.Transaction])
def list_goal_transactions_endpoint(
    goal_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    return tx_repo.list_by_goal(db, goal_id=goal_id, user_id=user.id)


@router.post("/", response_model=schemas.Transaction, status_code=status.HTTP_201_CREATED)
def create_transaction_endpoint(
    payload: schemas.TransactionCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    goal = goal_repo.get_goal(db, goal_id=payload.goal_id, user_id=user.id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")

    category_id = payload.category_id
    if category_id is not None:
        if not category_repo.get_category(db, category_id=category_id, user_id=user.id):
            raise HTTPException(status_code=404, detail="Category not found")
        category_repo.upsert_learning(
            db,
            user_id=user.id,
            keyword=payload.reason.strip().lower(),
            category_id=category_id,
        )
    else:
        matched = categorize(payload.reason, load_user_categories(db, user_id=user.id))
        category_id = matched.id if matched else None

    return tx_repo.create_transaction(
        db,
        user_id=user.id,
        goal=goal,
        type=payload.type,
        amount=payload.amount,
        reason=payload.reason,
        currency=payload.currency or settings_repo.preferred_currency(db, user_id=user.id),
        category_id=category_id,
        exchange_rate=payload.exchange_rate,
    )


@router.put("/{transaction_id}", response_model=schemas.Transaction)
def update_transaction_endpoint(
    transaction_id: uuid.UUID,
    changes: schemas.TransactionUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    values = changes.model_dump(exclude_unset=True)
    if values.get("category_id") and not category_repo.get_category(db, category_id=values["category_id"], user_id=user.id):
        raise HTTPException(status_code=404, detail="Category not found")
    updated = tx_repo.update_transaction(db, transaction_id=transaction_id, user_id=user.id, changes=values)
    if not updated:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return updated


@router.delete("/{transaction_id}")
def delete_transaction_endpoint(
    transaction_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not tx_repo.delete_transaction(db, transaction_id=transaction_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Transaction not found")
    return {"success": True}
