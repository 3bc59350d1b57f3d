"""
Recurring expense templates. The daily scheduler turns them into transactions.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import recurring as recurring_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.api.deps import get_current_user_context

router = APIRouter(prefix="/recurring-expenses", tags=["recurring-expenses"])


@router.get("/", response_model=List[schemas.RecurringExpense])
def list_recurring_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return recurring_repo.list_recurring(db, user_id=user.id)


@router.post("/", response_model=schemas.RecurringExpense, status_code=status.HTTP_201_CREATED)
def create_recurring_endpoint(
    payload: schemas.RecurringExpenseCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not category_repo.get_category(db, category_id=payload.category_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Category not found")
    values = payload.model_dump()
    values["currency"] = payload.currency or settings_repo.preferred_currency(db, user_id=user.id)
    return recurring_repo.create_recurring(db, user_id=user.id, values=values)


@router.put("/{expense_id}", response_model=schemas.RecurringExpense)
def update_recurring_endpoint(
    expense_id: uuid.UUID,
    changes: schemas.RecurringExpenseUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    values = changes.model_dump(exclude_unset=True, exclude_none=True)
    if "category_id" in values and not category_repo.get_category(db, category_id=values["category_id"], user_id=user.id):
        raise HTTPException(status_code=404, detail="Category not found")
    updated = recurring_repo.update_recurring(db, expense_id=expense_id, user_id=user.id, changes=values)
    if not updated:
        raise HTTPException(status_code=404, detail="Recurring expense not found")
    return updated


@router.delete("/{expense_id}")
def delete_recurring_endpoint(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not recurring_repo.delete_recurring(db, expense_id=expense_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Recurring expense not found")
    return {"success": True}
