"""
Category budgets and their usage status.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import budgets as budget_repo
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.api.deps import get_current_user_context
from moneygoal.services.budget_status import budget_end_date, classify, usage_percentage
from moneygoal.utils.dates import now_utc

router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("/", response_model=List[schemas.Budget])
def list_budgets_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return budget_repo.list_active_budgets(db, user_id=user.id)


@router.post("/", response_model=schemas.Budget, status_code=status.HTTP_201_CREATED)
def create_budget_endpoint(
    payload: schemas.BudgetCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not category_repo.get_category(db, category_id=payload.category_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Category not found")
    if budget_repo.find_active_duplicate(db, user_id=user.id, category_id=payload.category_id, period=payload.period):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An active budget already exists for this category and period",
        )
    start = now_utc()
    values = payload.model_dump()
    values.update({"start_date": start, "end_date": budget_end_date(start, payload.period), "current_spent": 0})
    return budget_repo.create_budget(db, user_id=user.id, values=values)


@router.get("/status", response_model=List[schemas.BudgetStatusItem])
def check_budget_status_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    items = []
    for budget in budget_repo.list_active_budgets(db, user_id=user.id):
        spent = tx_repo.sum_expenses_for_category(
            db,
            user_id=user.id,
            category_id=budget.category_id,
            since=budget.start_date,
        )
        percentage = usage_percentage(spent, budget.limit_amount)
        state, message = classify(percentage, budget.alert_threshold)
        budget.current_spent = spent
        items.append(schemas.BudgetStatusItem(
            budget_id=budget.id,
            category_id=budget.category_id,
            category_name=budget.category.name if budget.category else None,
            period=budget.period,
            limit_amount=budget.limit_amount,
            spent=spent,
            percentage=percentage,
            status=state,
            message=message,
        ))
    db.commit()
    return items


@router.put("/{budget_id}", response_model=schemas.Budget)
def update_budget_endpoint(
    budget_id: uuid.UUID,
    changes: schemas.BudgetUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    updated = budget_repo.update_budget(
        db,
        budget_id=budget_id,
        user_id=user.id,
        changes=changes.model_dump(exclude_unset=True, exclude_none=True),
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Budget not found")
    return updated


@router.delete("/{budget_id}")
def delete_budget_endpoint(
    budget_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not budget_repo.delete_budget(db, budget_id=budget_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Budget not found")
    return {"success": True}
