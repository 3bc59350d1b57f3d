"""
Savings goal endpoints.

Reading the active goal recomputes its balance from the ledger plus any live
Wise balance.
"""
from typing import Callable, List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.api.deps import get_current_user_context, get_rates, get_wise_client_factory
from moneygoal.services.currency_service import ExchangeRateService
from moneygoal.services.goal_balance import recalculate_goal

router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("/", response_model=schemas.Goal, status_code=status.HTTP_201_CREATED)
def create_goal_endpoint(
    goal: schemas.GoalCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    return goal_repo.create_goal(db, user_id=user.id, name=goal.name, target_amount=goal.target_amount)


@router.get("/", response_model=List[schemas.Goal])
def list_goals_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return goal_repo.list_goals(db, user_id=user.id)


@router.get("/active", response_model=Optional[schemas.Goal])
def get_active_goal_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    client_factory: Callable = Depends(get_wise_client_factory),
    rates: ExchangeRateService = Depends(get_rates),
):
    user, _ = user_context
    goal = goal_repo.get_active_goal(db, user_id=user.id)
    if goal is None:
        return None
    return recalculate_goal(db, goal, client_factory=client_factory, rates=rates)


@router.get("/archived", response_model=List[schemas.Goal])
def get_archived_goals_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return goal_repo.get_archived_goals(db, user_id=user.id)


@router.get("/{goal_id}", response_model=schemas.Goal)
def get_goal_endpoint(goal_id: uuid.UUID, db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    goal = goal_repo.get_goal(db, goal_id=goal_id, user_id=user.id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.put("/{goal_id}", response_model=schemas.Goal)
def update_goal_endpoint(
    goal_id: uuid.UUID,
    changes: schemas.GoalUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    updated = goal_repo.update_goal(
        db,
        goal_id=goal_id,
        user_id=user.id,
        changes=changes.model_dump(exclude_unset=True),
    )
    if not updated:
        raise HTTPException(status_code=404, detail="Goal not found")
    return updated


@router.delete("/{goal_id}")
def delete_goal_endpoint(goal_id: uuid.UUID, db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    if not goal_repo.delete_goal(db, goal_id=goal_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Goal not found")
    return {"success": True}
