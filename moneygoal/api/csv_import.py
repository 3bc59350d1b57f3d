"""
Bank statement CSV imports (Nubank and Wise exports).
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.api.deps import get_current_user_context
from moneygoal.services.csv_import import import_nubank, import_wise, parse_nubank_csv, parse_wise_csv

router = APIRouter(prefix="/csv", tags=["csv"])


def _owned_goal(db: Session, goal_id: uuid.UUID, user_id: uuid.UUID):
    goal = goal_repo.get_goal(db, goal_id=goal_id, user_id=user_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.post("/nubank", response_model=schemas.CsvImportResult)
def import_nubank_endpoint(
    payload: schemas.CsvImportRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    goal = _owned_goal(db, payload.goal_id, user.id)
    rows = parse_nubank_csv(payload.csv_content)
    if not rows:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid transactions found in CSV")
    return {"success": True, **import_nubank(db, user=user, goal=goal, rows=rows)}


@router.post("/wise", response_model=schemas.CsvImportResult)
def import_wise_endpoint(
    payload: schemas.CsvImportRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    goal = _owned_goal(db, payload.goal_id, user.id)
    rows = parse_wise_csv(payload.csv_content)
    if not rows:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid transactions found in CSV")
    return {"success": True, **import_wise(db, user=user, goal=goal, rows=rows)}


@router.delete("/wise/{goal_id}", response_model=schemas.ClearResult)
def clear_wise_transactions_endpoint(
    goal_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    _owned_goal(db, goal_id, user.id)
    deleted = tx_repo.delete_by_source(db, goal_id=goal_id, user_id=user.id, source="wise")
    return {"success": True, "deleted_count": deleted}
