"""
Generated insights: forecasts, spending alerts and goal milestones.
"""
import logging
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import insights as insight_repo
from moneygoal.api.deps import get_current_user_context, get_llm
from moneygoal.services import insights_service
from moneygoal.services.insights_service import InsufficientDataError
from moneygoal.services.llm_client import LLMClient, LLMError
from moneygoal.utils.feature_flags import llm_features_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("/availability", response_model=schemas.DataAvailability)
def check_data_availability_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return insights_service.check_data_availability(db, user_id=user.id)


@router.get("/", response_model=List[schemas.AIInsight])
def list_insights_endpoint(
    limit: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    return insight_repo.list_insights(db, user_id=user.id, limit=limit)


@router.get("/unread", response_model=List[schemas.AIInsight])
def list_unread_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return insight_repo.list_unread(db, user_id=user.id)


@router.post("/{insight_id}/read")
def mark_read_endpoint(insight_id: uuid.UUID, db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    if not insight_repo.mark_read(db, insight_id=insight_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Insight not found")
    return {"success": True}


@router.delete("/{insight_id}")
def delete_insight_endpoint(insight_id: uuid.UUID, db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    if not insight_repo.delete_insight(db, insight_id=insight_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Insight not found")
    return {"success": True}


@router.post("/forecast", response_model=schemas.AIInsight)
def generate_forecast_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    llm: LLMClient = Depends(get_llm),
):
    if not llm_features_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="LLM features are currently disabled")
    user, _ = user_context
    try:
        return insights_service.generate_forecast(db, user_id=user.id, llm=llm)
    except InsufficientDataError as exc:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))
    except LLMError as exc:
        logger.error("Forecast generation failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to generate forecast")


@router.post("/alerts", response_model=List[schemas.AIInsight])
def generate_alerts_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    try:
        return insights_service.generate_alerts(db, user_id=user.id)
    except InsufficientDataError as exc:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))


@router.post("/achievements", response_model=List[schemas.AIInsight])
def generate_achievements_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    try:
        return insights_service.generate_achievements(db, user_id=user.id)
    except InsufficientDataError as exc:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))
