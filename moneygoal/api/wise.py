"""
Wise account linking, live balances and statement sync.
"""
import logging
from datetime import datetime, time, timezone
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.api.deps import get_current_user_context, get_wise_client_factory
from moneygoal.services.wise_client import WiseAPIError, balance_amount
from moneygoal.services.wise_sync import sync_goal
from moneygoal.utils.feature_flags import wise_sync_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wise", tags=["wise"])


def _require_enabled() -> None:
    if not wise_sync_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Wise sync is currently disabled")


def _day_bound(value, *, end: bool) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.combine(value, time.max if end else time.min, tzinfo=timezone.utc)


@router.post("/token", response_model=schemas.WiseTokenResponse)
def save_token_endpoint(
    payload: schemas.WiseTokenRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    client_factory: Callable = Depends(get_wise_client_factory),
):
    _require_enabled()
    user, _ = user_context
    try:
        profiles = client_factory(payload.api_token).get_profiles()
    except WiseAPIError as exc:
        logger.warning("Wise token validation failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Wise API token")
    settings_repo.upsert_settings(db, user_id=user.id, changes={"wise_api_token": payload.api_token})
    return {"success": True, "profile_count": len(profiles)}


@router.delete("/token")
def remove_token_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    if settings_repo.get_settings(db, user_id=user.id):
        settings_repo.upsert_settings(db, user_id=user.id, changes={"wise_api_token": None})
    return {"success": True}


@router.get("/balances", response_model=List[schemas.WiseBalance])
def get_balances_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    client_factory: Callable = Depends(get_wise_client_factory),
):
    _require_enabled()
    user, _ = user_context
    settings = settings_repo.get_settings(db, user_id=user.id)
    if not settings or not settings.wise_api_token:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail="Wise API token not configured")
    client = client_factory(settings.wise_api_token)
    try:
        profiles = client.get_profiles()
        if not profiles:
            raise HTTPException(status_code=404, detail="No Wise profiles found")
        balances = client.get_balances(profiles[0]["id"])
    except WiseAPIError as exc:
        logger.error("Wise balance fetch failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to fetch Wise balances: {exc.message}")
    return [
        {"currency": b.get("currency"), "amount": balance_amount(b), "type": b.get("type")}
        for b in balances
    ]


@router.post("/sync", response_model=schemas.SyncResult)
def sync_transactions_endpoint(
    payload: schemas.SyncRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    client_factory: Callable = Depends(get_wise_client_factory),
):
    _require_enabled()
    user, _ = user_context
    settings = settings_repo.get_settings(db, user_id=user.id)
    if not settings or not settings.wise_api_token:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail="Wise API token not configured")
    goal = goal_repo.get_goal(db, goal_id=payload.goal_id, user_id=user.id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    try:
        result = sync_goal(
            db,
            user=user,
            goal=goal,
            client=client_factory(settings.wise_api_token),
            start=_day_bound(payload.start_date, end=False),
            end=_day_bound(payload.end_date, end=True),
        )
    except WiseAPIError as exc:
        db.rollback()
        logger.error("Wise sync failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to sync transactions: {exc.message}")
    return {"success": True, **result}
