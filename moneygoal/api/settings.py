"""
Per-user preferences. Stored secrets are reported only as booleans.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.api.deps import get_current_user_context

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=Optional[schemas.Settings])
def get_settings_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    settings = settings_repo.get_settings(db, user_id=user.id)
    return schemas.Settings.from_model(settings) if settings else None


@router.post("/", response_model=schemas.Settings, status_code=status.HTTP_201_CREATED)
def create_settings_endpoint(
    payload: schemas.SettingsCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if settings_repo.get_settings(db, user_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Settings already exist")
    settings = settings_repo.create_settings(
        db,
        user_id=user.id,
        values=payload.model_dump(exclude_none=True),
    )
    return schemas.Settings.from_model(settings)


@router.put("/", response_model=schemas.Settings)
def update_settings_endpoint(
    payload: schemas.SettingsUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    settings = settings_repo.upsert_settings(
        db,
        user_id=user.id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return schemas.Settings.from_model(settings)
