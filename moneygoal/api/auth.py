"""
Account endpoints: email/password registration and login issuing JWTs.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import users as user_repo
from moneygoal.api.deps import get_current_user_context_or_guest
from moneygoal.services.auth_service import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user) -> schemas.AuthResponse:
    token = create_access_token(user.id, user.email)
    return schemas.AuthResponse(token=token, user=schemas.User.model_validate(user))


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    if user_repo.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    user = user_repo.create_user(
        db,
        email=payload.email,
        name=payload.name,
        password_hash=hash_password(payload.password),
    )
    logger.info("Registered user %s", user.id)
    return _auth_response(user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    user = user_repo.touch_last_signed_in(db, user)
    return _auth_response(user)


@router.get("/me", response_model=Optional[schemas.User])
def me(user_context=Depends(get_current_user_context_or_guest)):
    user, _ = user_context
    return user


@router.post("/logout")
def logout():
    # Tokens are stateless; the client drops its copy.
    return {"success": True}
