"""
API dependency helpers.

Resolves the calling user from a bearer token, oauth2-proxy headers or
DEV_MODE, and hands routes a `(user, current_user)` pair.
"""
import logging
import uuid
from typing import Callable, Optional, Tuple, Dict, Any

from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session

from moneygoal.db.database import get_db
from moneygoal.db import models
from moneygoal.db.repositories import users as user_repo
from moneygoal.services.auth_service import InvalidTokenError, decode_access_token
from moneygoal.services.currency_service import ExchangeRateService, get_exchange_rate_service
from moneygoal.services.llm_client import LLMClient, get_llm_client
from moneygoal.services.plaid_service import PlaidService, get_plaid_service
from moneygoal.services.whatsapp_service import WhatsAppSender, get_whatsapp_sender
from moneygoal.services.wise_client import WiseClient
from moneygoal.utils.runtime import dev_mode_active

logger = logging.getLogger("moneygoal.auth")

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    name = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return name, email


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


def _user_from_token(db: Session, token: str) -> models.User:
    try:
        payload = decode_access_token(token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user = user_repo.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token user")
    return user


def _context_for(user: models.User, via: str) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "auth": via,
    }


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.

def get_current_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    token = _bearer_token(authorization)
    if token:
        user = _user_from_token(db, token)
        return user, _context_for(user, "token")

    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    if email:
        user = user_repo.get_or_create_user(db, email=email, name=name)
        return user, _context_for(user, "proxy")

    if dev_mode_active():
        user = user_repo.get_or_create_user(db, email=DEV_USER_EMAIL, name=DEV_USER_NAME)
        return user, _context_for(user, "dev")

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")


def get_current_user_context_or_guest(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
):
    """Return the user context when authenticated; otherwise (guest) return (None, None).

    A bearer token that fails validation still propagates 401.
    """
    try:
        return get_current_user_context(
            db=db,
            authorization=authorization,
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
    except HTTPException:
        if _bearer_token(authorization):
            raise
        return None, None


# Service providers. Routes take these through Depends so tests can swap
# in fakes via app.dependency_overrides.

def get_wise_client_factory() -> Callable[[str], WiseClient]:
    return WiseClient


def get_rates() -> ExchangeRateService:
    return get_exchange_rate_service()


def get_llm() -> LLMClient:
    return get_llm_client()


def get_plaid() -> PlaidService:
    return get_plaid_service()


def get_sender() -> WhatsAppSender:
    return get_whatsapp_sender()
