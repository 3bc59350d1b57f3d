"""Password hashing and JWT session tokens."""
from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
_DEFAULT_EXPIRE_MINUTES = 60 * 24 * 7

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when a bearer token is expired, malformed or badly signed."""


def _jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        logger.warning("JWT_SECRET not set; using an insecure development secret")
        return "moneygoal-dev-secret"
    return secret


def _expire_minutes() -> int:
    raw = os.getenv("JWT_EXPIRE_MINUTES")
    try:
        return int(raw) if raw else _DEFAULT_EXPIRE_MINUTES
    except ValueError:
        return _DEFAULT_EXPIRE_MINUTES


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def create_access_token(user_id: uuid.UUID, email: str, *, expires_in: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_in or timedelta(minutes=_expire_minutes()))
    payload = {"sub": str(user_id), "email": email, "exp": expire}
    return jwt.encode(payload, _jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise InvalidTokenError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError("Invalid token") from exc
