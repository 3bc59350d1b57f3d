import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_email(value: str) -> str:
    cleaned = (value or "").strip().lower()
    if "@" not in cleaned or cleaned.startswith("@") or cleaned.endswith("@"):
        raise ValueError("Invalid email address")
    return cleaned


class UserBase(BaseModel):
    email: str
    name: Optional[str] = None


class User(UserBase):
    id: uuid.UUID
    role: str
    phone_number: Optional[str] = None
    phone_verified: bool = False
    created_at: datetime
    last_signed_in: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: User
