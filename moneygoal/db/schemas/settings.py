import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

NumberFormat = Literal["en-US", "pt-BR"]
Theme = Literal["dark", "light"]


class _SettingsFields(BaseModel):
    language: Optional[str] = Field(default=None, min_length=2, max_length=10)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    number_format: Optional[NumberFormat] = None
    theme: Optional[Theme] = None
    monthly_saving_target: Optional[int] = Field(default=None, ge=0)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class SettingsCreate(_SettingsFields):
    pass


class SettingsUpdate(_SettingsFields):
    has_unread_archived: Optional[bool] = None
    wise_api_token: Optional[str] = None
    wise_webhook_secret: Optional[str] = None


class Settings(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    language: str
    currency: str
    number_format: str
    theme: str
    monthly_saving_target: int
    has_unread_archived: bool
    has_wise_token: bool = False
    has_webhook_secret: bool = False
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, settings) -> "Settings":
        out = cls.model_validate(settings)
        out.has_wise_token = bool(settings.wise_api_token)
        out.has_webhook_secret = bool(settings.wise_webhook_secret)
        return out
