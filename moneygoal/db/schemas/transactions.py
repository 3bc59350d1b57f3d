import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

TransactionType = Literal["income", "expense"]


class TransactionCreate(BaseModel):
    goal_id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    type: TransactionType
    amount: int = Field(gt=0)
    reason: str = Field(min_length=1, max_length=255)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    exchange_rate: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator("exchange_rate")
    @classmethod
    def _numeric_rate(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            rate = float(v)
        except ValueError:
            raise ValueError("exchange_rate must be numeric")
        if rate <= 0:
            raise ValueError("exchange_rate must be positive")
        return v


class TransactionUpdate(BaseModel):
    category_id: Optional[uuid.UUID] = None
    type: Optional[TransactionType] = None
    amount: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = Field(default=None, min_length=1, max_length=255)


class Transaction(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    goal_id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    type: TransactionType
    amount: int
    reason: str
    source: str
    currency: str
    exchange_rate: Optional[str] = None
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)
