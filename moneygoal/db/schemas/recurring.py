import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

Frequency = Literal["daily", "weekly", "monthly", "yearly"]


class RecurringExpenseCreate(BaseModel):
    category_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    amount: int = Field(gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    frequency: Frequency
    is_active: bool = True
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)


class RecurringExpenseUpdate(BaseModel):
    category_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[int] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    frequency: Optional[Frequency] = None
    is_active: Optional[bool] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)


class RecurringExpense(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    category_id: uuid.UUID
    name: str
    amount: int
    currency: str
    frequency: Frequency
    is_active: bool
    day_of_month: Optional[int] = None
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)
