import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from .categories import Category

BudgetPeriod = Literal["weekly", "monthly", "yearly"]
BudgetStatus = Literal["ok", "warning", "danger", "critical"]


class BudgetCreate(BaseModel):
    category_id: uuid.UUID
    period: BudgetPeriod
    limit_amount: int = Field(gt=0)
    alert_threshold: int = Field(default=75, ge=1, le=100)


class BudgetUpdate(BaseModel):
    limit_amount: Optional[int] = Field(default=None, gt=0)
    alert_threshold: Optional[int] = Field(default=None, ge=1, le=100)
    is_active: Optional[bool] = None


class Budget(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    category_id: uuid.UUID
    period: BudgetPeriod
    limit_amount: int
    alert_threshold: int
    start_date: datetime
    end_date: Optional[datetime] = None
    current_spent: int
    is_active: bool
    created_date: datetime
    category: Optional[Category] = None
    model_config = ConfigDict(from_attributes=True)


class BudgetStatusItem(BaseModel):
    budget_id: uuid.UUID
    category_id: uuid.UUID
    category_name: Optional[str] = None
    period: BudgetPeriod
    limit_amount: int
    spent: int
    percentage: int
    status: BudgetStatus
    message: Optional[str] = None
