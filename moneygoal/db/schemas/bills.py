import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

BillFrequency = Literal["weekly", "monthly", "yearly"]
BillStatus = Literal["pending", "paid", "overdue"]


class BillReminderCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    amount: int = Field(gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    due_day: int = Field(ge=1, le=31)
    frequency: BillFrequency = "monthly"
    category_id: Optional[uuid.UUID] = None
    reminder_days_before: int = Field(default=3, ge=0, le=30)
    auto_create_transaction: bool = False
    notes: Optional[str] = None


class BillReminderUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[int] = Field(default=None, gt=0)
    due_day: Optional[int] = Field(default=None, ge=1, le=31)
    frequency: Optional[BillFrequency] = None
    category_id: Optional[uuid.UUID] = None
    reminder_days_before: Optional[int] = Field(default=None, ge=0, le=30)
    auto_create_transaction: Optional[bool] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class BillReminder(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    amount: int
    currency: str
    due_day: int
    frequency: BillFrequency
    category_id: Optional[uuid.UUID] = None
    reminder_days_before: int
    auto_create_transaction: bool
    next_due_date: datetime
    status: BillStatus
    last_paid_date: Optional[datetime] = None
    is_active: bool
    notes: Optional[str] = None
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)


class UpcomingBill(BillReminder):
    days_until_due: int
    should_remind: bool


class MarkPaidRequest(BaseModel):
    create_transaction: bool = True


class MarkPaidResponse(BaseModel):
    success: bool = True
    transaction_id: Optional[uuid.UUID] = None
    next_due_date: datetime
