import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

GoalStatus = Literal["active", "archived"]


class GoalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    target_amount: int = Field(gt=0)


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    target_amount: Optional[int] = Field(default=None, gt=0)
    current_amount: Optional[int] = Field(default=None, ge=0)
    status: Optional[GoalStatus] = None
    archived_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None


class Goal(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    target_amount: int
    current_amount: int
    status: GoalStatus
    created_date: datetime
    archived_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
