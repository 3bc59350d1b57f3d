import uuid
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict

InsightType = Literal["forecast", "alert", "achievement", "tip"]


class AIInsight(BaseModel):
    id: uuid.UUID
    type: InsightType
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    priority: int
    is_read: bool
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)


class DataAvailability(BaseModel):
    transaction_count: int
    has_active_goal: bool
    can_generate_forecast: bool
    can_generate_alerts: bool
    can_generate_achievements: bool
