import uuid
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatSendRequest(BaseModel):
    message: str = Field(min_length=1, max_length=1000)


class ChatSendResponse(BaseModel):
    response: str
    flow: Optional[str] = None
    flow_step: Optional[int] = None
    language: str


class ChatMessage(BaseModel):
    id: uuid.UUID
    role: Literal["user", "assistant", "system"]
    content: str
    conversation_flow: Optional[str] = None
    flow_step: Optional[int] = None
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)


class ChatWelcome(BaseModel):
    insights: List[str]
    suggested_prompts: List[str]
