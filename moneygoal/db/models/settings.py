import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class UserSettings(Base):
    __tablename__ = 'user_settings'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    language = Column(String(10), nullable=False, default='en')
    currency = Column(String(3), nullable=False, default='USD')
    number_format = Column(String(10), nullable=False, default='pt-BR')
    theme = Column(String(10), nullable=False, default='dark')
    monthly_saving_target = Column(Integer, nullable=False, default=0)
    has_unread_archived = Column(Boolean, nullable=False, default=False)
    # Integration secrets; never returned by the API
    wise_api_token = Column(Text, nullable=True)
    wise_webhook_secret = Column(Text, nullable=True)
    chat_memory = Column(JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
