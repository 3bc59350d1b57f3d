import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, Index, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class AIInsight(Base):
    __tablename__ = 'ai_insights'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONB, nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    is_read = Column(Boolean, nullable=False, default=False)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_ai_insights_user_priority', 'user_id', 'priority'),
        CheckConstraint("type in ('forecast','alert','achievement','tip')", name='ck_ai_insights_type'),
    )
