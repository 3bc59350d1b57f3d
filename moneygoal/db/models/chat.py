import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class ChatMessage(Base):
    __tablename__ = 'chat_messages'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = Column(String(10), nullable=False)
    content = Column(Text, nullable=False)
    conversation_flow = Column(String(50), nullable=True)
    flow_step = Column(Integer, nullable=True)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_chat_messages_user_created', 'user_id', 'created_date'),
        CheckConstraint("role in ('user','assistant','system')", name='ck_chat_messages_role'),
    )
