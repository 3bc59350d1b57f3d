import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


TRANSACTION_SOURCES = ('manual', 'wise', 'csv', 'recurring', 'whatsapp', 'plaid', 'bill')


class Transaction(Base):
    __tablename__ = 'transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    goal_id = Column(UUID(as_uuid=True), ForeignKey('goals.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    type = Column(String(10), nullable=False)
    amount = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    source = Column(String(20), nullable=False, default='manual')
    currency = Column(String(3), nullable=False, default='USD')
    # Historical rate captured at entry time, kept as text to avoid float drift
    exchange_rate = Column(String(32), nullable=True)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    goal = relationship("Goal", back_populates="transactions")
    category = relationship("Category")

    __table_args__ = (
        Index('idx_transactions_user_created', 'user_id', 'created_date'),
        Index('idx_transactions_goal_id', 'goal_id'),
        CheckConstraint("type in ('income','expense')", name='ck_transactions_type'),
    )
