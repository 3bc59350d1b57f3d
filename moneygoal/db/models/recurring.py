import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class RecurringExpense(Base):
    __tablename__ = 'recurring_expenses'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default='USD')
    frequency = Column(String(10), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    day_of_month = Column(Integer, nullable=True)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    category = relationship("Category")

    __table_args__ = (
        Index('idx_recurring_user_active', 'user_id', 'is_active'),
        CheckConstraint("frequency in ('daily','weekly','monthly','yearly')", name='ck_recurring_frequency'),
    )
