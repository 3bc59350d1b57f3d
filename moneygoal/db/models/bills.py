import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, Index, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class BillReminder(Base):
    __tablename__ = 'bill_reminders'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default='USD')
    due_day = Column(Integer, nullable=False)
    frequency = Column(String(10), nullable=False, default='monthly')
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    reminder_days_before = Column(Integer, nullable=False, default=3)
    auto_create_transaction = Column(Boolean, nullable=False, default=False)
    next_due_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(10), nullable=False, default='pending')
    last_paid_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    category = relationship("Category")

    __table_args__ = (
        Index('idx_bill_reminders_user_due', 'user_id', 'next_due_date'),
        CheckConstraint("status in ('pending','paid','overdue')", name='ck_bill_reminders_status'),
        CheckConstraint("frequency in ('weekly','monthly','yearly')", name='ck_bill_reminders_frequency'),
    )
