import uuid
from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Budget(Base):
    __tablename__ = 'budgets'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=False)
    period = Column(String(10), nullable=False)
    limit_amount = Column(Integer, nullable=False)
    alert_threshold = Column(Integer, nullable=False, default=75)
    start_date = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    end_date = Column(DateTime(timezone=True), nullable=True)
    current_spent = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    category = relationship("Category")

    __table_args__ = (
        Index('idx_budgets_user_category_period', 'user_id', 'category_id', 'period'),
        CheckConstraint("period in ('weekly','monthly','yearly')", name='ck_budgets_period'),
    )
