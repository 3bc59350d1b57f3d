import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Goal(Base):
    __tablename__ = 'goals'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    # Amounts are integer cents
    target_amount = Column(Integer, nullable=False)
    current_amount = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default='active')
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    archived_date = Column(DateTime(timezone=True), nullable=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)

    transactions = relationship("Transaction", back_populates="goal", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_goals_user_status', 'user_id', 'status'),
        CheckConstraint("status in ('active','archived')", name='ck_goals_status'),
    )
