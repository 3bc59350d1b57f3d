import uuid
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Index, Text
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class BankAccount(Base):
    __tablename__ = 'bank_accounts'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    plaid_item_id = Column(String(255), nullable=False, unique=True)
    plaid_access_token = Column(Text, nullable=False)
    institution_name = Column(String(255), nullable=True)
    institution_id = Column(String(255), nullable=True)
    account_ids = Column(JSONB, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    last_sync = Column(DateTime(timezone=True), nullable=True)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_bank_accounts_user_active', 'user_id', 'is_active'),
    )
