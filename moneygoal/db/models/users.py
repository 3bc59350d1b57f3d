import uuid
from sqlalchemy import Column, String, DateTime, Boolean, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class User(Base):
    __tablename__ = 'users'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    # NULL for identities resolved from proxy headers
    password_hash = Column(String, nullable=True)
    role = Column(String(20), nullable=False, default='user')
    phone_number = Column(String(32), nullable=True, unique=True)
    phone_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
    last_signed_in = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        CheckConstraint("role in ('user','admin')", name='ck_users_role'),
    )
