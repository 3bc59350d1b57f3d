import uuid
from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Category(Base):
    __tablename__ = 'categories'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    emoji = Column(String(10), nullable=False)
    color = Column(String(7), nullable=False)
    keywords = Column(JSONB, nullable=False, default=list)
    is_default = Column(Boolean, nullable=False, default=False)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_categories_user_id', 'user_id'),
    )


class CategoryLearning(Base):
    __tablename__ = 'category_learning'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    keyword = Column(String(255), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=False)
    confidence = Column(Float, nullable=False, default=0.5)
    usage_count = Column(Integer, nullable=False, default=1)
    last_used = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    created_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    category = relationship("Category")

    __table_args__ = (
        Index('idx_category_learning_user_keyword', 'user_id', 'keyword', unique=True),
    )

    @property
    def category_name(self):
        return self.category.name if self.category is not None else None
