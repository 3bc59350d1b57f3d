import re
import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _validate_color(value: Optional[str]) -> Optional[str]:
    if value is not None and not _HEX_COLOR.match(value):
        raise ValueError("Color must be a hex value like #10b981")
    return value


def _clean_keywords(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    cleaned: List[str] = []
    for v in values:
        k = (v or "").strip().lower()
        if k and k not in cleaned:
            cleaned.append(k)
    return cleaned


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    emoji: str = Field(min_length=1, max_length=10)
    color: str
    keywords: List[str] = Field(default_factory=list)

    @field_validator("color")
    @classmethod
    def _check_color(cls, v):
        return _validate_color(v)

    @field_validator("keywords")
    @classmethod
    def _check_keywords(cls, v):
        return _clean_keywords(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    emoji: Optional[str] = Field(default=None, min_length=1, max_length=10)
    color: Optional[str] = None
    keywords: Optional[List[str]] = None

    @field_validator("color")
    @classmethod
    def _check_color(cls, v):
        return _validate_color(v)

    @field_validator("keywords")
    @classmethod
    def _check_keywords(cls, v):
        return _clean_keywords(v)


class Category(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    emoji: str
    color: str
    keywords: List[str] = Field(default_factory=list)
    is_default: bool
    created_date: datetime
    model_config = ConfigDict(from_attributes=True)


class CategorySuggestRequest(BaseModel):
    description: str = Field(min_length=1)


class CategorySuggestion(BaseModel):
    category_id: Optional[uuid.UUID] = None
    category: Optional[Category] = None


class LearnRequest(BaseModel):
    pattern: str = Field(min_length=1, max_length=255)
    category_id: uuid.UUID


class LearnedSuggestion(BaseModel):
    category_id: uuid.UUID
    category_name: str
    category_icon: Optional[str] = None
    confidence: float
    reason: str


class CategoryLearning(BaseModel):
    id: uuid.UUID
    keyword: str
    category_id: uuid.UUID
    category_name: Optional[str] = None
    confidence: float
    usage_count: int
    last_used: datetime
    model_config = ConfigDict(from_attributes=True)
