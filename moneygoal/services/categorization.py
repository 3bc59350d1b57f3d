"""Keyword-based transaction categorization and the default category set."""
from __future__ import annotations

import re
import uuid
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from moneygoal.db.repositories import categories as category_repo

DEFAULT_CATEGORIES: List[Dict[str, Any]] = [
    {
        "name": "Food",
        "emoji": "🍔",
        "color": "#10b981",
        "keywords": ["grocery", "restaurant", "cafe", "coffee", "pizza", "burger", "food", "supermarket", "ifood", "bakery"],
    },
    {
        "name": "Transportation",
        "emoji": "🚗",
        "color": "#3b82f6",
        "keywords": ["uber", "lyft", "taxi", "bus", "metro", "fuel", "petrol", "gas station", "parking", "transit"],
    },
    {
        "name": "Health",
        "emoji": "💊",
        "color": "#ef4444",
        "keywords": ["pharmacy", "drug", "clinic", "doctor", "dental", "medicine", "hospital", "health"],
    },
    {
        "name": "Entertainment",
        "emoji": "🎮",
        "color": "#8b5cf6",
        "keywords": ["movie", "cinema", "netflix", "spotify", "game", "ticket", "concert", "steam"],
    },
    {
        "name": "Housing",
        "emoji": "🏠",
        "color": "#f59e0b",
        "keywords": ["rent", "landlord", "lease", "mortgage", "condo"],
    },
    {
        "name": "Education",
        "emoji": "📚",
        "color": "#06b6d4",
        "keywords": ["school", "course", "tuition", "udemy", "book", "university"],
    },
    {
        "name": "Shopping",
        "emoji": "🛍️",
        "color": "#ec4899",
        "keywords": ["amazon", "shopping", "mall", "clothes", "fashion", "ikea", "store"],
    },
    {
        "name": "Bills",
        "emoji": "💡",
        "color": "#eab308",
        "keywords": ["electric", "water", "internet", "wifi", "phone bill", "utility", "insurance"],
    },
    {
        "name": "Income",
        "emoji": "💰",
        "color": "#22c55e",
        "keywords": ["salary", "payroll", "paycheck", "wage", "refund", "dividend"],
    },
    {
        "name": "Other",
        "emoji": "📦",
        "color": "#6b7280",
        "keywords": [],
    },
]

_STOPWORDS = frozenset({"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"})
_NON_WORD_RE = re.compile(r"[^a-z0-9\s]")


def categorize(description: str, categories: Sequence[Any]) -> Optional[Any]:
    """Return the category whose keywords match `description`.

    Categories with more keywords are tried first; the first case-insensitive
    substring hit wins. Falls back to "Other" when present, otherwise None.
    """
    if not description:
        return None
    normalized = description.lower().strip()
    ordered = sorted(categories, key=lambda c: len(c.keywords or []), reverse=True)
    for category in ordered:
        keywords = category.keywords or []
        if any(keyword.lower() in normalized for keyword in keywords if keyword):
            return category
    return get_category_by_name("Other", categories)


def get_category_by_name(name: str, categories: Sequence[Any]) -> Optional[Any]:
    lowered = name.lower()
    for category in categories:
        if category.name.lower() == lowered:
            return category
    return None


def extract_keywords(description: str) -> List[str]:
    """Candidate keywords from a description (lowercased, stopwords removed, deduped)."""
    cleaned = _NON_WORD_RE.sub(" ", (description or "").lower())
    seen: List[str] = []
    for word in cleaned.split():
        if len(word) <= 2 or word in _STOPWORDS:
            continue
        if word not in seen:
            seen.append(word)
    return seen


def load_user_categories(db: Session, *, user_id: uuid.UUID) -> List[Any]:
    """The user's categories, seeding the default set on first access."""
    categories = category_repo.list_categories(db, user_id=user_id)
    if not categories:
        categories = category_repo.seed_default_categories(db, user_id=user_id, defaults=DEFAULT_CATEGORIES)
    return categories
