"""Suggest categories from learned patterns with a built-in keyword fallback."""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Sequence, Tuple

LEARNED_WEIGHT = 100
KEYWORD_WEIGHT = 50
FALLBACK_CONFIDENCE = 0.3
MAX_SUGGESTIONS = 3

KEYWORD_GROUPS: Dict[str, List[str]] = {
    "food": ["restaurant", "food", "cafe", "coffee", "lunch", "dinner", "breakfast", "grocery", "supermarket"],
    "transport": ["uber", "taxi", "gas", "fuel", "metro", "bus", "parking", "transport"],
    "entertainment": ["movie", "cinema", "game", "netflix", "spotify", "concert", "theater"],
    "shopping": ["store", "shop", "amazon", "mall", "clothing", "shoes"],
    "health": ["pharmacy", "doctor", "hospital", "gym", "fitness", "medication"],
    "bills": ["rent", "electricity", "water", "internet", "phone", "insurance"],
}

# Category names (en/pt/es) that select a keyword group.
GROUP_ALIASES: Dict[str, str] = {
    "food": "food",
    "alimentação": "food",
    "comida": "food",
    "transport": "transport",
    "transportation": "transport",
    "transporte": "transport",
    "entertainment": "entertainment",
    "lazer": "entertainment",
    "entretenimiento": "entertainment",
    "entretenimento": "entertainment",
    "shopping": "shopping",
    "compras": "shopping",
    "health": "health",
    "saúde": "health",
    "salud": "health",
    "bills": "bills",
    "contas": "bills",
    "facturas": "bills",
}


def keywords_for_category(name: str) -> List[str]:
    lowered = name.lower()
    group = GROUP_ALIASES.get(lowered)
    if group:
        return KEYWORD_GROUPS[group]
    return [lowered]


def _suggestion(category: Any, confidence: float, reason: str) -> Dict[str, Any]:
    return {
        "category_id": category.id,
        "category_name": category.name,
        "category_icon": category.emoji or "📊",
        "confidence": confidence,
        "reason": reason,
    }


def suggest_categories(
    description: str,
    categories: Sequence[Any],
    learned: Sequence[Any],
) -> List[Dict[str, Any]]:
    """Top suggestions for `description`.

    `categories` must be non-empty. Learned patterns score first; keyword
    groups only apply when no learned pattern matched.
    """
    desc = description.lower()
    scores: Dict[uuid.UUID, Tuple[float, str]] = {}

    for mapping in learned:
        pattern = (mapping.keyword or "").lower()
        if not pattern:
            continue
        if pattern in desc or desc in pattern:
            score, _ = scores.get(mapping.category_id, (0.0, ""))
            confidence = mapping.confidence or 1
            scores[mapping.category_id] = (
                score + LEARNED_WEIGHT * confidence,
                f'Learned from previous "{mapping.keyword}" transactions',
            )

    if not scores:
        for category in categories:
            for keyword in keywords_for_category(category.name):
                if keyword in desc:
                    score, _ = scores.get(category.id, (0.0, ""))
                    scores[category.id] = (score + KEYWORD_WEIGHT, f'Matched keyword "{keyword}"')

    by_id = {category.id: category for category in categories}
    suggestions = [
        _suggestion(by_id[category_id], min(100, score) / 100, reason)
        for category_id, (score, reason) in scores.items()
        if category_id in by_id
    ]
    suggestions.sort(key=lambda s: s["confidence"], reverse=True)
    suggestions = suggestions[:MAX_SUGGESTIONS]

    if not suggestions:
        fallback = next((c for c in categories if c.name.lower() == "other"), categories[0])
        return [_suggestion(fallback, FALLBACK_CONFIDENCE, "Default category (no patterns matched)")]
    return suggestions
