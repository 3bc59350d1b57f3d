"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "llm_features_enabled",
    "wise_sync_enabled",
    "plaid_enabled",
    "whatsapp_enabled",
    "recurring_scheduler_enabled",
]


class FeatureFlagValues(TypedDict):
    llm_features_enabled: bool
    wise_sync_enabled: bool
    plaid_enabled: bool
    whatsapp_enabled: bool
    recurring_scheduler_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "llm_features_enabled": FeatureFlagDefinition("LLM_FEATURES_ENABLED", True),
    "wise_sync_enabled": FeatureFlagDefinition("WISE_SYNC_ENABLED", True),
    "plaid_enabled": FeatureFlagDefinition("PLAID_ENABLED", True),
    "whatsapp_enabled": FeatureFlagDefinition("WHATSAPP_ENABLED", True),
    "recurring_scheduler_enabled": FeatureFlagDefinition("RECURRING_SCHEDULER_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def llm_features_enabled() -> bool:
    """Global toggle for the chat advisor, insights and WhatsApp parsing."""
    return is_feature_enabled("llm_features_enabled")


def wise_sync_enabled() -> bool:
    return is_feature_enabled("wise_sync_enabled")


def plaid_enabled() -> bool:
    return is_feature_enabled("plaid_enabled")


def whatsapp_enabled() -> bool:
    return is_feature_enabled("whatsapp_enabled")


def recurring_scheduler_enabled() -> bool:
    """Whether the app starts the daily recurring-expense thread."""
    return is_feature_enabled("recurring_scheduler_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
