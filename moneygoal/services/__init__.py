"""Business logic services package with public service helpers."""

from .currency_service import (
    ExchangeRateConfig,
    ExchangeRateService,
    get_exchange_rate_service,
    reset_exchange_rate_service_for_tests,
)
from .llm_client import (
    LLMConfig,
    LLMClient,
    LLMError,
    get_llm_client,
    reset_llm_client_for_tests,
)
from .plaid_service import (
    PlaidConfig,
    PlaidService,
    get_plaid_service,
    reset_plaid_service_for_tests,
)

__all__ = [
    "ExchangeRateConfig",
    "ExchangeRateService",
    "get_exchange_rate_service",
    "reset_exchange_rate_service_for_tests",
    "LLMConfig",
    "LLMClient",
    "LLMError",
    "get_llm_client",
    "reset_llm_client_for_tests",
    "PlaidConfig",
    "PlaidService",
    "get_plaid_service",
    "reset_plaid_service_for_tests",
]
