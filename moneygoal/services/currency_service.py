"""
Exchange rates and currency conversion.

Rates come from an exchangerate-api compatible endpoint and are cached per
base currency. Amounts are always integer cents.

Two flavours are exposed:
- lenient (`get_exchange_rates`, `convert_currency`): never raises, falls back
  to stale cache or a built-in table;
- strict (`convert_amount`, `convert_balances`): raises
  `CurrencyConversionError` when no rate is available.
"""
from __future__ import annotations

import logging
import math
import os
import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = (3, 30)
DEFAULT_API_BASE = "https://api.exchangerate-api.com/v4"
DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60

FALLBACK_USD_RATES: Dict[str, float] = {
    "USD": 1,
    "BRL": 5.38,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.5,
    "CAD": 1.36,
    "AUD": 1.52,
    "CHF": 0.88,
    "CNY": 7.24,
    "INR": 83.12,
    "MXN": 17.15,
}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "BRL": "R$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "C$",
    "AUD": "A$",
    "CHF": "CHF",
    "CNY": "¥",
    "INR": "₹",
    "MXN": "MX$",
}


class CurrencyConversionError(Exception):
    """No exchange rate could be obtained for a strict conversion."""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fallback_rates(base: str) -> Dict[str, float]:
    """Built-in USD table rebased on `base`; unknown bases keep the USD table."""
    if base == "USD":
        return dict(FALLBACK_USD_RATES)
    base_rate = FALLBACK_USD_RATES.get(base)
    if not base_rate:
        return dict(FALLBACK_USD_RATES)
    return {currency: rate / base_rate for currency, rate in FALLBACK_USD_RATES.items()}


def format_currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get(code, code)


def format_amount(amount: int, currency: str) -> str:
    return f"{format_currency_symbol(currency)}{amount / 100:.2f}"


@dataclass
class ExchangeRateConfig:
    api_base: str = DEFAULT_API_BASE
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS

    @classmethod
    def from_env(cls) -> "ExchangeRateConfig":
        ttl_raw = os.getenv("EXCHANGE_RATE_CACHE_TTL")
        ttl = int(ttl_raw) if ttl_raw and ttl_raw.isdigit() else DEFAULT_CACHE_TTL_SECONDS
        return cls(
            api_base=(os.getenv("EXCHANGE_RATE_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            cache_ttl_seconds=ttl,
        )


class ExchangeRateService:
    def __init__(self, config: Optional[ExchangeRateConfig] = None) -> None:
        self.config = config or ExchangeRateConfig.from_env()
        self._cache: Dict[str, Tuple[Dict[str, float], float]] = {}
        self._lock = threading.Lock()

    def _fetch(self, base: str) -> Dict[str, float]:
        response = requests.get(f"{self.config.api_base}/latest/{base}", timeout=_DEFAULT_TIMEOUT)
        response.raise_for_status()
        rates = response.json().get("rates")
        if not isinstance(rates, dict):
            raise ValueError("Unexpected exchange rate response structure")
        return rates

    def _cached(self, base: str) -> Tuple[Optional[Dict[str, float]], bool]:
        with self._lock:
            entry = self._cache.get(base)
        if entry is None:
            return None, False
        rates, fetched_at = entry
        fresh = (time.monotonic() - fetched_at) < self.config.cache_ttl_seconds
        return rates, fresh

    def _store(self, base: str, rates: Dict[str, float]) -> None:
        with self._lock:
            self._cache[base] = (rates, time.monotonic())

    def _rates(self, base: str, *, strict: bool) -> Dict[str, float]:
        cached, fresh = self._cached(base)
        if cached is not None and fresh:
            return cached
        try:
            rates = self._fetch(base)
        except (requests.RequestException, ValueError) as exc:
            logger.error("Failed to fetch exchange rates for %s: %s", base, exc)
            if cached is not None:
                logger.warning("Using stale cached rates for %s", base)
                return cached
            if strict:
                raise CurrencyConversionError(f"Failed to fetch exchange rates for {base}: {exc}") from exc
            # Fallback rates stay out of the cache so strict callers never see them
            return fallback_rates(base)
        self._store(base, rates)
        return rates

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # Lenient API

    def get_exchange_rates(self, base: str = "USD") -> Dict[str, float]:
        return self._rates(base.upper(), strict=False)

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        if from_currency == to_currency:
            return 1.0
        rate = self.get_exchange_rates(from_currency).get(to_currency)
        return rate or None

    def convert_currency(
        self,
        amount: int,
        from_currency: str,
        to_currency: str,
        exchange_rate: Optional[str] = None,
    ) -> int:
        if from_currency == to_currency:
            return amount
        if exchange_rate:
            return round_half_up(amount / float(exchange_rate))
        rate = self.get_exchange_rates(from_currency).get(to_currency)
        if not rate:
            logger.warning("No exchange rate found for %s -> %s", from_currency, to_currency)
            return amount
        return round_half_up(amount * rate)

    def format_with_conversion(
        self,
        amount: int,
        original_currency: str,
        display_currency: str,
        exchange_rate: Optional[str] = None,
    ) -> Dict[str, str]:
        converted = self.convert_currency(amount, original_currency, display_currency, exchange_rate)
        if exchange_rate:
            rate = exchange_rate
        else:
            live = self.get_exchange_rate(original_currency, display_currency)
            rate = f"{live:.4f}" if live else "1"
        return {
            "original": format_amount(amount, original_currency),
            "converted": format_amount(converted, display_currency),
            "rate": rate,
        }

    # Strict API

    def convert_amount(self, amount: int, from_currency: str, to_currency: str) -> int:
        if from_currency == to_currency:
            return amount
        rate = self._rates(from_currency.upper(), strict=True).get(to_currency)
        if not rate:
            raise CurrencyConversionError(f"Exchange rate not found for {from_currency} to {to_currency}")
        return round_half_up((amount / 100) * rate * 100)

    def convert_balances(self, balances: List[Dict[str, object]], target_currency: str) -> List[Dict[str, object]]:
        results = []
        for balance in balances:
            currency = str(balance["currency"])
            original = int(balance["amount"])
            converted = self.convert_amount(original, currency, target_currency)
            if currency == target_currency:
                rate = 1.0
            elif original:
                rate = converted / original
            else:
                rate = self._rates(currency, strict=True).get(target_currency) or 0.0
            results.append({
                "currency": currency,
                "original_amount": original,
                "converted_amount": converted,
                "conversion_rate": rate,
            })
        return results


_exchange_rate_service: Optional[ExchangeRateService] = None


def get_exchange_rate_service() -> ExchangeRateService:
    global _exchange_rate_service
    if _exchange_rate_service is None:
        _exchange_rate_service = ExchangeRateService()
    return _exchange_rate_service


def reset_exchange_rate_service_for_tests() -> None:
    global _exchange_rate_service
    _exchange_rate_service = None
