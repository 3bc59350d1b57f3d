"""Thin client for the Wise REST API (profiles, balances, statements)."""
import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

WISE_API_BASE = "https://api.wise.com"
_DEFAULT_TIMEOUT = 30


class WiseAPIError(Exception):
    def __init__(self, status_code: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        return f"Wise API error ({self.status_code}): {self.message}"


class WiseClient:
    def __init__(self, api_token: str, base_url: str = WISE_API_BASE) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        })

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=_DEFAULT_TIMEOUT)
        except requests.RequestException as exc:
            logger.error("Wise request to %s failed: %s", path, exc)
            raise WiseAPIError(None, str(exc)) from exc
        if not response.ok:
            logger.error("Wise request to %s returned %s", path, response.status_code)
            raise WiseAPIError(response.status_code, response.text or response.reason or "request failed")
        return response.json()

    def get_profiles(self) -> List[Dict[str, Any]]:
        return self._get("/v1/profiles")

    def get_balances(self, profile_id: Any) -> List[Dict[str, Any]]:
        return self._get(f"/v4/profiles/{profile_id}/balances", params={"types": "STANDARD"})

    def get_balance_statement(
        self,
        profile_id: Any,
        currency: str,
        interval_start: str,
        interval_end: str,
    ) -> Dict[str, Any]:
        return self._get(
            f"/v1/profiles/{profile_id}/balance-statements/{currency}/statement.json",
            params={"intervalStart": interval_start, "intervalEnd": interval_end},
        )


def balance_amount(balance: Dict[str, Any]) -> float:
    amount = balance.get("amount") or {}
    return float(amount.get("value") or 0)
