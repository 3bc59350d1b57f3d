"""Plaid Link and transaction import via the plaid-python SDK."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from plaid.api import plaid_api
from plaid.api_client import ApiClient
from plaid.configuration import Configuration
from plaid.exceptions import ApiException
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.item_remove_request import ItemRemoveRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions

from moneygoal.db import models
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.currency_service import round_half_up

logger = logging.getLogger(__name__)

PLAID_HOSTS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}
COUNTRY_CODES = ["US", "GB", "ES", "BR"]
_PAGE_SIZE = 500


class PlaidNotConfiguredError(Exception):
    """PLAID_CLIENT_ID / PLAID_SECRET are missing."""


class PlaidServiceError(Exception):
    """A Plaid API call failed."""


@dataclass
class PlaidConfig:
    client_id: Optional[str]
    secret: Optional[str]
    environment: str = "sandbox"

    @classmethod
    def from_env(cls) -> "PlaidConfig":
        env = (os.getenv("PLAID_ENV") or "sandbox").strip().lower()
        if env not in PLAID_HOSTS:
            logger.warning("Unknown PLAID_ENV '%s'; using sandbox.", env)
            env = "sandbox"
        return cls(
            client_id=os.getenv("PLAID_CLIENT_ID"),
            secret=os.getenv("PLAID_SECRET"),
            environment=env,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.secret)


class PlaidService:
    def __init__(self, config: Optional[PlaidConfig] = None) -> None:
        self.config = config or PlaidConfig.from_env()
        self._client: Any = None

    @property
    def client(self) -> Any:
        if not self.config.is_configured:
            raise PlaidNotConfiguredError(
                "Plaid integration is not configured. Set PLAID_CLIENT_ID and PLAID_SECRET."
            )
        if self._client is None:
            configuration = Configuration(
                host=PLAID_HOSTS[self.config.environment],
                api_key={"clientId": self.config.client_id, "secret": self.config.secret},
            )
            self._client = plaid_api.PlaidApi(ApiClient(configuration))
        return self._client

    def create_link_token(self, client_user_id: str) -> str:
        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=client_user_id),
            client_name="MoneyGoal",
            products=[Products("transactions")],
            country_codes=[CountryCode(code) for code in COUNTRY_CODES],
            language="en",
        )
        try:
            response = self.client.link_token_create(request)
        except ApiException as exc:
            logger.error("Plaid link token creation failed: %s", exc)
            raise PlaidServiceError("Failed to create link token") from exc
        return response["link_token"]

    def exchange_public_token(self, public_token: str) -> Tuple[str, str, List[str]]:
        """Return (access_token, item_id, account_ids)."""
        try:
            exchange = self.client.item_public_token_exchange(
                ItemPublicTokenExchangeRequest(public_token=public_token)
            )
            access_token = exchange["access_token"]
            accounts = self.client.accounts_get(AccountsGetRequest(access_token=access_token))
        except ApiException as exc:
            logger.error("Plaid public token exchange failed: %s", exc)
            raise PlaidServiceError("Failed to connect bank account") from exc
        account_ids = [acct["account_id"] for acct in accounts["accounts"]]
        return access_token, exchange["item_id"], account_ids

    def get_transactions(self, access_token: str, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        offset = 0
        while True:
            request = TransactionsGetRequest(
                access_token=access_token,
                start_date=start_date,
                end_date=end_date,
                options=TransactionsGetRequestOptions(count=_PAGE_SIZE, offset=offset),
            )
            try:
                response = self.client.transactions_get(request)
            except ApiException as exc:
                logger.error("Plaid transactions_get failed: %s", exc)
                raise PlaidServiceError("Failed to sync transactions") from exc
            page = [txn.to_dict() for txn in response["transactions"]]
            results.extend(page)
            offset += len(page)
            if not page or offset >= response["total_transactions"]:
                break
        return results

    def remove_item(self, access_token: str) -> None:
        try:
            self.client.item_remove(ItemRemoveRequest(access_token=access_token))
        except ApiException as exc:
            logger.warning("Plaid item removal failed: %s", exc)
            raise PlaidServiceError("Failed to remove Plaid item") from exc


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            return datetime.combine(date.fromisoformat(value[:10]), time.min, tzinfo=timezone.utc)
        except ValueError:
            return None
    return None


def import_plaid_transactions(
    db: Session,
    *,
    user: models.User,
    goal: models.Goal,
    transactions: List[Dict[str, Any]],
) -> int:
    """Create ledger entries for settled Plaid transactions (positive amount = money out)."""
    imported = 0
    for txn in transactions:
        if txn.get("pending"):
            continue
        plaid_id = txn.get("transaction_id") or ""
        marker = f"(Plaid: {plaid_id})"
        if plaid_id and tx_repo.reason_exists(db, user_id=user.id, fragment=marker):
            continue
        value = float(txn.get("amount") or 0)
        amount = round_half_up(abs(value) * 100)
        if amount <= 0:
            continue
        label = txn.get("merchant_name") or txn.get("name") or "Bank transaction"
        tx_repo.create_transaction(
            db,
            user_id=user.id,
            goal=goal,
            type="expense" if value > 0 else "income",
            amount=amount,
            reason=f"{label} {marker}",
            source="plaid",
            currency=(txn.get("iso_currency_code") or "USD").upper(),
            created_date=_as_datetime(txn.get("date")),
            commit=False,
        )
        imported += 1
    db.commit()
    logger.info("Plaid import for user %s: %d of %d transactions", user.id, imported, len(transactions))
    return imported


_plaid_service: Optional[PlaidService] = None


def get_plaid_service() -> PlaidService:
    global _plaid_service
    if _plaid_service is None:
        _plaid_service = PlaidService()
    return _plaid_service


def reset_plaid_service_for_tests() -> None:
    global _plaid_service
    _plaid_service = None
