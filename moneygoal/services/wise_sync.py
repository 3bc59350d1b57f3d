"""
Import Wise statement transactions into a goal.

Shared by the manual sync endpoint, the webhook handler and the active-goal
balance recalculation.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.currency_service import ExchangeRateService, round_half_up
from moneygoal.services.wise_client import WiseClient, balance_amount
from moneygoal.utils.dates import now_utc

logger = logging.getLogger(__name__)

WEBHOOK_SYNC_EVENTS = frozenset({"balances#credit", "balances#update", "transfers#state-change"})
WEBHOOK_WINDOW_DAYS = 7
DEFAULT_SYNC_WINDOW_DAYS = 30

WiseClientFactory = Callable[[str], WiseClient]


def verify_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature.strip().lower(), expected)


def describe_statement_item(item: Dict[str, Any]) -> str:
    details = item.get("details") or {}
    description = details.get("description") or "Wise transaction"
    counterpart = (details.get("recipient") or {}).get("name") or (details.get("merchant") or {}).get("name")
    if counterpart:
        return f"{counterpart} - {description}"
    return description


def statement_amount(item: Dict[str, Any]) -> float:
    return float((item.get("amount") or {}).get("value") or 0)


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def import_statement_items(
    db: Session,
    *,
    user: models.User,
    goal: models.Goal,
    items: Iterable[Dict[str, Any]],
    currency: str,
    preferred_currency: Optional[str] = None,
    rates: Optional[ExchangeRateService] = None,
    adjust_goal: bool = False,
) -> int:
    """Create transactions for statement items not yet imported.

    When `preferred_currency` differs from `currency`, amounts are converted and
    the reason carries the original amount.
    """
    imported = 0
    for item in items:
        reference = str(item.get("referenceNumber") or "")
        if reference and tx_repo.reason_exists(db, user_id=user.id, fragment=reference):
            continue
        value = statement_amount(item)
        amount = round_half_up(abs(value) * 100)
        if amount <= 0:
            continue
        tx_type = "income" if value > 0 else "expense"
        reason = describe_statement_item(item)
        tx_currency = currency
        if preferred_currency and rates is not None and preferred_currency != currency:
            amount = rates.convert_amount(amount, currency, preferred_currency)
            reason += f" ({abs(value):.2f} {currency} → {preferred_currency})"
            tx_currency = preferred_currency
        reason += f" (Ref: {reference})"
        tx_repo.create_transaction(
            db,
            user_id=user.id,
            goal=goal,
            type=tx_type,
            amount=amount,
            reason=reason,
            source="wise",
            currency=tx_currency,
            adjust_goal=adjust_goal,
            commit=False,
        )
        imported += 1
    db.commit()
    return imported


def sync_goal(
    db: Session,
    *,
    user: models.User,
    goal: models.Goal,
    client: WiseClient,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Dict[str, int]:
    """Import every balance currency's statement for the window into `goal`."""
    end = end or now_utc()
    start = start or end - timedelta(days=DEFAULT_SYNC_WINDOW_DAYS)
    profiles = client.get_profiles()
    if not profiles:
        return {"imported_count": 0, "total_transactions": 0}
    profile_id = profiles[0]["id"]
    imported = 0
    total = 0
    for balance in client.get_balances(profile_id):
        currency = balance.get("currency") or (balance.get("amount") or {}).get("currency")
        if not currency:
            continue
        statement = client.get_balance_statement(profile_id, currency, _iso(start), _iso(end))
        items = statement.get("transactions") or []
        total += len(items)
        imported += import_statement_items(db, user=user, goal=goal, items=items, currency=currency)
    logger.info("Wise sync for user %s imported %d of %d transactions", user.id, imported, total)
    return {"imported_count": imported, "total_transactions": total}


def handle_webhook_event(
    db: Session,
    *,
    user: models.User,
    settings: models.UserSettings,
    goal: Optional[models.Goal],
    event: Dict[str, Any],
    client_factory: WiseClientFactory,
    rates: ExchangeRateService,
) -> bool:
    """Process a verified webhook event. Returns whether it triggered a sync."""
    event_type = event.get("event_type")
    if event_type not in WEBHOOK_SYNC_EVENTS:
        logger.info("Unhandled Wise webhook event type: %s", event_type)
        return False
    if not settings.wise_api_token or goal is None:
        logger.info("Wise webhook for user %s ignored: no token or active goal", user.id)
        return True
    client = client_factory(settings.wise_api_token)
    profiles = client.get_profiles()
    if not profiles:
        return True
    preferred = settings.currency or "USD"
    currency = (event.get("data") or {}).get("currency") or preferred
    end = now_utc()
    start = end - timedelta(days=WEBHOOK_WINDOW_DAYS)
    statement = client.get_balance_statement(profiles[0]["id"], currency, _iso(start), _iso(end))
    imported = import_statement_items(
        db,
        user=user,
        goal=goal,
        items=statement.get("transactions") or [],
        currency=currency,
        preferred_currency=preferred,
        rates=rates,
        adjust_goal=True,
    )
    logger.info("Wise webhook %s for user %s imported %d transactions", event_type, user.id, imported)
    return True


def live_balance_total(client: WiseClient, *, preferred_currency: str, rates: ExchangeRateService) -> int:
    """Sum of all Wise balances of the first profile, in preferred-currency cents."""
    profiles = client.get_profiles()
    if not profiles:
        return 0
    balances: List[Dict[str, Any]] = [
        {"currency": b.get("currency"), "amount": round_half_up(balance_amount(b) * 100)}
        for b in client.get_balances(profiles[0]["id"])
        if b.get("currency")
    ]
    converted = rates.convert_balances(balances, preferred_currency)
    return sum(int(item["converted_amount"]) for item in converted)
