"""Recompute the active goal's current amount from its ledger and live Wise balance."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.currency_service import CurrencyConversionError, ExchangeRateService
from moneygoal.services.wise_client import WiseAPIError, WiseClient
from moneygoal.services.wise_sync import live_balance_total

logger = logging.getLogger(__name__)


def ledger_total(db: Session, goal: models.Goal) -> int:
    """Signed sum of the goal's non-Wise transactions."""
    total = 0
    for tx in tx_repo.list_by_goal(db, goal_id=goal.id, user_id=goal.user_id):
        if tx.source == "wise":
            continue
        total += tx.amount if tx.type == "income" else -tx.amount
    return total


def recalculate_goal(
    db: Session,
    goal: models.Goal,
    *,
    client_factory: Callable[[str], WiseClient],
    rates: ExchangeRateService,
) -> models.Goal:
    manual = ledger_total(db, goal)
    wise_balance = 0
    settings: Optional[models.UserSettings] = settings_repo.get_settings(db, user_id=goal.user_id)
    if settings and settings.wise_api_token:
        try:
            wise_balance = live_balance_total(
                client_factory(settings.wise_api_token),
                preferred_currency=settings.currency or "USD",
                rates=rates,
            )
        except (WiseAPIError, CurrencyConversionError) as exc:
            logger.error("Error fetching Wise balance for goal %s: %s", goal.id, exc)
    total = max(0, manual + wise_balance)
    if total != goal.current_amount:
        goal.current_amount = total
        db.commit()
        db.refresh(goal)
    return goal
