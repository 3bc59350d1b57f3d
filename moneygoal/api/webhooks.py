"""
Inbound Wise webhooks. Requests are authenticated by an HMAC signature keyed
with the user's webhook secret, not by a session.
"""
import json
import logging
from typing import Callable, Optional
import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from moneygoal.db.database import get_db
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import users as user_repo
from moneygoal.api.deps import get_rates, get_wise_client_factory
from moneygoal.services.currency_service import CurrencyConversionError, ExchangeRateService
from moneygoal.services.wise_client import WiseAPIError
from moneygoal.services.wise_sync import handle_webhook_event, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/wise/{user_id}")
async def wise_webhook_endpoint(
    user_id: uuid.UUID,
    request: Request,
    x_signature_sha256: Optional[str] = Header(default=None, alias="X-Signature-SHA256"),
    db: Session = Depends(get_db),
    client_factory: Callable = Depends(get_wise_client_factory),
    rates: ExchangeRateService = Depends(get_rates),
):
    user = user_repo.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    settings = settings_repo.get_settings(db, user_id=user.id)
    if not settings or not settings.wise_webhook_secret:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail="Webhook secret not configured")

    body = await request.body()
    if not verify_signature(body, x_signature_sha256, settings.wise_webhook_secret):
        logger.warning("Rejected Wise webhook for user %s: bad signature", user.id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = json.loads(body or b"{}")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook payload must be a JSON object")

    try:
        processed = handle_webhook_event(
            db,
            user=user,
            settings=settings,
            goal=goal_repo.get_active_goal(db, user_id=user.id),
            event=event,
            client_factory=client_factory,
            rates=rates,
        )
    except (WiseAPIError, CurrencyConversionError) as exc:
        db.rollback()
        logger.error("Wise webhook sync failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to process webhook")
    return {"received": True, "processed": processed}
