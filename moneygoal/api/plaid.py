"""
Plaid bank connections: Link token, token exchange, sync and disconnect.
"""
import logging
from datetime import timedelta
from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import bank_accounts as account_repo
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.api.deps import get_current_user_context, get_plaid
from moneygoal.services.plaid_service import (
    PlaidNotConfiguredError,
    PlaidService,
    PlaidServiceError,
    import_plaid_transactions,
)
from moneygoal.utils.dates import now_utc
from moneygoal.utils.feature_flags import plaid_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plaid", tags=["plaid"])

DEFAULT_SYNC_WINDOW_DAYS = 30


def _require_enabled() -> None:
    if not plaid_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Plaid integration is currently disabled")


@router.post("/link-token", response_model=schemas.PlaidLinkToken)
def create_link_token_endpoint(
    user_context=Depends(get_current_user_context),
    plaid: PlaidService = Depends(get_plaid),
):
    _require_enabled()
    user, _ = user_context
    try:
        return {"link_token": plaid.create_link_token(str(user.id))}
    except PlaidNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))
    except PlaidServiceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/exchange", response_model=schemas.BankAccount, status_code=status.HTTP_201_CREATED)
def exchange_public_token_endpoint(
    payload: schemas.PlaidExchangeRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    plaid: PlaidService = Depends(get_plaid),
):
    _require_enabled()
    user, _ = user_context
    try:
        access_token, item_id, account_ids = plaid.exchange_public_token(payload.public_token)
    except PlaidNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))
    except PlaidServiceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    account = account_repo.create_account(
        db,
        user_id=user.id,
        plaid_item_id=item_id,
        plaid_access_token=access_token,
        account_ids=account_ids,
        institution_name=payload.institution_name,
        institution_id=payload.institution_id,
    )
    logger.info("Connected Plaid item %s for user %s", item_id, user.id)
    return account


@router.get("/accounts", response_model=List[schemas.BankAccount])
def list_accounts_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return account_repo.list_active_accounts(db, user_id=user.id)


@router.post("/sync", response_model=schemas.SyncResult)
def sync_transactions_endpoint(
    payload: schemas.PlaidSyncRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    plaid: PlaidService = Depends(get_plaid),
):
    _require_enabled()
    user, _ = user_context
    account = account_repo.get_account(db, account_id=payload.account_id, user_id=user.id)
    if not account or not account.is_active:
        raise HTTPException(status_code=404, detail="Bank account not found")
    goal = goal_repo.get_goal(db, goal_id=payload.goal_id, user_id=user.id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    end = payload.end_date or now_utc().date()
    start = payload.start_date or end - timedelta(days=DEFAULT_SYNC_WINDOW_DAYS)
    try:
        transactions = plaid.get_transactions(account.plaid_access_token, start, end)
    except PlaidNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))
    except PlaidServiceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    imported = import_plaid_transactions(db, user=user, goal=goal, transactions=transactions)
    account_repo.mark_synced(db, account)
    return {"success": True, "imported_count": imported, "total_transactions": len(transactions)}


@router.delete("/accounts/{account_id}")
def disconnect_account_endpoint(
    account_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    plaid: PlaidService = Depends(get_plaid),
):
    user, _ = user_context
    account = account_repo.get_account(db, account_id=account_id, user_id=user.id)
    if not account:
        raise HTTPException(status_code=404, detail="Bank account not found")
    try:
        plaid.remove_item(account.plaid_access_token)
    except (PlaidNotConfiguredError, PlaidServiceError) as exc:
        logger.warning("Could not remove Plaid item %s: %s", account.plaid_item_id, exc)
    account_repo.deactivate(db, account)
    return {"success": True}
