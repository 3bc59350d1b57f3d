"""
Bill reminders: due dates, upcoming window and payment.
"""
import logging
from datetime import timedelta
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import bills as bill_repo
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.api.deps import get_current_user_context
from moneygoal.services.bill_schedule import advance_due_date, compute_next_due_date, days_until
from moneygoal.utils.dates import now_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bills", tags=["bills"])


@router.get("/", response_model=List[schemas.BillReminder])
def list_bills_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return bill_repo.list_active_bills(db, user_id=user.id)


@router.get("/upcoming", response_model=List[schemas.UpcomingBill])
def upcoming_bills_endpoint(
    days_ahead: int = Query(default=7, ge=1, le=90),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    now = now_utc()
    bills = bill_repo.list_due_before(db, user_id=user.id, until=now + timedelta(days=days_ahead))
    items = []
    for bill in bills:
        remaining = days_until(bill.next_due_date, now)
        if remaining < 0 and bill.status != "paid":
            bill.status = "overdue"
        items.append(schemas.UpcomingBill(
            **schemas.BillReminder.model_validate(bill).model_dump(),
            days_until_due=remaining,
            should_remind=remaining <= bill.reminder_days_before,
        ))
    db.commit()
    return items


@router.post("/", response_model=schemas.BillReminder, status_code=status.HTTP_201_CREATED)
def create_bill_endpoint(
    payload: schemas.BillReminderCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    values = payload.model_dump()
    values["currency"] = payload.currency or settings_repo.preferred_currency(db, user_id=user.id)
    values["next_due_date"] = compute_next_due_date(payload.due_day)
    values["status"] = "pending"
    return bill_repo.create_bill(db, user_id=user.id, values=values)


@router.put("/{bill_id}", response_model=schemas.BillReminder)
def update_bill_endpoint(
    bill_id: uuid.UUID,
    changes: schemas.BillReminderUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    values = changes.model_dump(exclude_unset=True, exclude_none=True)
    if "due_day" in values:
        values["next_due_date"] = compute_next_due_date(values["due_day"])
    updated = bill_repo.update_bill(db, bill_id=bill_id, user_id=user.id, changes=values)
    if not updated:
        raise HTTPException(status_code=404, detail="Bill not found")
    return updated


@router.delete("/{bill_id}")
def delete_bill_endpoint(
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    if not bill_repo.delete_bill(db, bill_id=bill_id, user_id=user.id):
        raise HTTPException(status_code=404, detail="Bill not found")
    return {"success": True}


@router.post("/{bill_id}/pay", response_model=schemas.MarkPaidResponse)
def mark_bill_paid_endpoint(
    bill_id: uuid.UUID,
    payload: Optional[schemas.MarkPaidRequest] = None,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    bill = bill_repo.get_bill(db, bill_id=bill_id, user_id=user.id)
    if not bill:
        raise HTTPException(status_code=404, detail="Bill not found")

    transaction_id = None
    if payload is None or payload.create_transaction:
        goal = goal_repo.get_active_goal(db, user_id=user.id)
        if goal is not None:
            try:
                tx = tx_repo.create_transaction(
                    db,
                    user_id=user.id,
                    goal=goal,
                    type="expense",
                    amount=bill.amount,
                    reason=f"Bill: {bill.name}",
                    source="bill",
                    currency=bill.currency,
                    category_id=bill.category_id,
                )
                transaction_id = tx.id
            except Exception:
                db.rollback()
                logger.exception("Failed to create transaction for bill %s", bill.id)
        else:
            logger.info("No active goal; bill %s paid without a transaction", bill.id)

    # Paid for this period; the reminder rolls straight over to the next one.
    bill.last_paid_date = now_utc()
    bill.next_due_date = advance_due_date(bill.next_due_date, bill.frequency, bill.due_day)
    bill.status = "pending"
    db.commit()
    db.refresh(bill)
    return schemas.MarkPaidResponse(success=True, transaction_id=transaction_id, next_due_date=bill.next_due_date)
