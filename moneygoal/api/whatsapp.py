"""
WhatsApp (Twilio) inbound webhook and phone-number linking.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import users as user_repo
from moneygoal.api.deps import get_current_user_context, get_llm, get_sender
from moneygoal.services.llm_client import LLMClient
from moneygoal.services.whatsapp_service import WhatsAppSender, handle_incoming_message, normalize_phone
from moneygoal.utils.feature_flags import whatsapp_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


@router.post("/webhook")
def whatsapp_webhook_endpoint(
    From: Optional[str] = Form(default=None),
    Body: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    llm: LLMClient = Depends(get_llm),
    sender: WhatsAppSender = Depends(get_sender),
):
    # Twilio retries on non-2xx, so every outcome answers with empty TwiML.
    if not whatsapp_enabled():
        logger.info("WhatsApp webhook received while disabled")
        return Response(content=EMPTY_TWIML, media_type="text/xml")
    try:
        action = handle_incoming_message(db, sender_raw=From or "", body=Body or "", llm=llm, sender=sender)
        logger.info("WhatsApp webhook handled: %s", action)
    except Exception:
        db.rollback()
        logger.exception("WhatsApp webhook processing failed")
    return Response(content=EMPTY_TWIML, media_type="text/xml")


@router.post("/link", response_model=schemas.PhoneStatus)
def link_phone_endpoint(
    payload: schemas.PhoneLinkRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ = user_context
    phone = normalize_phone(payload.phone_number)
    if not phone:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid phone number")
    owner = user_repo.get_user_by_phone(db, phone)
    if owner and owner.id != user.id:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Phone number already linked to another account")
    user = user_repo.set_phone_number(db, user, phone)
    return {"linked": True, "phone_number": user.phone_number}


@router.delete("/link", response_model=schemas.PhoneStatus)
def unlink_phone_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    user_repo.set_phone_number(db, user, None)
    return {"linked": False, "phone_number": None}


@router.get("/status", response_model=schemas.PhoneStatus)
def phone_status_endpoint(user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return {"linked": bool(user.phone_number), "phone_number": user.phone_number}
