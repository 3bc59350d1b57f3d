"""
AI financial advisor chat.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from moneygoal.db import schemas
from moneygoal.db.database import get_db
from moneygoal.db.repositories import chat as chat_repo
from moneygoal.api.deps import get_current_user_context, get_llm, get_rates
from moneygoal.services.chat_service import ChatRateLimitError, ChatService
from moneygoal.services.currency_service import ExchangeRateService
from moneygoal.services.llm_client import LLMClient, LLMError
from moneygoal.utils.feature_flags import llm_features_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/send", response_model=schemas.ChatSendResponse)
def send_message_endpoint(
    payload: schemas.ChatSendRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    llm: LLMClient = Depends(get_llm),
    rates: ExchangeRateService = Depends(get_rates),
):
    if not llm_features_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="LLM features are currently disabled")
    user, _ = user_context
    try:
        return ChatService(llm, rates).send_message(db, user, payload.message)
    except ChatRateLimitError as exc:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
    except LLMError as exc:
        logger.error("Chat LLM call failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to get AI response")


@router.get("/history", response_model=List[schemas.ChatMessage])
def get_history_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return chat_repo.list_messages(db, user_id=user.id)


@router.delete("/history")
def clear_history_endpoint(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ = user_context
    return {"success": True, "deleted_count": chat_repo.delete_messages(db, user_id=user.id)}


@router.get("/welcome", response_model=schemas.ChatWelcome)
def get_welcome_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
    llm: LLMClient = Depends(get_llm),
    rates: ExchangeRateService = Depends(get_rates),
):
    user, _ = user_context
    return ChatService(llm, rates).welcome(db, user)
