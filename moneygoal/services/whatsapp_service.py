"""
WhatsApp expense logging through Twilio.

Incoming messages are either commands (help, today's summary) or free text
that the LLM turns into a transaction for the sender's active goal.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.db.repositories import users as user_repo
from moneygoal.services.currency_service import format_currency_symbol
from moneygoal.services.llm_client import LLMClient, LLMError
from moneygoal.utils.dates import now_utc, start_of_day

logger = logging.getLogger(__name__)

WHATSAPP_CATEGORY_STYLES: Dict[str, Dict[str, str]] = {
    "Alimentação": {"emoji": "🍔", "color": "#10b981"},
    "Transporte": {"emoji": "🚗", "color": "#3b82f6"},
    "Saúde": {"emoji": "💊", "color": "#ef4444"},
    "Lazer": {"emoji": "🎮", "color": "#8b5cf6"},
    "Moradia": {"emoji": "🏠", "color": "#f59e0b"},
    "Educação": {"emoji": "📚", "color": "#06b6d4"},
    "Outros": {"emoji": "📦", "color": "#6b7280"},
}
HELP_COMMANDS = frozenset({"ajuda", "help", "?"})
TODAY_COMMANDS = frozenset({"hoje", "today", "gastos hoje"})
_PHONE_STRIP_RE = re.compile(r"[\s\-\(\)]")

PARSER_PROMPT = """You are a financial assistant that extracts transaction data from Portuguese text.
Return ONLY valid JSON with this exact structure:
{
  "description": "string (brief description)",
  "amount": number (in cents - multiply by 100),
  "category": "one of: Alimentação, Transporte, Saúde, Lazer, Moradia, Educação, Outros",
  "type": "expense or income",
  "currency": "BRL, USD, EUR, or other ISO code if mentioned"
}

Currency detection rules:
- "reais", "R$" or a bare number -> "BRL"
- "dólares", "dollars", "$", "USD" -> "USD"
- "euros", "EUR", "€" -> "EUR"
- Default to "BRL" if no currency is mentioned

Examples:
"Mercado 350 reais" -> {"description":"Mercado","amount":35000,"category":"Alimentação","type":"expense","currency":"BRL"}
"Uber 25" -> {"description":"Uber","amount":2500,"category":"Transporte","type":"expense","currency":"BRL"}
"Recebi 1000 dólares do freelance" -> {"description":"Freelance","amount":100000,"category":"Outros","type":"income","currency":"USD"}

If the message doesn't contain transaction information, return: {"error": "invalid"}"""

HELP_MESSAGE = (
    "📱 *MoneyGoal - Comandos*\n\n"
    "*Registrar gastos:*\n• Mercado 350 reais\n• Uber 25\n• Padaria 15 café\n\n"
    "*Consultas:*\n• \"hoje\" - gastos de hoje\n\n"
    "*Outros:*\n• \"ajuda\" - esta mensagem"
)
NOT_LINKED_MESSAGE = (
    "❌ Número não vinculado ao MoneyGoal.\n\n"
    "Acesse o aplicativo e vá em Configurações → WhatsApp para vincular sua conta."
)
NOT_UNDERSTOOD_MESSAGE = (
    "❓ Não consegui entender essa mensagem.\n\n"
    "*Exemplos válidos:*\n• Mercado 350 reais\n• Uber 25\n• Padaria 15 café\n\n"
    "Envie \"ajuda\" para ver todos os comandos."
)
NO_GOAL_MESSAGE = "⚠️ Você precisa ter uma meta ativa para registrar gastos.\n\nAcesse o app e crie uma meta primeiro!"


def normalize_phone(raw: str) -> str:
    value = (raw or "").strip()
    if value.lower().startswith("whatsapp:"):
        value = value[len("whatsapp:"):]
    return _PHONE_STRIP_RE.sub("", value)


@dataclass
class TwilioConfig:
    account_sid: Optional[str]
    auth_token: Optional[str]
    whatsapp_number: Optional[str]

    @classmethod
    def from_env(cls) -> "TwilioConfig":
        return cls(
            account_sid=os.getenv("TWILIO_ACCOUNT_SID"),
            auth_token=os.getenv("TWILIO_AUTH_TOKEN"),
            whatsapp_number=os.getenv("TWILIO_WHATSAPP_NUMBER"),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.whatsapp_number)


class WhatsAppSender:
    """Sends replies through Twilio; only logs them when Twilio is not configured."""

    def __init__(self, config: Optional[TwilioConfig] = None) -> None:
        self.config = config or TwilioConfig.from_env()
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            from twilio.rest import Client

            self._client = Client(self.config.account_sid, self.config.auth_token)
        return self._client

    def send(self, to: str, body: str) -> Optional[str]:
        if not self.config.is_configured:
            logger.warning("Twilio not configured; WhatsApp reply to %s not sent: %s", to, body)
            return None
        from twilio.base.exceptions import TwilioRestException

        try:
            message = self._get_client().messages.create(
                from_=f"whatsapp:{self.config.whatsapp_number}",
                to=f"whatsapp:{to}",
                body=body,
            )
        except TwilioRestException as exc:
            logger.error("WhatsApp send to %s failed (%s): %s", to, exc.status, exc.msg)
            return None
        logger.info("WhatsApp message sent to %s: %s", to, message.sid)
        return message.sid


def parse_expense(llm: LLMClient, message: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = llm.invoke_json([
            {"role": "system", "content": PARSER_PROMPT},
            {"role": "user", "content": message},
        ])
    except LLMError as exc:
        logger.error("Error parsing WhatsApp expense: %s", exc)
        return None
    if not isinstance(parsed, dict) or parsed.get("error") == "invalid":
        return None
    try:
        amount = int(round(float(parsed.get("amount") or 0)))
    except (TypeError, ValueError):
        return None
    description = str(parsed.get("description") or "").strip()
    if not description or amount <= 0:
        return None
    tx_type = parsed.get("type") if parsed.get("type") in {"income", "expense"} else "expense"
    return {
        "description": description,
        "amount": amount,
        "category": parsed.get("category") or "Outros",
        "type": tx_type,
        "currency": str(parsed.get("currency") or "BRL").upper()[:3],
    }


def today_summary(db: Session, user: models.User) -> str:
    day_start = start_of_day(now_utc())
    expenses = tx_repo.list_since(db, user_id=user.id, since=day_start, until=day_start + timedelta(days=1), type="expense")
    if not expenses:
        return "📊 *Gastos de hoje*\n\nNenhum gasto registrado ainda! 🎉"
    total = sum(tx.amount for tx in expenses)
    by_category: Dict[str, int] = {}
    for tx in expenses:
        name = tx.category.name if tx.category is not None else "Outros"
        by_category[name] = by_category.get(name, 0) + tx.amount
    lines = "\n".join(f"• {tx.reason} - R$ {tx.amount / 100:.2f}" for tx in expenses)
    breakdown = "\n".join(f"🏷️ {name}: R$ {amount / 100:.2f}" for name, amount in by_category.items())
    return (
        f"📊 *Gastos de hoje* ({len(expenses)})\n\n{lines}\n\n{breakdown}\n\n"
        f"*Total:* R$ {total / 100:.2f}"
    )


def _ensure_category(db: Session, user: models.User, name: str) -> models.Category:
    existing = category_repo.get_category_by_name(db, user_id=user.id, name=name)
    if existing:
        return existing
    style = WHATSAPP_CATEGORY_STYLES.get(name, WHATSAPP_CATEGORY_STYLES["Outros"])
    return category_repo.create_category(db, user_id=user.id, name=name, emoji=style["emoji"], color=style["color"])


def handle_incoming_message(
    db: Session,
    *,
    sender_raw: str,
    body: str,
    llm: LLMClient,
    sender: WhatsAppSender,
) -> str:
    """Process one inbound message and reply. Returns the action taken."""
    phone = normalize_phone(sender_raw)
    message = (body or "").strip()
    if not phone or not message:
        logger.warning("WhatsApp webhook missing From or Body")
        return "missing_fields"

    user = user_repo.get_user_by_phone(db, phone)
    if user is None:
        sender.send(phone, NOT_LINKED_MESSAGE)
        return "user_not_found"
    if not user.phone_verified:
        user.phone_verified = True
        db.commit()

    lowered = message.lower()
    if lowered in HELP_COMMANDS:
        sender.send(phone, HELP_MESSAGE)
        return "help"
    if lowered in TODAY_COMMANDS:
        sender.send(phone, today_summary(db, user))
        return "summary"

    parsed = parse_expense(llm, message)
    if parsed is None:
        sender.send(phone, NOT_UNDERSTOOD_MESSAGE)
        return "invalid_format"

    goal = goal_repo.get_active_goal(db, user_id=user.id)
    if goal is None:
        sender.send(phone, NO_GOAL_MESSAGE)
        return "no_active_goal"

    currency = parsed["currency"] or settings_repo.preferred_currency(db, user_id=user.id)
    category = _ensure_category(db, user, parsed["category"])
    tx_repo.create_transaction(
        db,
        user_id=user.id,
        goal=goal,
        type=parsed["type"],
        amount=parsed["amount"],
        reason=f"{parsed['description']} [WhatsApp]",
        source="whatsapp",
        currency=currency,
        category_id=category.id,
    )
    logger.info("WhatsApp transaction created for user %s: %s", user.id, parsed)

    icon = "💰" if parsed["type"] == "income" else "💸"
    action = "Receita registrada" if parsed["type"] == "income" else "Gasto registrado"
    sender.send(
        phone,
        f"✅ *{action}!*\n\n"
        f"📝 {parsed['description']}\n"
        f"{icon} {format_currency_symbol(currency)} {parsed['amount'] / 100:.2f}\n"
        f"🏷️ {category.name}",
    )
    return "transaction_created"


_sender: Optional[WhatsAppSender] = None


def get_whatsapp_sender() -> WhatsAppSender:
    global _sender
    if _sender is None:
        _sender = WhatsAppSender()
    return _sender
