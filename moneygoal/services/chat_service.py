"""
AI financial advisor.

Builds a per-user financial profile, tracks guided conversation flows and
remembered facts, and asks Gemini for a reply.
"""
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import chat as chat_repo
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import recurring as recurring_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.currency_service import ExchangeRateService, format_amount, round_half_up
from moneygoal.services.llm_client import LLMClient
from moneygoal.utils.dates import add_months, now_utc, start_of_month

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGES = 50
RATE_LIMIT_WINDOW = timedelta(hours=24)
HISTORY_LIMIT = 10
MAX_RESPONSE_TOKENS = 1000
MAX_MEMORIES = 20

RECURRING_MONTHLY_FACTOR = {"monthly": 1.0, "yearly": 1 / 12, "weekly": 4.33, "daily": 30.0}


class ChatRateLimitError(Exception):
    pass


# Language detection

_PT_WORDS = {
    "olá", "oi", "obrigado", "obrigada", "você", "voce", "quero", "posso", "preciso",
    "fazer", "tenho", "meu", "minha", "sim", "não", "nao", "economizar", "dinheiro", "poupar", "gastos",
}
_ES_WORDS = {
    "hola", "gracias", "cómo", "usted", "quiero", "puedo", "necesito", "hacer", "tengo",
    "mi", "sí", "ahorrar", "dinero", "cuánto", "gastar",
}
_PT_CHARS_RE = re.compile(r"[ãçõê]", re.IGNORECASE)
_ES_CHARS_RE = re.compile(r"[ñ¿¡]", re.IGNORECASE)
_WORD_RE = re.compile(r"[^\W\d_]+", re.UNICODE)


def detect_language(text: str) -> str:
    words = [w.lower() for w in _WORD_RE.findall(text or "")]
    pt_score = sum(1 for w in words if w in _PT_WORDS) + len(_PT_CHARS_RE.findall(text or ""))
    es_score = sum(1 for w in words if w in _ES_WORDS) + len(_ES_CHARS_RE.findall(text or ""))
    if pt_score == 0 and es_score == 0:
        return "en"
    return "pt" if pt_score >= es_score else "es"


# Conversation flows

@dataclass(frozen=True)
class ConversationFlow:
    name: str
    questions: Tuple[str, ...]


CONVERSATION_FLOWS: Dict[str, ConversationFlow] = {
    "create_goal": ConversationFlow(
        "Create Savings Goal",
        (
            "What would you like to save for? (e.g., vacation, emergency fund, new car)",
            "How much money do you need to save for this goal?",
            "When do you want to achieve this goal? (e.g., in 6 months, by December 2025)",
        ),
    ),
    "budget_review": ConversationFlow(
        "Monthly Budget Review",
        (
            "Let me analyze your spending. What's your biggest concern right now?",
            "Which expense category would you like to focus on reducing?",
            "What's a realistic monthly budget for this category?",
        ),
    ),
    "savings_plan": ConversationFlow(
        "Personalized Savings Plan",
        (
            "What's your main motivation for saving right now?",
            "How much can you comfortably save each month without sacrificing essentials?",
            "Are you willing to cut any specific expenses to boost your savings?",
        ),
    ),
}

_FLOW_TRIGGERS: List[Tuple[str, List[re.Pattern]]] = [
    ("create_goal", [
        re.compile(r"(criar|create|start|começar|empezar).*(meta|goal|objetivo)", re.IGNORECASE),
        re.compile(r"(quero|want|need|preciso|necesito).*(economizar|save|poupar|ahorrar)", re.IGNORECASE),
    ]),
    ("budget_review", [
        re.compile(r"(revisar|review|analisar|analyze|analizar).*(orçamento|budget|gastos|expenses|despesas)", re.IGNORECASE),
        re.compile(r"onde (estou|tô|to) gastando", re.IGNORECASE),
        re.compile(r"where (am i|i'm) spending", re.IGNORECASE),
    ]),
    ("savings_plan", [
        re.compile(r"(plano|plan).*(poupança|savings|ahorro)", re.IGNORECASE),
        re.compile(r"(plano|plan).*(economizar|save|poupar|ahorrar)", re.IGNORECASE),
        re.compile(r"(como|how).*(economizar mais|save more|poupar mais|ahorrar más)", re.IGNORECASE),
    ]),
]


def detect_flow_intent(text: str) -> Optional[str]:
    for flow, patterns in _FLOW_TRIGGERS:
        if any(p.search(text or "") for p in patterns):
            return flow
    return None


def next_flow_state(
    message: str,
    last_assistant: Optional[models.ChatMessage],
) -> Tuple[Optional[str], Optional[int]]:
    """Return (flow, step) for the reply to `message`.

    An unfinished flow on the last assistant message advances one step; a
    finished one ends. Otherwise a trigger phrase starts a flow at step 1.
    """
    current_flow = last_assistant.conversation_flow if last_assistant else None
    current_step = last_assistant.flow_step if last_assistant else None
    if current_flow in CONVERSATION_FLOWS and current_step:
        nxt = current_step + 1
        if nxt <= len(CONVERSATION_FLOWS[current_flow].questions):
            return current_flow, nxt
        return None, None
    detected = detect_flow_intent(message)
    if detected:
        return detected, 1
    return None, None


# Memories

_GOAL_PATTERNS = [
    re.compile(r"(?:quero|want to|planning to|planejo|planeo)\s+(?:comprar|buy|purchase|adquirir)\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"(?:quero|want to|need to|preciso|necesito)\s+(?:economizar|save|juntar|ahorrar)\s+(?:para|for|to)\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"my goal is (?:to\s+)?([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"minha meta (?:é|e)\s+([a-zA-Z\s]+)", re.IGNORECASE),
]
_PREFERENCE_PATTERNS = [
    re.compile(r"(?:i prefer|prefiro|prefiero)\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"(?:i like|gosto|me gusta)\s+(?:to\s+)?([a-zA-Z\s]+)", re.IGNORECASE),
]
_FAMILY_RE = re.compile(r"\b(?:i have|tenho|tengo)\s+(\d+)\s+(?:kids|children|filhos|hijos)\b", re.IGNORECASE)
_FAMILY_WORDS_RE = re.compile(r"\b(family|familia|família|kids|children|filhos|hijos|spouse|cônjuge|cónyuge)\b", re.IGNORECASE)


def extract_memories(text: str) -> List[str]:
    memories: List[str] = []
    for pattern in _GOAL_PATTERNS:
        match = pattern.search(text or "")
        if match and match.group(1).strip():
            memories.append(f"User wants to: {match.group(1).strip()}")
    for pattern in _PREFERENCE_PATTERNS:
        match = pattern.search(text or "")
        if match and match.group(1).strip():
            memories.append(f"User prefers: {match.group(1).strip()}")
    kids = _FAMILY_RE.search(text or "")
    if kids:
        memories.append(f"User has {kids.group(1)} children")
    elif _FAMILY_WORDS_RE.search(text or ""):
        memories.append("User has family considerations mentioned in conversation")
    return memories


def merge_memories(existing: Optional[List[str]], new: List[str]) -> List[str]:
    merged: List[str] = []
    for item in list(existing or []) + new:
        if item in merged:
            merged.remove(item)
        merged.append(item)
    return merged[-MAX_MEMORIES:]


# Financial context

def build_user_financial_context(
    db: Session,
    user: models.User,
    rates: ExchangeRateService,
) -> Dict[str, Any]:
    now = now_utc()
    since = start_of_month(add_months(now, -3))
    settings = settings_repo.get_settings(db, user_id=user.id)
    currency = settings.currency if settings and settings.currency else "USD"
    recent = tx_repo.list_since(db, user_id=user.id, since=since)
    months = max(1, min(3, math.ceil((now - since).days / 30)))

    def to_pref(tx: models.Transaction) -> int:
        return rates.convert_currency(tx.amount, tx.currency or currency, currency, tx.exchange_rate)

    income = sum(to_pref(t) for t in recent if t.type == "income")
    expenses = sum(to_pref(t) for t in recent if t.type == "expense")
    avg_income = round_half_up(income / months)
    avg_expenses = round_half_up(expenses / months)
    avg_savings = avg_income - avg_expenses
    savings_rate = round_half_up(avg_savings / avg_income * 100) if avg_income > 0 else 0

    goal = goal_repo.get_active_goal(db, user_id=user.id)
    active_goal = None
    if goal is not None:
        remaining = goal.target_amount - goal.current_amount
        active_goal = {
            "name": goal.name,
            "target": format_amount(goal.target_amount, currency),
            "current": format_amount(goal.current_amount, currency),
            "remaining": format_amount(remaining, currency),
            "progress": round_half_up(goal.current_amount / goal.target_amount * 100) if goal.target_amount else 0,
            "months_to_goal": math.ceil(remaining / avg_savings) if avg_savings > 0 and remaining > 0 else None,
        }

    categories = {c.id: c for c in category_repo.list_categories(db, user_id=user.id)}
    spending: Dict[Any, int] = {}
    for tx in recent:
        if tx.type == "expense" and tx.category_id:
            spending[tx.category_id] = spending.get(tx.category_id, 0) + to_pref(tx)
    top_categories = []
    for category_id, amount in sorted(spending.items(), key=lambda kv: kv[1], reverse=True)[:5]:
        category = categories.get(category_id)
        top_categories.append({
            "name": category.name if category else "Other",
            "emoji": category.emoji if category else "📦",
            "avg_monthly": round_half_up(amount / months),
            "total": amount,
        })

    recurring = []
    total_recurring = 0.0
    for expense in recurring_repo.list_recurring(db, user_id=user.id):
        if expense.is_active is False:
            continue
        amount = rates.convert_currency(expense.amount, expense.currency or currency, currency)
        monthly = amount * RECURRING_MONTHLY_FACTOR.get(expense.frequency, 1.0)
        total_recurring += monthly
        category = categories.get(expense.category_id)
        recurring.append({
            "name": expense.name,
            "category": category.name if category else "Other",
            "amount": format_amount(round_half_up(monthly), currency),
            "frequency": expense.frequency,
        })

    return {
        "current_date": now.date().isoformat(),
        "currency": currency,
        "current_balance": format_amount(goal.current_amount if goal else 0, currency),
        "memories": list(settings.chat_memory or []) if settings else [],
        "avg_monthly_income": format_amount(avg_income, currency),
        "avg_monthly_income_raw": avg_income,
        "avg_monthly_expenses": format_amount(avg_expenses, currency),
        "avg_monthly_expenses_raw": avg_expenses,
        "avg_monthly_savings": format_amount(avg_savings, currency),
        "avg_monthly_savings_raw": avg_savings,
        "savings_rate": f"{savings_rate}%",
        "savings_rate_raw": savings_rate,
        "active_goal": active_goal,
        "top_categories": top_categories,
        "recurring_expenses": recurring,
        "total_monthly_recurring": format_amount(round_half_up(total_recurring), currency),
        "recent_transactions_count": len(recent),
    }


def get_welcome_insights(context: Dict[str, Any]) -> List[str]:
    insights: List[str] = []
    if context["avg_monthly_savings_raw"] > 0:
        insights.append(f"💰 You're saving an average of {context['avg_monthly_savings']}/month")
    goal = context.get("active_goal")
    if goal:
        if goal["progress"] >= 90:
            insights.append(f"🎉 You're {goal['progress']}% there with your {goal['name']}!")
        elif goal["progress"] >= 50:
            insights.append(f"📈 Your {goal['name']} is {goal['progress']}% complete")
        elif goal["months_to_goal"]:
            insights.append(f"🎯 {goal['months_to_goal']} months to reach your {goal['name']}")
    if context["savings_rate_raw"] >= 40:
        insights.append(f"⭐ Excellent {context['savings_rate']} savings rate!")
    elif context["savings_rate_raw"] < 10:
        insights.append(f"⚠️ Your savings rate is low ({context['savings_rate']})")
    if context["top_categories"]:
        top = context["top_categories"][0]
        insights.append(
            f"📊 Top expense: {top['emoji']} {top['name']} ({format_amount(top['avg_monthly'], context['currency'])}/mo)"
        )
    return insights[:4]


_PROMPTS = {
    "en": {
        "health": "Analyze my financial health",
        "save_more": "How can I save more money?",
        "on_track": "Am I on track to reach my {goal}?",
        "faster": "How can I reach my goal faster?",
        "set_goal": "Help me set a financial goal",
        "category": "Is my spending on {category} normal?",
        "subscriptions": "Should I cancel any subscriptions?",
        "low_rate": "Why is my savings rate low?",
        "high_rate": "Am I saving too much?",
    },
    "pt": {
        "health": "Analise minha saúde financeira",
        "save_more": "Como posso economizar mais dinheiro?",
        "on_track": "Estou no caminho para alcançar {goal}?",
        "faster": "Como posso alcançar minha meta mais rápido?",
        "set_goal": "Me ajude a definir uma meta financeira",
        "category": "Meus gastos com {category} estão normais?",
        "subscriptions": "Devo cancelar alguma assinatura?",
        "low_rate": "Por que minha taxa de poupança está baixa?",
        "high_rate": "Estou economizando demais?",
    },
    "es": {
        "health": "Analiza mi salud financiera",
        "save_more": "¿Cómo puedo ahorrar más dinero?",
        "on_track": "¿Voy bien para alcanzar {goal}?",
        "faster": "¿Cómo puedo alcanzar mi meta más rápido?",
        "set_goal": "Ayúdame a definir una meta financiera",
        "category": "¿Es normal mi gasto en {category}?",
        "subscriptions": "¿Debería cancelar alguna suscripción?",
        "low_rate": "¿Por qué mi tasa de ahorro es baja?",
        "high_rate": "¿Estoy ahorrando demasiado?",
    },
}


def get_suggested_prompts(context: Dict[str, Any], language: str = "en") -> List[str]:
    texts = _PROMPTS.get(language, _PROMPTS["en"])
    prompts = [texts["health"], texts["save_more"]]
    goal = context.get("active_goal")
    if goal:
        prompts.append(texts["on_track"].format(goal=goal["name"]))
        if goal["months_to_goal"]:
            prompts.append(texts["faster"])
    else:
        prompts.append(texts["set_goal"])
    if context["top_categories"]:
        prompts.append(texts["category"].format(category=context["top_categories"][0]["name"]))
    if context["recurring_expenses"]:
        prompts.append(texts["subscriptions"])
    if context["savings_rate_raw"] < 20:
        prompts.append(texts["low_rate"])
    elif context["savings_rate_raw"] > 40:
        prompts.append(texts["high_rate"])
    return prompts[:6]


# Prompting

_BASE_PROMPTS = {
    "en": "You are an expert AI Financial Advisor integrated into MoneyGoal, a personal finance app. Your role is to help users make informed financial decisions, track their goals, manage their spending, and improve their financial health.",
    "pt": "Você é um Consultor Financeiro de IA especializado integrado ao MoneyGoal, um aplicativo de finanças pessoais. Seu papel é ajudar os usuários a tomar decisões financeiras informadas, acompanhar suas metas, gerenciar seus gastos e melhorar sua saúde financeira.",
    "es": "Eres un Asesor Financiero de IA experto integrado en MoneyGoal, una aplicación de finanzas personales. Tu función es ayudar a los usuarios a tomar decisiones financieras informadas, realizar un seguimiento de sus objetivos, gestionar sus gastos y mejorar su salud financiera.",
}
_LANGUAGE_INSTRUCTIONS = {
    "en": "Respond in English.",
    "pt": "Responda em Português.",
    "es": "Responde en Español.",
}


def build_system_prompt(
    context: Dict[str, Any],
    memories: List[str],
    language: str,
    flow: Optional[str],
    flow_step: Optional[int],
) -> str:
    flow_block = ""
    if flow and flow_step:
        spec = CONVERSATION_FLOWS[flow]
        flow_block = (
            f"\n\nACTIVE CONVERSATION FLOW: {spec.name}\n"
            f"Current Step: {flow_step} of {len(spec.questions)}\n"
            f"Next Question: {spec.questions[flow_step - 1]}\n\n"
            "You are guiding the user through a multi-step conversation. "
            "Ask the next question clearly and wait for their response. Keep it brief and focused."
        )
    memory_block = ""
    if memories:
        memory_block = "\n\nTHINGS YOU REMEMBER ABOUT THE USER:\n" + "\n".join(f"- {m}" for m in memories)
    return (
        f"{_BASE_PROMPTS.get(language, _BASE_PROMPTS['en'])}\n\n"
        "YOUR ROLE:\n"
        "- Provide realistic, data-driven financial advice based on ACTUAL user data\n"
        "- Suggest specific, actionable steps with numbers and timelines\n"
        "- Use a friendly but professional tone\n"
        f"- {_LANGUAGE_INSTRUCTIONS.get(language, _LANGUAGE_INSTRUCTIONS['en'])}"
        f"{flow_block}{memory_block}\n\n"
        "CURRENT USER FINANCIAL PROFILE:\n"
        f"{json.dumps(context, indent=2, ensure_ascii=False, default=str)}\n\n"
        "RESPONSE FORMAT:\n"
        "- Start with a brief analysis (1-2 sentences)\n"
        "- Use markdown: bold for important numbers, lists for action items\n"
        "- List 2-4 specific, actionable recommendations\n"
        "- Keep responses concise (max 400 words)\n\n"
        "IMPORTANT: Base ALL calculations and advice on the financial data provided above."
    )


class ChatService:
    def __init__(self, llm: LLMClient, rates: ExchangeRateService) -> None:
        self.llm = llm
        self.rates = rates

    def send_message(self, db: Session, user: models.User, message: str) -> Dict[str, Any]:
        since = now_utc() - RATE_LIMIT_WINDOW
        if chat_repo.count_user_messages_since(db, user_id=user.id, since=since) >= RATE_LIMIT_MESSAGES:
            raise ChatRateLimitError(
                f"Rate limit exceeded. Please try again in 24 hours. (Max {RATE_LIMIT_MESSAGES} messages/day)"
            )

        history = chat_repo.recent_messages(db, user_id=user.id, limit=HISTORY_LIMIT)
        last_assistant = next((m for m in reversed(history) if m.role == "assistant"), None)
        flow, flow_step = next_flow_state(message, last_assistant)
        language = detect_language(message)

        settings = settings_repo.get_settings(db, user_id=user.id)
        memories = list(settings.chat_memory or []) if settings else []
        context = build_user_financial_context(db, user, self.rates)
        messages = [{"role": "system", "content": build_system_prompt(context, memories, language, flow, flow_step)}]
        messages.extend({"role": m.role, "content": m.content} for m in history if m.role in {"user", "assistant"})
        messages.append({"role": "user", "content": message})

        reply = self.llm.invoke(messages, max_tokens=MAX_RESPONSE_TOKENS)

        chat_repo.create_message(db, user_id=user.id, role="user", content=message, conversation_flow=flow, flow_step=flow_step)
        chat_repo.create_message(db, user_id=user.id, role="assistant", content=reply, conversation_flow=flow, flow_step=flow_step)

        new_memories = extract_memories(message)
        if new_memories:
            settings_repo.upsert_settings(
                db,
                user_id=user.id,
                changes={"chat_memory": merge_memories(memories, new_memories)},
            )
        return {"response": reply, "flow": flow, "flow_step": flow_step, "language": language}

    def welcome(self, db: Session, user: models.User) -> Dict[str, List[str]]:
        context = build_user_financial_context(db, user, self.rates)
        settings = settings_repo.get_settings(db, user_id=user.id)
        language = settings.language if settings and settings.language else "en"
        return {
            "insights": get_welcome_insights(context),
            "suggested_prompts": get_suggested_prompts(context, language),
        }
