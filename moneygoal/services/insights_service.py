"""
Generated financial insights: LLM forecasts, month-over-month spending
alerts and goal milestone achievements.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from moneygoal.db import models
from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import goals as goal_repo
from moneygoal.db.repositories import insights as insight_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.currency_service import format_amount, round_half_up
from moneygoal.services.llm_client import LLMClient
from moneygoal.utils.dates import add_months, now_utc, start_of_month

logger = logging.getLogger(__name__)

MIN_FORECAST_TRANSACTIONS = 5
MIN_ALERT_TRANSACTIONS = 3
FORECAST_WINDOW_DAYS = 90
FORECAST_MONTHS = 3
FORECAST_MAX_TOKENS = 800
SPENDING_INCREASE_PERCENT = 20
CATEGORY_SPIKE_PERCENT = 50
CATEGORY_SPIKE_MIN_CENTS = 5000
MILESTONES = (25, 50, 75, 100)
MILESTONE_EMOJI = {25: "🎯", 50: "⭐", 75: "🔥", 100: "🎉"}


class InsufficientDataError(Exception):
    pass


def check_data_availability(db: Session, *, user_id) -> Dict[str, Any]:
    count = tx_repo.count_transactions(db, user_id=user_id)
    has_goal = goal_repo.get_active_goal(db, user_id=user_id) is not None
    return {
        "transaction_count": count,
        "has_active_goal": has_goal,
        "can_generate_forecast": count >= MIN_FORECAST_TRANSACTIONS,
        "can_generate_alerts": count >= MIN_ALERT_TRANSACTIONS,
        "can_generate_achievements": has_goal,
    }


_FORECAST_TEXT = {
    "en": {
        "title": "Your Financial Forecast",
        "system": (
            "You are a professional financial advisor. Provide clear, actionable advice based on user data. "
            "Be encouraging but honest about areas for improvement. Keep responses concise and under 300 words."
        ),
        "instructions": (
            "Provide in ENGLISH:\n"
            "1. **Financial Health Assessment:** (1 sentence)\n"
            "2. **Spending Pattern Analysis:** (1 sentence)\n"
            "3. **Goal Achievement Forecast:** When will they reach goals at current pace?\n"
            "4. **Actionable Recommendations:** 3 specific actions with numbers\n"
            "5. **Projected Annual Savings:** At current rate"
        ),
    },
    "pt": {
        "title": "Sua Previsão Financeira",
        "system": (
            "Você é um consultor financeiro profissional. Forneça conselhos específicos e personalizados "
            "baseados nos dados reais do usuário, com números concretos. Seja encorajador mas realista."
        ),
        "instructions": (
            "Responda em PORTUGUÊS:\n"
            "1. **Avaliação de Saúde Financeira:** (1 frase)\n"
            "2. **Análise de Padrões de Gastos:** (1 frase)\n"
            "3. **Previsão de Conquista de Metas:** Quando as metas serão atingidas no ritmo atual?\n"
            "4. **Recomendações Acionáveis:** 3 ações específicas com valores\n"
            "5. **Projeção de Poupança Anual:** No ritmo atual"
        ),
    },
    "es": {
        "title": "Tu Pronóstico Financiero",
        "system": (
            "Eres un asesor financiero profesional. Proporciona consejos claros y accionables basados en los "
            "datos del usuario. Sé alentador pero honesto. Mantén respuestas con menos de 300 palabras."
        ),
        "instructions": (
            "Proporciona en ESPAÑOL:\n"
            "1. **Evaluación de Salud Financiera:** (1 oración)\n"
            "2. **Análisis de Patrones de Gastos:** (1 oración)\n"
            "3. **Pronóstico de Logro de Metas:** ¿Cuándo alcanzarán las metas al ritmo actual?\n"
            "4. **Recomendaciones Accionables:** 3 acciones específicas con números\n"
            "5. **Proyección de Ahorros Anuales:** Al ritmo actual"
        ),
    },
}


def forecast_stats(db: Session, *, user_id) -> Dict[str, Any]:
    since = now_utc() - timedelta(days=FORECAST_WINDOW_DAYS)
    recent = tx_repo.list_since(db, user_id=user_id, since=since)
    income = sum(t.amount for t in recent if t.type == "income")
    expenses = sum(t.amount for t in recent if t.type == "expense")
    avg_income = round_half_up(income / FORECAST_MONTHS)
    avg_expense = round_half_up(expenses / FORECAST_MONTHS)
    savings = avg_income - avg_expense

    categories = {c.id: c for c in category_repo.list_categories(db, user_id=user_id)}
    by_category: Dict[Any, int] = {}
    for tx in recent:
        if tx.type == "expense" and tx.category_id in categories:
            by_category[tx.category_id] = by_category.get(tx.category_id, 0) + tx.amount
    top = [
        {
            "name": categories[cid].name,
            "amount": amount,
            "percentage": round(amount / expenses * 100, 1) if expenses else 0.0,
        }
        for cid, amount in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)[:5]
    ]
    return {
        "total_income": income,
        "total_expenses": expenses,
        "avg_monthly_income": avg_income,
        "avg_monthly_expense": avg_expense,
        "monthly_savings": savings,
        "projected_annual_savings": savings * 12,
        "top_categories": top,
    }


def build_forecast_prompt(stats: Dict[str, Any], goals: List[models.Goal], currency: str, language: str) -> str:
    def money(cents: int) -> str:
        return format_amount(cents, currency)

    lines = [
        "Analyze this financial data and provide a brief forecast:",
        "",
        f"Income (last 3 months): {money(stats['total_income'])}",
        f"Expenses (last 3 months): {money(stats['total_expenses'])}",
        f"Monthly Average Income: {money(stats['avg_monthly_income'])}",
        f"Monthly Average Expenses: {money(stats['avg_monthly_expense'])}",
        f"Monthly Savings: {money(stats['monthly_savings'])}",
        "",
        "Top Spending Categories:",
    ]
    lines.extend(f"- {c['name']}: {money(c['amount'])} ({c['percentage']:.1f}%)" for c in stats["top_categories"])
    lines.extend(["", "Active Goals:"])
    for goal in goals:
        progress = goal.current_amount / goal.target_amount * 100 if goal.target_amount else 0
        lines.append(f"- {goal.name}: {money(goal.current_amount)} / {money(goal.target_amount)} ({progress:.1f}%)")
    lines.extend(["", _FORECAST_TEXT[language]["instructions"], "", f"Keep it concise (<300 words), encouraging, actionable. Use {currency} amounts."])
    return "\n".join(lines)


def generate_forecast(db: Session, *, user_id, llm: LLMClient) -> models.AIInsight:
    count = tx_repo.count_transactions(db, user_id=user_id)
    if count < MIN_FORECAST_TRANSACTIONS:
        raise InsufficientDataError(
            f"Insufficient data: You have {count} transactions, but need at least "
            f"{MIN_FORECAST_TRANSACTIONS} to generate meaningful forecasts."
        )
    settings = settings_repo.get_settings(db, user_id=user_id)
    language = settings.language if settings and settings.language in _FORECAST_TEXT else "en"
    currency = settings.currency if settings and settings.currency else "USD"
    stats = forecast_stats(db, user_id=user_id)
    goal = goal_repo.get_active_goal(db, user_id=user_id)
    text = _FORECAST_TEXT[language]
    message = llm.invoke(
        [
            {"role": "system", "content": text["system"]},
            {"role": "user", "content": build_forecast_prompt(stats, [goal] if goal else [], currency, language)},
        ],
        max_tokens=FORECAST_MAX_TOKENS,
    )
    return insight_repo.create_insight(
        db,
        user_id=user_id,
        type="forecast",
        title=text["title"],
        message=message,
        priority=10,
        data=stats,
    )


def _sum_by_category(transactions: List[models.Transaction]) -> Dict[Any, int]:
    totals: Dict[Any, int] = {}
    for tx in transactions:
        if tx.category_id:
            totals[tx.category_id] = totals.get(tx.category_id, 0) + tx.amount
    return totals


def generate_alerts(db: Session, *, user_id) -> List[models.AIInsight]:
    count = tx_repo.count_transactions(db, user_id=user_id)
    if count < MIN_ALERT_TRANSACTIONS:
        raise InsufficientDataError(
            f"Insufficient data: need at least {MIN_ALERT_TRANSACTIONS} transactions to generate alerts."
        )
    this_month = start_of_month(now_utc())
    previous_month = add_months(this_month, -1)
    current = tx_repo.list_since(db, user_id=user_id, since=this_month, type="expense")
    previous = tx_repo.list_since(db, user_id=user_id, since=previous_month, until=this_month, type="expense")
    settings = settings_repo.get_settings(db, user_id=user_id)
    currency = settings.currency if settings and settings.currency else "USD"

    created: List[models.AIInsight] = []
    current_total = sum(t.amount for t in current)
    previous_total = sum(t.amount for t in previous)
    if previous_total > 0:
        increase = current_total - previous_total
        percent = increase / previous_total * 100
        if percent > SPENDING_INCREASE_PERCENT:
            created.append(insight_repo.create_insight(
                db,
                user_id=user_id,
                type="alert",
                title="⚠️ Spending Increased",
                message=(
                    f"Your spending increased by {percent:.1f}% this month "
                    f"({format_amount(increase, currency)} more than last month). "
                    "Review your expenses to stay on track."
                ),
                priority=8,
                data={"current_total": current_total, "previous_total": previous_total},
            ))

    current_by_cat = _sum_by_category(current)
    previous_by_cat = _sum_by_category(previous)
    for category in category_repo.list_categories(db, user_id=user_id):
        now_spent = current_by_cat.get(category.id, 0)
        before = previous_by_cat.get(category.id, 0)
        if before <= 0:
            continue
        percent = (now_spent - before) / before * 100
        if percent > CATEGORY_SPIKE_PERCENT and now_spent > CATEGORY_SPIKE_MIN_CENTS:
            created.append(insight_repo.create_insight(
                db,
                user_id=user_id,
                type="alert",
                title=f"📊 {category.emoji} {category.name} Spike",
                message=(
                    f"{category.name} spending up {percent:.0f}% "
                    f"({format_amount(now_spent, currency)} vs {format_amount(before, currency)}). "
                    "Is this intentional?"
                ),
                priority=6,
                data={"category_id": str(category.id), "current": now_spent, "previous": before},
            ))
    return created


def _recorded_milestones(db: Session, *, user_id, goal_id) -> set:
    recorded = set()
    for insight in insight_repo.list_by_type(db, user_id=user_id, type="achievement"):
        data = insight.data or {}
        if data.get("goal_id") == str(goal_id):
            recorded.add(data.get("milestone"))
    return recorded


def generate_achievements(db: Session, *, user_id) -> List[models.AIInsight]:
    goal = goal_repo.get_active_goal(db, user_id=user_id)
    if goal is None:
        raise InsufficientDataError("Create an active goal first to track achievements.")
    settings = settings_repo.get_settings(db, user_id=user_id)
    currency = settings.currency if settings and settings.currency else "USD"
    progress = goal.current_amount / goal.target_amount * 100 if goal.target_amount else 0
    recorded = _recorded_milestones(db, user_id=user_id, goal_id=goal.id)

    created: List[models.AIInsight] = []
    for milestone in MILESTONES:
        if not (milestone <= progress < milestone + 5) or milestone in recorded:
            continue
        closing = "Goal complete!" if milestone == 100 else "Keep going!"
        created.append(insight_repo.create_insight(
            db,
            user_id=user_id,
            type="achievement",
            title=f"{MILESTONE_EMOJI[milestone]} {milestone}% Milestone!",
            message=(
                f'Congratulations! You\'ve reached {milestone}% of your "{goal.name}" goal '
                f"({format_amount(goal.current_amount, currency)} / {format_amount(goal.target_amount, currency)}). "
                f"{closing}"
            ),
            priority=9,
            data={"goal_id": str(goal.id), "milestone": milestone},
        ))
    return created
