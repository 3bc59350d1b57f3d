from datetime import timedelta

import pytest

from moneygoal.db.repositories import categories as category_repo
from moneygoal.db.repositories import transactions as tx_repo
from moneygoal.services.insights_service import (
    InsufficientDataError,
    build_forecast_prompt,
    check_data_availability,
    forecast_stats,
    generate_achievements,
    generate_alerts,
)
from moneygoal.services.llm_client import LLMError
from moneygoal.utils.dates import add_months, now_utc, start_of_month


@pytest.fixture
def food(db_session, user):
    return category_repo.create_category(db_session, user_id=user.id, name="Food", emoji="🍔", color="#10b981")


def _book(db, user, goal, amount, *, type="expense", category=None, when=None):
    return tx_repo.create_transaction(
        db,
        user_id=user.id,
        goal=goal,
        type=type,
        amount=amount,
        reason="test",
        category_id=category.id if category else None,
        created_date=when,
        adjust_goal=False,
    )


def test_data_availability(db_session, user, goal):
    assert check_data_availability(db_session, user_id=user.id) == {
        "transaction_count": 0,
        "has_active_goal": True,
        "can_generate_forecast": False,
        "can_generate_alerts": False,
        "can_generate_achievements": True,
    }
    for _ in range(3):
        _book(db_session, user, goal, 100)
    availability = check_data_availability(db_session, user_id=user.id)
    assert availability["can_generate_alerts"] is True
    assert availability["can_generate_forecast"] is False


def test_forecast_stats_and_prompt(db_session, user, goal, food):
    _book(db_session, user, goal, 300000, type="income")
    _book(db_session, user, goal, 60000, category=food)
    _book(db_session, user, goal, 30000)
    stats = forecast_stats(db_session, user_id=user.id)
    assert stats["total_income"] == 300000
    assert stats["total_expenses"] == 90000
    assert stats["avg_monthly_income"] == 100000
    assert stats["avg_monthly_expense"] == 30000
    assert stats["monthly_savings"] == 70000
    assert stats["projected_annual_savings"] == 840000
    assert stats["top_categories"] == [{"name": "Food", "amount": 60000, "percentage": 66.7}]

    prompt = build_forecast_prompt(stats, [goal], "BRL", "pt")
    assert "Monthly Savings: R$700.00" in prompt
    assert "- Food: R$600.00 (66.7%)" in prompt
    assert "- Trip to Japan: R$0.00 / R$5000.00 (0.0%)" in prompt
    assert "Responda em PORTUGUÊS" in prompt


def test_alerts_compare_with_previous_month(db_session, user, goal, food):
    last_month = add_months(start_of_month(now_utc()), -1) + timedelta(days=1)
    _book(db_session, user, goal, 5000, category=food, when=last_month)
    _book(db_session, user, goal, 5000, category=food, when=last_month)
    _book(db_session, user, goal, 20000, category=food)

    alerts = generate_alerts(db_session, user_id=user.id)
    titles = [a.title for a in alerts]
    assert titles == ["⚠️ Spending Increased", "📊 🍔 Food Spike"]
    assert "100.0%" in alerts[0].message
    assert alerts[0].data == {"current_total": 20000, "previous_total": 10000}
    assert "$200.00 vs $100.00" in alerts[1].message


def test_alerts_need_transactions(db_session, user, goal):
    with pytest.raises(InsufficientDataError):
        generate_alerts(db_session, user_id=user.id)


def test_achievements_recorded_once(db_session, user, goal):
    goal.current_amount = 130000  # 26% of 5000.00
    db_session.commit()
    created = generate_achievements(db_session, user_id=user.id)
    assert [a.title for a in created] == ["🎯 25% Milestone!"]
    assert created[0].data == {"goal_id": str(goal.id), "milestone": 25}
    assert generate_achievements(db_session, user_id=user.id) == []

    goal.current_amount = 500000
    db_session.commit()
    assert [a.data["milestone"] for a in generate_achievements(db_session, user_id=user.id)] == [100]


def test_achievements_outside_band(db_session, user, goal):
    goal.current_amount = 150000  # 30%, past the 25% band
    db_session.commit()
    assert generate_achievements(db_session, user_id=user.id) == []


def test_achievements_need_goal(db_session, user):
    with pytest.raises(InsufficientDataError):
        generate_achievements(db_session, user_id=user.id)


def test_forecast_endpoint(client, auth_headers, user, goal, db_session, fake_llm):
    assert client.post("/insights/forecast", headers=auth_headers).status_code == 412
    for _ in range(5):
        _book(db_session, user, goal, 1000)
    fake_llm.reply = "**Forecast** looks good."
    res = client.post("/insights/forecast", headers=auth_headers)
    assert res.status_code == 200, res.text
    body = res.json()
    assert (body["type"], body["title"], body["message"], body["priority"]) == (
        "forecast", "Your Financial Forecast", "**Forecast** looks good.", 10,
    )
    assert body["data"]["total_expenses"] == 5000
    assert fake_llm.calls[0][0]["role"] == "system"

    fake_llm.error = LLMError("quota")
    assert client.post("/insights/forecast", headers=auth_headers).status_code == 500


def test_insight_listing_read_and_delete(client, auth_headers, goal, db_session):
    goal.current_amount = 250000
    db_session.commit()
    created = client.post("/insights/achievements", headers=auth_headers).json()
    assert len(created) == 1
    insight_id = created[0]["id"]

    assert [i["id"] for i in client.get("/insights/unread", headers=auth_headers).json()] == [insight_id]
    assert client.post(f"/insights/{insight_id}/read", headers=auth_headers).json() == {"success": True}
    assert client.get("/insights/unread", headers=auth_headers).json() == []
    assert len(client.get("/insights/", headers=auth_headers).json()) == 1

    assert client.delete(f"/insights/{insight_id}", headers=auth_headers).json() == {"success": True}
    assert client.delete(f"/insights/{insight_id}", headers=auth_headers).status_code == 404


def test_availability_endpoint(client, auth_headers):
    body = client.get("/insights/availability", headers=auth_headers).json()
    assert body["has_active_goal"] is False
    assert client.post("/insights/alerts", headers=auth_headers).status_code == 412
    assert client.post("/insights/achievements", headers=auth_headers).status_code == 412
