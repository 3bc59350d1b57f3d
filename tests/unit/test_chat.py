from types import SimpleNamespace

import pytest

from moneygoal.db.repositories import chat as chat_repo
from moneygoal.db.repositories import settings as settings_repo
from moneygoal.services.chat_service import (
    RATE_LIMIT_MESSAGES,
    build_system_prompt,
    detect_flow_intent,
    detect_language,
    extract_memories,
    get_suggested_prompts,
    get_welcome_insights,
    merge_memories,
    next_flow_state,
)
from moneygoal.services.llm_client import LLMError
from moneygoal.utils.feature_flags import refresh_feature_flag_cache


@pytest.mark.parametrize(
    "text,expected",
    [
        ("How can I save more this month?", "en"),
        ("Olá, quero economizar dinheiro", "pt"),
        ("Hola, necesito ahorrar dinero", "es"),
        ("¿Cuánto puedo gastar?", "es"),
        ("", "en"),
    ],
)
def test_detect_language(text, expected):
    assert detect_language(text) == expected


def test_detect_flow_intent():
    assert detect_flow_intent("I want to create a new goal") == "create_goal"
    assert detect_flow_intent("Can you review my budget?") == "budget_review"
    assert detect_flow_intent("where am i spending the most") == "budget_review"
    assert detect_flow_intent("Give me a plan for savings") == "savings_plan"
    assert detect_flow_intent("What's the weather?") is None


def test_next_flow_state_advances_and_ends():
    assert next_flow_state("I want to create a goal", None) == ("create_goal", 1)
    step1 = SimpleNamespace(conversation_flow="create_goal", flow_step=1)
    assert next_flow_state("A new car", step1) == ("create_goal", 2)
    step3 = SimpleNamespace(conversation_flow="create_goal", flow_step=3)
    assert next_flow_state("In 6 months", step3) == (None, None)
    plain = SimpleNamespace(conversation_flow=None, flow_step=None)
    assert next_flow_state("hello", plain) == (None, None)


def test_extract_memories():
    assert extract_memories("I want to save for a new car") == ["User wants to: a new car"]
    assert "User has 2 children" in extract_memories("I have 2 kids at school")
    assert extract_memories("My family is growing") == ["User has family considerations mentioned in conversation"]
    assert "User prefers: cash payments" in extract_memories("I prefer cash payments")
    assert extract_memories("What is my balance?") == []


def test_merge_memories_dedups_and_caps():
    merged = merge_memories(["a", "b"], ["a", "c"])
    assert merged == ["b", "a", "c"]
    many = merge_memories([str(i) for i in range(20)], ["new"])
    assert len(many) == 20
    assert many[-1] == "new"
    assert many[0] == "1"


def _context(**overrides):
    context = {
        "currency": "USD",
        "avg_monthly_savings": "$500.00",
        "avg_monthly_savings_raw": 50000,
        "savings_rate": "45%",
        "savings_rate_raw": 45,
        "active_goal": {"name": "Trip", "progress": 95, "months_to_goal": 1},
        "top_categories": [{"name": "Food", "emoji": "🍔", "avg_monthly": 12000}],
        "recurring_expenses": [{"name": "Rent"}],
    }
    context.update(overrides)
    return context


def test_welcome_insights():
    insights = get_welcome_insights(_context())
    assert insights == [
        "💰 You're saving an average of $500.00/month",
        "🎉 You're 95% there with your Trip!",
        "⭐ Excellent 45% savings rate!",
        "📊 Top expense: 🍔 Food ($120.00/mo)",
    ]
    low = get_welcome_insights(_context(avg_monthly_savings_raw=0, savings_rate_raw=5, savings_rate="5%", active_goal=None, top_categories=[]))
    assert low == ["⚠️ Your savings rate is low (5%)"]


def test_suggested_prompts_localized():
    prompts = get_suggested_prompts(_context(), "pt")
    assert prompts[0] == "Analise minha saúde financeira"
    assert "Estou no caminho para alcançar Trip?" in prompts
    assert len(prompts) == 6
    no_goal = get_suggested_prompts(_context(active_goal=None, top_categories=[], recurring_expenses=[], savings_rate_raw=30))
    assert no_goal == ["Analyze my financial health", "How can I save more money?", "Help me set a financial goal"]


def test_system_prompt_includes_flow_and_memories():
    prompt = build_system_prompt({"currency": "USD"}, ["User has 2 children"], "es", "create_goal", 2)
    assert "Responde en Español." in prompt
    assert "Current Step: 2 of 3" in prompt
    assert "How much money do you need to save for this goal?" in prompt
    assert "- User has 2 children" in prompt


def test_send_message_runs_flow_and_remembers(client, auth_headers, goal, fake_llm, db_session, user):
    fake_llm.reply = "Great, let's plan it."
    res = client.post("/chat/send", json={"message": "I want to save for a new car"}, headers=auth_headers)
    assert res.status_code == 200, res.text
    assert res.json() == {"response": "Great, let's plan it.", "flow": "create_goal", "flow_step": 1, "language": "en"}

    system = fake_llm.calls[0][0]
    assert system["role"] == "system"
    assert "Trip to Japan" in system["content"]
    assert fake_llm.calls[0][-1] == {"role": "user", "content": "I want to save for a new car"}

    settings = settings_repo.get_settings(db_session, user_id=user.id)
    assert settings.chat_memory == ["User wants to: a new car"]

    res = client.post("/chat/send", json={"message": "About 20000 dollars"}, headers=auth_headers)
    assert res.json()["flow_step"] == 2
    # History is replayed to the model
    assert [m["role"] for m in fake_llm.calls[1]] == ["system", "user", "assistant", "user"]

    history = client.get("/chat/history", headers=auth_headers).json()
    assert [m["role"] for m in history] == ["user", "assistant", "user", "assistant"]

    cleared = client.delete("/chat/history", headers=auth_headers).json()
    assert cleared == {"success": True, "deleted_count": 4}


def test_send_message_rate_limited(client, auth_headers, user, db_session):
    for i in range(RATE_LIMIT_MESSAGES):
        chat_repo.create_message(db_session, user_id=user.id, role="user", content=f"msg {i}")
    res = client.post("/chat/send", json={"message": "one more"}, headers=auth_headers)
    assert res.status_code == 429


def test_send_message_llm_failure(client, auth_headers, fake_llm):
    fake_llm.error = LLMError("boom")
    res = client.post("/chat/send", json={"message": "hello"}, headers=auth_headers)
    assert res.status_code == 500
    assert client.get("/chat/history", headers=auth_headers).json() == []


def test_send_message_disabled(client, auth_headers, monkeypatch):
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.post("/chat/send", json={"message": "hello"}, headers=auth_headers).status_code == 503


def test_welcome(client, auth_headers, goal):
    body = client.get("/chat/welcome", headers=auth_headers).json()
    assert "Analyze my financial health" in body["suggested_prompts"]
    assert "Am I on track to reach my Trip to Japan?" in body["suggested_prompts"]
    assert isinstance(body["insights"], list)
