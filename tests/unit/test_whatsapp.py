import pytest

from moneygoal.db import models
from moneygoal.db.repositories import users as user_repo
from moneygoal.services.llm_client import LLMError
from moneygoal.services.whatsapp_service import handle_incoming_message, normalize_phone, parse_expense

PHONE = "+5511999998888"


@pytest.fixture
def linked_user(db_session, user):
    user.phone_number = PHONE
    user.phone_verified = False
    db_session.commit()
    return user


def _handle(db, llm, sender, body, sender_raw=f"whatsapp:{PHONE}"):
    return handle_incoming_message(db, sender_raw=sender_raw, body=body, llm=llm, sender=sender)


def test_normalize_phone():
    assert normalize_phone("whatsapp:+55 (11) 99999-8888") == PHONE
    assert normalize_phone("  ") == ""


def test_parse_expense(fake_llm):
    fake_llm.json_reply = {"description": "Mercado", "amount": 35000, "category": "Alimentação", "type": "expense", "currency": "brl"}
    assert parse_expense(fake_llm, "Mercado 350 reais") == {
        "description": "Mercado",
        "amount": 35000,
        "category": "Alimentação",
        "type": "expense",
        "currency": "BRL",
    }
    fake_llm.json_reply = {"description": "Gift", "amount": 1000, "type": "donation"}
    parsed = parse_expense(fake_llm, "Gift 10")
    assert (parsed["type"], parsed["category"], parsed["currency"]) == ("expense", "Outros", "BRL")

    fake_llm.json_reply = {"error": "invalid"}
    assert parse_expense(fake_llm, "hello") is None
    fake_llm.json_reply = {"description": "Zero", "amount": 0}
    assert parse_expense(fake_llm, "zero") is None
    fake_llm.error = LLMError("down")
    assert parse_expense(fake_llm, "Uber 25") is None


def test_unknown_number_gets_link_instructions(db_session, fake_llm, fake_sender):
    assert _handle(db_session, fake_llm, fake_sender, "Uber 25") == "user_not_found"
    assert fake_sender.sent[0][0] == PHONE
    assert "não vinculado" in fake_sender.sent[0][1]


def test_missing_fields(db_session, fake_llm, fake_sender):
    assert _handle(db_session, fake_llm, fake_sender, "   ") == "missing_fields"
    assert fake_sender.sent == []


def test_help_marks_phone_verified(db_session, linked_user, fake_llm, fake_sender):
    assert _handle(db_session, fake_llm, fake_sender, "Ajuda") == "help"
    assert "Comandos" in fake_sender.sent[-1][1]
    db_session.refresh(linked_user)
    assert linked_user.phone_verified is True
    assert fake_llm.calls == []


def test_expense_creates_transaction_and_summary(db_session, linked_user, goal, fake_llm, fake_sender):
    goal.current_amount = 100000
    db_session.commit()
    fake_llm.json_reply = {"description": "Mercado", "amount": 35000, "category": "Alimentação", "type": "expense", "currency": "BRL"}

    assert _handle(db_session, fake_llm, fake_sender, "Mercado 350 reais") == "transaction_created"
    tx = db_session.query(models.Transaction).filter_by(source="whatsapp").one()
    assert (tx.reason, tx.amount, tx.currency, tx.type) == ("Mercado [WhatsApp]", 35000, "BRL", "expense")
    assert tx.category.name == "Alimentação"
    db_session.refresh(goal)
    assert goal.current_amount == 65000
    assert "Gasto registrado" in fake_sender.sent[-1][1]
    assert "R$ 350.00" in fake_sender.sent[-1][1]

    # The same category is reused rather than duplicated
    _handle(db_session, fake_llm, fake_sender, "Mercado 350 reais")
    assert db_session.query(models.Category).filter_by(user_id=linked_user.id, name="Alimentação").count() == 1

    assert _handle(db_session, fake_llm, fake_sender, "hoje") == "summary"
    summary = fake_sender.sent[-1][1]
    assert "Gastos de hoje* (2)" in summary
    assert "*Total:* R$ 700.00" in summary


def test_no_active_goal_and_invalid_text(db_session, linked_user, fake_llm, fake_sender):
    fake_llm.json_reply = {"error": "invalid"}
    assert _handle(db_session, fake_llm, fake_sender, "bom dia") == "invalid_format"
    fake_llm.json_reply = {"description": "Uber", "amount": 2500, "category": "Transporte", "type": "expense"}
    assert _handle(db_session, fake_llm, fake_sender, "Uber 25") == "no_active_goal"


def test_empty_summary(db_session, linked_user, fake_llm, fake_sender):
    assert _handle(db_session, fake_llm, fake_sender, "today") == "summary"
    assert "Nenhum gasto registrado" in fake_sender.sent[-1][1]


def test_webhook_always_answers_twiml(client, linked_user, fake_sender):
    res = client.post("/whatsapp/webhook", data={"From": f"whatsapp:{PHONE}", "Body": "help"})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/xml")
    assert "<Response></Response>" in res.text
    assert fake_sender.sent[-1][0] == PHONE

    assert client.post("/whatsapp/webhook", data={}).status_code == 200


def test_webhook_disabled(client, linked_user, fake_sender, monkeypatch):
    from moneygoal.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("WHATSAPP_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.post("/whatsapp/webhook", data={"From": PHONE, "Body": "help"}).status_code == 200
    assert fake_sender.sent == []


def test_phone_linking(client, auth_headers, db_session):
    assert client.get("/whatsapp/status", headers=auth_headers).json() == {"linked": False, "phone_number": None}
    res = client.post("/whatsapp/link", json={"phone_number": "+55 (11) 99999-8888"}, headers=auth_headers)
    assert res.json() == {"linked": True, "phone_number": PHONE}

    bob = {"x-auth-request-user": "bob", "x-auth-request-email": "bob@example.com"}
    assert client.post("/whatsapp/link", json={"phone_number": PHONE}, headers=bob).status_code == 409

    assert client.delete("/whatsapp/link", headers=auth_headers).json() == {"linked": False, "phone_number": None}
    assert user_repo.get_user_by_phone(db_session, PHONE) is None
