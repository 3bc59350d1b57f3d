import uuid

from moneygoal.db import models
from moneygoal.db.repositories import settings as settings_repo


def _tx(client, headers, goal_id, **overrides):
    payload = {"goal_id": str(goal_id), "type": "expense", "amount": 1000, "reason": "Coffee at the cafe"}
    payload.update(overrides)
    return client.post("/transactions/", json=payload, headers=headers)


def test_goal_crud(client, auth_headers, db_session):
    res = client.post("/goals/", json={"name": "Emergency fund", "target_amount": 100000}, headers=auth_headers)
    assert res.status_code == 201, res.text
    goal = res.json()
    assert goal["current_amount"] == 0
    assert goal["status"] == "active"
    assert _tx(client, auth_headers, goal["id"], type="income", amount=2500, reason="Savings").status_code == 201

    listed = client.get("/goals/", headers=auth_headers).json()
    assert [g["id"] for g in listed] == [goal["id"]]

    res = client.put(
        f"/goals/{goal['id']}",
        json={"status": "archived", "archived_date": "2024-03-01T00:00:00Z"},
        headers=auth_headers,
    )
    assert res.status_code == 200
    assert res.json()["status"] == "archived"
    assert [g["id"] for g in client.get("/goals/archived", headers=auth_headers).json()] == [goal["id"]]
    assert client.get("/goals/active", headers=auth_headers).json() is None

    assert client.delete(f"/goals/{goal['id']}", headers=auth_headers).json() == {"success": True}
    assert client.get(f"/goals/{goal['id']}", headers=auth_headers).status_code == 404
    # The goal's transactions go with it
    assert db_session.query(models.Transaction).filter_by(goal_id=uuid.UUID(goal["id"])).count() == 0


def test_goal_validation(client, auth_headers):
    assert client.post("/goals/", json={"name": "", "target_amount": 100}, headers=auth_headers).status_code == 422
    assert client.post("/goals/", json={"name": "x", "target_amount": 0}, headers=auth_headers).status_code == 422


def test_goals_are_scoped_to_owner(client, goal):
    bob = {"x-auth-request-user": "bob", "x-auth-request-email": "bob@example.com"}
    assert client.get(f"/goals/{goal.id}", headers=bob).status_code == 404
    assert client.put(f"/goals/{goal.id}", json={"name": "mine"}, headers=bob).status_code == 404
    assert client.delete(f"/goals/{goal.id}", headers=bob).status_code == 404


def test_transaction_moves_goal_and_autocategorizes(client, auth_headers, goal, db_session):
    res = _tx(client, auth_headers, goal.id, type="income", amount=5000, reason="Salary March")
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["source"] == "manual"
    assert body["currency"] == "USD"
    income = db_session.get(models.Category, uuid.UUID(body["category_id"]))
    assert income.name == "Income"

    res = _tx(client, auth_headers, goal.id, amount=1500, reason="Uber downtown")
    assert res.status_code == 201
    db_session.refresh(goal)
    assert goal.current_amount == 3500

    # Expenses larger than the balance clamp the goal at zero
    _tx(client, auth_headers, goal.id, amount=999999, reason="Rent")
    db_session.refresh(goal)
    assert goal.current_amount == 0


def test_transaction_uses_preferred_currency(client, auth_headers, goal, user, db_session):
    settings_repo.create_settings(db_session, user_id=user.id, values={"currency": "BRL"})
    assert _tx(client, auth_headers, goal.id).json()["currency"] == "BRL"
    assert _tx(client, auth_headers, goal.id, currency="eur").json()["currency"] == "EUR"


def test_explicit_category_feeds_learning(client, auth_headers, goal):
    categories = client.get("/categories/", headers=auth_headers).json()
    shopping = next(c for c in categories if c["name"] == "Shopping")

    res = _tx(client, auth_headers, goal.id, reason="Loja do Ze", category_id=shopping["id"])
    assert res.status_code == 201
    assert res.json()["category_id"] == shopping["id"]

    learned = client.get("/category-learning/", headers=auth_headers).json()
    assert [(item["keyword"], item["category_id"]) for item in learned] == [("loja do ze", shopping["id"])]


def test_transaction_errors(client, auth_headers, goal):
    assert _tx(client, auth_headers, uuid.uuid4()).status_code == 404
    assert _tx(client, auth_headers, goal.id, category_id=str(uuid.uuid4())).status_code == 404
    assert _tx(client, auth_headers, goal.id, amount=0).status_code == 422
    assert _tx(client, auth_headers, goal.id, type="transfer").status_code == 422
    assert _tx(client, auth_headers, goal.id, exchange_rate="abc").status_code == 422
    assert client.delete(f"/transactions/{uuid.uuid4()}", headers=auth_headers).status_code == 404


def test_transaction_update_delete_and_listing(client, auth_headers, goal):
    tx = _tx(client, auth_headers, goal.id).json()
    res = client.put(f"/transactions/{tx['id']}", json={"reason": "Espresso"}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["reason"] == "Espresso"

    by_goal = client.get(f"/transactions/goal/{goal.id}", headers=auth_headers).json()
    assert [t["id"] for t in by_goal] == [tx["id"]]
    assert len(client.get("/transactions/", headers=auth_headers).json()) == 1

    assert client.delete(f"/transactions/{tx['id']}", headers=auth_headers).json() == {"success": True}
    assert client.get("/transactions/", headers=auth_headers).json() == []


def test_active_goal_recomputes_from_ledger(client, auth_headers, goal, db_session):
    _tx(client, auth_headers, goal.id, type="income", amount=4000, reason="Salary")
    # Drift the stored value; reading the active goal recomputes it
    goal.current_amount = 1
    db_session.commit()
    body = client.get("/goals/active", headers=auth_headers).json()
    assert body["id"] == str(goal.id)
    assert body["current_amount"] == 4000


def test_active_goal_includes_live_wise_balance(client, auth_headers, goal, user, db_session, fake_wise):
    settings_repo.create_settings(db_session, user_id=user.id, values={"currency": "USD", "wise_api_token": "tok"})
    fake_wise.balances = [
        {"currency": "EUR", "amount": {"value": 10.0, "currency": "EUR"}},
        {"currency": "USD", "amount": {"value": 5.5, "currency": "USD"}},
    ]
    _tx(client, auth_headers, goal.id, type="income", amount=1000, reason="Salary")
    body = client.get("/goals/active", headers=auth_headers).json()
    # 10 EUR -> 20 USD, plus 5.50 USD, plus the 10.00 ledger income
    assert body["current_amount"] == 2000 + 550 + 1000
    assert fake_wise.tokens_seen == ["tok"]


def test_active_goal_counts_wise_failure_as_zero(client, auth_headers, goal, user, db_session, fake_wise):
    from moneygoal.services.wise_client import WiseAPIError

    settings_repo.create_settings(db_session, user_id=user.id, values={"currency": "USD", "wise_api_token": "tok"})
    fake_wise.balances = [{"currency": "USD", "amount": {"value": 5.5, "currency": "USD"}}]
    fake_wise.error = WiseAPIError(503, "Service unavailable")
    _tx(client, auth_headers, goal.id, type="income", amount=1000, reason="Salary")

    res = client.get("/goals/active", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["current_amount"] == 1000
