import uuid
from datetime import timedelta

from moneygoal.db import models
from moneygoal.utils.dates import now_utc, start_of_day


def _category_id(client, headers, name):
    return next(c["id"] for c in client.get("/categories/", headers=headers).json() if c["name"] == name)


def test_budget_create_and_duplicate(client, auth_headers):
    food = _category_id(client, auth_headers, "Food")
    res = client.post("/budgets/", json={"category_id": food, "period": "monthly", "limit_amount": 40000}, headers=auth_headers)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["alert_threshold"] == 75
    assert body["current_spent"] == 0
    assert body["category"]["name"] == "Food"

    dup = client.post("/budgets/", json={"category_id": food, "period": "monthly", "limit_amount": 100}, headers=auth_headers)
    assert dup.status_code == 409

    # A different period for the same category is allowed
    weekly = client.post("/budgets/", json={"category_id": food, "period": "weekly", "limit_amount": 100}, headers=auth_headers)
    assert weekly.status_code == 201


def test_budget_unknown_category(client, auth_headers):
    res = client.post(
        "/budgets/",
        json={"category_id": str(uuid.uuid4()), "period": "monthly", "limit_amount": 100},
        headers=auth_headers,
    )
    assert res.status_code == 404


def test_budget_status_levels(client, auth_headers, goal):
    food = _category_id(client, auth_headers, "Food")
    client.post("/budgets/", json={"category_id": food, "period": "monthly", "limit_amount": 10000}, headers=auth_headers)

    def status():
        items = client.get("/budgets/status", headers=auth_headers).json()
        assert len(items) == 1
        return items[0]

    assert status()["status"] == "ok"
    assert status()["message"] is None

    client.post(
        "/transactions/",
        json={"goal_id": str(goal.id), "type": "expense", "amount": 8000, "reason": "Groceries", "category_id": food},
        headers=auth_headers,
    )
    item = status()
    assert (item["spent"], item["percentage"], item["status"]) == (8000, 80, "warning")

    client.post(
        "/transactions/",
        json={"goal_id": str(goal.id), "type": "expense", "amount": 2500, "reason": "Pizza", "category_id": food},
        headers=auth_headers,
    )
    item = status()
    assert (item["percentage"], item["status"]) == (105, "critical")
    assert "exceeded" in item["message"]
    assert client.get("/budgets/", headers=auth_headers).json()[0]["current_spent"] == 10500


def test_budget_update_and_delete(client, auth_headers):
    food = _category_id(client, auth_headers, "Food")
    budget = client.post("/budgets/", json={"category_id": food, "period": "yearly", "limit_amount": 500}, headers=auth_headers).json()
    res = client.put(f"/budgets/{budget['id']}", json={"limit_amount": 900, "alert_threshold": 50}, headers=auth_headers)
    assert res.status_code == 200
    assert (res.json()["limit_amount"], res.json()["alert_threshold"]) == (900, 50)
    assert client.delete(f"/budgets/{budget['id']}", headers=auth_headers).json() == {"success": True}
    assert client.delete(f"/budgets/{budget['id']}", headers=auth_headers).status_code == 404


def _bill(client, headers, **overrides):
    payload = {"name": "Internet", "amount": 9990, "due_day": now_utc().day}
    payload.update(overrides)
    return client.post("/bills/", json=payload, headers=headers)


def test_bill_creation_sets_due_date(client, auth_headers):
    res = _bill(client, auth_headers)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["status"] == "pending"
    assert body["frequency"] == "monthly"
    assert body["currency"] == "USD"
    assert body["next_due_date"].startswith(start_of_day(now_utc()).strftime("%Y-%m-%d"))

    assert _bill(client, auth_headers, due_day=32).status_code == 422


def test_upcoming_bills_and_overdue(client, auth_headers, db_session):
    due_today = _bill(client, auth_headers).json()
    late = _bill(client, auth_headers, name="Water").json()
    far = _bill(client, auth_headers, name="Insurance").json()

    row = db_session.get(models.BillReminder, uuid.UUID(late["id"]))
    row.next_due_date = start_of_day(now_utc()) - timedelta(days=2)
    far_row = db_session.get(models.BillReminder, uuid.UUID(far["id"]))
    far_row.next_due_date = start_of_day(now_utc()) + timedelta(days=20)
    db_session.commit()

    items = client.get("/bills/upcoming", headers=auth_headers).json()
    by_id = {item["id"]: item for item in items}
    assert set(by_id) == {due_today["id"], late["id"]}
    assert by_id[due_today["id"]]["days_until_due"] == 0
    assert by_id[due_today["id"]]["should_remind"] is True
    assert by_id[late["id"]]["status"] == "overdue"

    wider = client.get("/bills/upcoming?days_ahead=30", headers=auth_headers).json()
    assert far["id"] in {item["id"] for item in wider}


def test_pay_bill_books_expense_and_rolls_over(client, auth_headers, goal, db_session):
    goal.current_amount = 50000
    db_session.commit()
    bill = _bill(client, auth_headers).json()

    res = client.post(f"/bills/{bill['id']}/pay", headers=auth_headers)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    assert body["transaction_id"] is not None
    assert body["next_due_date"][:10] > bill["next_due_date"][:10]

    tx = db_session.get(models.Transaction, uuid.UUID(body["transaction_id"]))
    assert (tx.reason, tx.amount, tx.source) == ("Bill: Internet", 9990, "bill")
    db_session.refresh(goal)
    assert goal.current_amount == 50000 - 9990

    refreshed = next(b for b in client.get("/bills/", headers=auth_headers).json() if b["id"] == bill["id"])
    assert refreshed["status"] == "pending"
    assert refreshed["last_paid_date"] is not None


def test_pay_bill_without_transaction(client, auth_headers, goal):
    bill = _bill(client, auth_headers).json()
    res = client.post(f"/bills/{bill['id']}/pay", json={"create_transaction": False}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["transaction_id"] is None
    assert client.get("/transactions/", headers=auth_headers).json() == []


def test_bill_update_recomputes_due_date_and_delete(client, auth_headers):
    bill = _bill(client, auth_headers, due_day=1).json()
    res = client.put(f"/bills/{bill['id']}", json={"name": "Fiber"}, headers=auth_headers)
    assert res.json()["name"] == "Fiber"
    assert client.delete(f"/bills/{bill['id']}", headers=auth_headers).json() == {"success": True}
    assert client.post(f"/bills/{bill['id']}/pay", headers=auth_headers).status_code == 404
