import uuid

from moneygoal.db import models
from moneygoal.services.plaid_service import import_plaid_transactions

TXNS = [
    {"transaction_id": "t1", "amount": 12.34, "merchant_name": "Starbucks", "date": "2024-03-01", "iso_currency_code": "usd"},
    {"transaction_id": "t2", "amount": -500.0, "name": "Payroll", "date": "2024-03-02"},
    {"transaction_id": "t3", "amount": 9.99, "name": "Pending thing", "pending": True},
    {"transaction_id": "t4", "amount": 0, "name": "Zero"},
]


def test_import_plaid_transactions(db_session, user, goal):
    assert import_plaid_transactions(db_session, user=user, goal=goal, transactions=TXNS) == 2
    txs = {t.reason: t for t in db_session.query(models.Transaction).filter_by(source="plaid")}
    assert set(txs) == {"Starbucks (Plaid: t1)", "Payroll (Plaid: t2)"}
    starbucks = txs["Starbucks (Plaid: t1)"]
    assert (starbucks.type, starbucks.amount, starbucks.currency) == ("expense", 1234, "USD")
    assert txs["Payroll (Plaid: t2)"].type == "income"
    assert starbucks.created_date.date().isoformat() == "2024-03-01"

    db_session.refresh(goal)
    # The expense lands first against an empty goal and is clamped at zero
    assert goal.current_amount == 50000

    assert import_plaid_transactions(db_session, user=user, goal=goal, transactions=TXNS) == 0


def test_plaid_flow(client, auth_headers, goal, fake_plaid):
    res = client.post("/plaid/link-token", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["link_token"].startswith("link-sandbox-")

    res = client.post(
        "/plaid/exchange",
        json={"public_token": "public-sandbox-1", "institution_name": "Chase"},
        headers=auth_headers,
    )
    assert res.status_code == 201, res.text
    account = res.json()
    assert account["account_ids"] == ["acc-1", "acc-2"]
    assert "plaid_access_token" not in account

    fake_plaid.transactions = TXNS[:2]
    res = client.post("/plaid/sync", json={"account_id": account["id"], "goal_id": str(goal.id)}, headers=auth_headers)
    assert res.json() == {"success": True, "imported_count": 2, "total_transactions": 2}
    assert client.get("/plaid/accounts", headers=auth_headers).json()[0]["last_sync"] is not None

    assert client.delete(f"/plaid/accounts/{account['id']}", headers=auth_headers).json() == {"success": True}
    assert fake_plaid.removed == ["access-sandbox-1"]
    assert client.get("/plaid/accounts", headers=auth_headers).json() == []
    res = client.post("/plaid/sync", json={"account_id": account["id"], "goal_id": str(goal.id)}, headers=auth_headers)
    assert res.status_code == 404


def test_plaid_sync_unknown_account(client, auth_headers, goal):
    res = client.post("/plaid/sync", json={"account_id": str(uuid.uuid4()), "goal_id": str(goal.id)}, headers=auth_headers)
    assert res.status_code == 404


def test_plaid_disabled(client, auth_headers, monkeypatch):
    from moneygoal.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("PLAID_ENABLED", "false")
    refresh_feature_flag_cache()
    assert client.post("/plaid/link-token", headers=auth_headers).status_code == 503
