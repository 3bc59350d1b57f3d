import uuid


def test_settings_lifecycle(client, auth_headers):
    assert client.get("/settings/", headers=auth_headers).json() is None

    res = client.post("/settings/", json={"currency": "brl", "language": "pt"}, headers=auth_headers)
    assert res.status_code == 201, res.text
    body = res.json()
    assert (body["currency"], body["language"], body["theme"], body["number_format"]) == ("BRL", "pt", "dark", "pt-BR")
    assert body["has_wise_token"] is False

    assert client.post("/settings/", json={}, headers=auth_headers).status_code == 409

    res = client.put("/settings/", json={"theme": "light", "wise_api_token": "secret"}, headers=auth_headers)
    body = res.json()
    assert body["theme"] == "light"
    assert body["currency"] == "BRL"
    assert body["has_wise_token"] is True
    assert "wise_api_token" not in body

    # An explicit null clears the stored secret
    body = client.put("/settings/", json={"wise_api_token": None}, headers=auth_headers).json()
    assert body["has_wise_token"] is False


def test_settings_put_creates_defaults(client, auth_headers):
    body = client.put("/settings/", json={"monthly_saving_target": 50000}, headers=auth_headers).json()
    assert body["monthly_saving_target"] == 50000
    assert body["currency"] == "USD"


def test_settings_validation(client, auth_headers):
    assert client.put("/settings/", json={"theme": "neon"}, headers=auth_headers).status_code == 422
    assert client.put("/settings/", json={"monthly_saving_target": -1}, headers=auth_headers).status_code == 422


def _category(client, headers, name="Housing"):
    return next(c for c in client.get("/categories/", headers=headers).json() if c["name"] == name)


def test_recurring_crud(client, auth_headers):
    housing = _category(client, auth_headers)
    res = client.post(
        "/recurring-expenses/",
        json={"category_id": housing["id"], "name": "Rent", "amount": 150000, "frequency": "monthly", "day_of_month": 5},
        headers=auth_headers,
    )
    assert res.status_code == 201, res.text
    expense = res.json()
    assert expense["currency"] == "USD"
    assert expense["is_active"] is True

    res = client.put(f"/recurring-expenses/{expense['id']}", json={"is_active": False}, headers=auth_headers)
    assert res.json()["is_active"] is False
    assert [e["id"] for e in client.get("/recurring-expenses/", headers=auth_headers).json()] == [expense["id"]]

    assert client.delete(f"/recurring-expenses/{expense['id']}", headers=auth_headers).json() == {"success": True}
    assert client.put(f"/recurring-expenses/{expense['id']}", json={"amount": 1}, headers=auth_headers).status_code == 404


def test_recurring_rejects_foreign_category(client, auth_headers):
    res = client.post(
        "/recurring-expenses/",
        json={"category_id": str(uuid.uuid4()), "name": "Rent", "amount": 1, "frequency": "monthly"},
        headers=auth_headers,
    )
    assert res.status_code == 404
    res = client.post(
        "/recurring-expenses/",
        json={"category_id": str(uuid.uuid4()), "name": "Rent", "amount": 1, "frequency": "hourly"},
        headers=auth_headers,
    )
    assert res.status_code == 422


def test_categories_seed_and_crud(client, auth_headers):
    categories = client.get("/categories/", headers=auth_headers).json()
    assert len(categories) == 10
    assert all(c["is_default"] for c in categories)

    res = client.post(
        "/categories/",
        json={"name": "Pets", "emoji": "🐶", "color": "#aabbcc", "keywords": [" Vet ", "petshop", "vet"]},
        headers=auth_headers,
    )
    assert res.status_code == 201, res.text
    pets = res.json()
    assert pets["keywords"] == ["vet", "petshop"]
    assert pets["is_default"] is False

    assert client.post(
        "/categories/", json={"name": "Bad", "emoji": "x", "color": "red"}, headers=auth_headers
    ).status_code == 422

    res = client.post("/categories/suggest", json={"description": "Vet appointment"}, headers=auth_headers)
    assert res.json()["category_id"] == pets["id"]

    res = client.put(f"/categories/{pets['id']}", json={"color": "#000000"}, headers=auth_headers)
    assert res.json()["color"] == "#000000"
    assert client.get(f"/categories/{pets['id']}", headers=auth_headers).json()["name"] == "Pets"
    assert client.delete(f"/categories/{pets['id']}", headers=auth_headers).json() == {"success": True}
    assert client.get(f"/categories/{pets['id']}", headers=auth_headers).status_code == 404


def test_category_learning_flow(client, auth_headers):
    assert client.post("/category-learning/suggestions", json={"description": "x"}, headers=auth_headers).status_code == 404

    food = _category(client, auth_headers, "Food")
    learned = client.post(
        "/category-learning/learn", json={"pattern": "Padaria", "category_id": food["id"]}, headers=auth_headers
    ).json()
    assert (learned["keyword"], learned["confidence"], learned["usage_count"]) == ("padaria", 0.5, 1)
    again = client.post(
        "/category-learning/learn", json={"pattern": "padaria", "category_id": food["id"]}, headers=auth_headers
    ).json()
    assert again["usage_count"] == 2
    assert again["confidence"] > 0.5

    suggestions = client.post(
        "/category-learning/suggestions", json={"description": "Padaria Pao Quente"}, headers=auth_headers
    ).json()
    assert suggestions[0]["category_id"] == food["id"]
    assert suggestions[0]["reason"]

    assert client.post("/category-learning/reset", headers=auth_headers).json() == {"success": True, "deleted_count": 1}
    assert client.get("/category-learning/", headers=auth_headers).json() == []
    assert client.delete(f"/category-learning/{learned['id']}", headers=auth_headers).status_code == 404


def test_currency_endpoints(client, auth_headers):
    res = client.get("/currency/rates?base=usd", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["base"] == "USD"
    assert res.json()["rates"]["BRL"] == 5.0

    res = client.get("/currency/convert", params={"amount": 1000, "from": "EUR", "to": "BRL"}, headers=auth_headers)
    body = res.json()
    assert body["converted_amount"] == 10000
    assert body["from_currency"] == "EUR"
    assert body["converted"] == "R$100.00"

    assert client.get("/currency/convert", params={"amount": -1, "from": "EUR", "to": "BRL"}, headers=auth_headers).status_code == 422
