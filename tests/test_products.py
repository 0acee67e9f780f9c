def test_create_product_adds_base_unit_to_supported_units(client, auth, product):
    assert product["base_unit"] == "kg"
    assert product["supported_units"] == ["kg", "g"]
    assert product["version"] == 1


def test_duplicate_product_code_conflicts(client, auth, product):
    response = client.post("/api/v1/products/", headers=auth, json={
        "name": "Other", "code": product["code"], "base_unit": "kg",
    })

    assert response.status_code == 409


def test_update_product_keeps_base_unit_supported(client, auth, product):
    response = client.put(f"/api/v1/products/{product['id']}", headers=auth, json={
        "base_unit": "lb",
        "supported_units": ["kg"],
        "version": 1,
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["base_unit"] == "lb"
    assert data["supported_units"] == ["lb", "kg"]
    assert data["version"] == 2


def test_search_products(client, auth, product):
    client.post("/api/v1/products/", headers=auth, json={
        "name": "Rubber Latex", "code": "RUB001", "base_unit": "l",
    })

    page = client.get("/api/v1/products/?search=tea", headers=auth).json()["data"]

    assert [p["code"] for p in page["items"]] == ["TEA001"]


def test_current_rate_defaults_to_base_unit(client, auth, product, rate):
    response = client.get(
        f"/api/v1/products/{product['id']}/current-rate?date=2025-03-01", headers=auth)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["unit"] == "kg"
    assert data["as_of"] == "2025-03-01"
    assert data["rate"]["id"] == rate["id"]


def test_current_rate_is_null_before_first_rate(client, auth, product, rate):
    response = client.get(
        f"/api/v1/products/{product['id']}/current-rate?date=2024-12-31", headers=auth)

    assert response.status_code == 200
    assert response.json()["data"]["rate"] is None


def test_rate_history_newest_first(client, auth, product, rate):
    client.post("/api/v1/rates/", headers=auth, json={
        "product_id": product["id"], "rate": "275.00", "unit": "kg",
        "effective_from": "2025-07-01",
    })
    client.post("/api/v1/rates/", headers=auth, json={
        "product_id": product["id"], "rate": "0.30", "unit": "g",
        "effective_from": "2025-01-01",
    })

    all_units = client.get(f"/api/v1/products/{product['id']}/rate-history", headers=auth)
    kg_only = client.get(f"/api/v1/products/{product['id']}/rate-history?unit=kg", headers=auth)

    assert len(all_units.json()["data"]["rates"]) == 3
    kg_rates = kg_only.json()["data"]["rates"]
    assert [r["effective_from"] for r in kg_rates] == ["2025-07-01", "2025-01-01"]


def test_deleted_product_is_hidden(client, auth, product):
    client.delete(f"/api/v1/products/{product['id']}", headers=auth)

    assert client.get(f"/api/v1/products/{product['id']}", headers=auth).status_code == 404
    assert client.get(
        f"/api/v1/products/{product['id']}/rate-history", headers=auth).status_code == 404
