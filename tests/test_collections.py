from decimal import Decimal


def test_collection_is_priced_from_resolved_rate(client, auth, admin, rate, collection):
    assert collection["rate_id"] == rate["id"]
    assert Decimal(collection["quantity"]) == Decimal("50.5")
    assert Decimal(collection["rate_applied"]) == Decimal("250.00")
    assert Decimal(collection["total_amount"]) == Decimal("12625.00")
    assert collection["user_id"] == str(admin.id)
    assert collection["version"] == 1


def test_collection_includes_related_summaries(client, auth, supplier, product, collection):
    data = client.get(f"/api/v1/collections/{collection['id']}", headers=auth).json()["data"]

    assert data["supplier"]["code"] == supplier["code"]
    assert data["product"]["code"] == product["code"]
    assert data["user"]["email"] == "admin@example.com"


def test_total_is_rounded_half_up(client, auth, supplier, product):
    client.post("/api/v1/rates/", headers=auth, json={
        "product_id": product["id"], "rate": "0.15", "unit": "g",
        "effective_from": "2025-01-01",
    })

    response = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"],
        "product_id": product["id"],
        "collection_date": "2025-02-01",
        "quantity": "0.1",
        "unit": "g",
    })

    # 0.1 * 0.15 = 0.015
    assert Decimal(response.json()["data"]["total_amount"]) == Decimal("0.02")


def test_no_rate_for_date_is_rejected(client, auth, supplier, product, rate):
    response = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"],
        "product_id": product["id"],
        "collection_date": "2024-06-15",
        "quantity": "10",
        "unit": "kg",
    })

    assert response.status_code == 422
    assert response.json()["message"] == "No valid rate found for the specified date and unit"


def test_no_rate_for_unit_is_rejected(client, auth, supplier, product, rate):
    response = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"],
        "product_id": product["id"],
        "collection_date": "2025-06-15",
        "quantity": "10",
        "unit": "g",
    })

    assert response.status_code == 422


def test_quantity_must_be_positive(client, auth, supplier, product, rate):
    response = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"],
        "product_id": product["id"],
        "collection_date": "2025-06-15",
        "quantity": "0",
        "unit": "kg",
    })

    assert response.status_code == 422
    assert "quantity" in response.json()["errors"]


def test_deleted_supplier_cannot_receive_collections(client, auth, supplier, product, rate):
    client.delete(f"/api/v1/suppliers/{supplier['id']}", headers=auth)

    response = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"],
        "product_id": product["id"],
        "collection_date": "2025-06-15",
        "quantity": "10",
        "unit": "kg",
    })

    assert response.status_code == 422
    assert response.json()["message"] == "The selected supplier is invalid."


def test_closed_rate_still_prices_dates_in_its_window(client, auth, supplier, product, rate):
    client.post("/api/v1/rates/", headers=auth, json={
        "product_id": product["id"], "rate": "300.00", "unit": "kg",
        "effective_from": "2025-07-01",
    })

    june = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"], "product_id": product["id"],
        "collection_date": "2025-06-30", "quantity": "2", "unit": "kg",
    }).json()["data"]
    july = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"], "product_id": product["id"],
        "collection_date": "2025-07-01", "quantity": "2", "unit": "kg",
    }).json()["data"]

    assert Decimal(june["total_amount"]) == Decimal("500.00")
    assert Decimal(july["total_amount"]) == Decimal("600.00")


def test_quantity_update_reprices_with_applied_rate(client, auth, collection):
    response = client.put(f"/api/v1/collections/{collection['id']}", headers=auth, json={
        "quantity": "10",
        "version": 1,
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert Decimal(data["total_amount"]) == Decimal("2500.00")
    assert data["version"] == 2


def test_date_update_resolves_new_rate(client, auth, product, collection):
    newer = client.post("/api/v1/rates/", headers=auth, json={
        "product_id": product["id"], "rate": "300.00", "unit": "kg",
        "effective_from": "2025-07-01",
    }).json()["data"]

    response = client.put(f"/api/v1/collections/{collection['id']}", headers=auth, json={
        "collection_date": "2025-08-01",
        "version": 1,
    })

    data = response.json()["data"]
    assert data["rate_id"] == newer["id"]
    assert Decimal(data["rate_applied"]) == Decimal("300.00")
    assert Decimal(data["total_amount"]) == Decimal("15150.00")


def test_update_to_date_without_rate_is_rejected_and_keeps_version(client, auth, collection):
    response = client.put(f"/api/v1/collections/{collection['id']}", headers=auth, json={
        "collection_date": "2024-01-01",
        "version": 1,
    })

    assert response.status_code == 422
    stored = client.get(f"/api/v1/collections/{collection['id']}", headers=auth).json()["data"]
    assert stored["version"] == 1
    assert stored["collection_date"] == "2025-06-15"


def test_calculate_preview(client, auth, product, rate):
    response = client.get(
        f"/api/v1/collections/calculate?product_id={product['id']}&unit=kg"
        f"&quantity=12.5&date=2025-03-01",
        headers=auth,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["rate_id"] == rate["id"]
    assert Decimal(data["total_amount"]) == Decimal("3125.00")


def test_calculate_without_rate(client, auth, product):
    response = client.get(
        f"/api/v1/collections/calculate?product_id={product['id']}&unit=kg&quantity=1",
        headers=auth,
    )

    assert response.status_code == 422


def test_list_filters(client, auth, supplier, product, rate, collection):
    client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"], "product_id": product["id"],
        "collection_date": "2025-03-01", "quantity": "1", "unit": "kg",
    })

    everything = client.get("/api/v1/collections/", headers=auth).json()["data"]
    june = client.get(
        "/api/v1/collections/?start_date=2025-06-01&end_date=2025-06-30", headers=auth
    ).json()["data"]
    by_supplier = client.get(
        f"/api/v1/collections/?supplier_id={supplier['id']}", headers=auth).json()["data"]

    assert everything["total"] == 2
    # Default order is newest collection date first
    assert everything["items"][0]["collection_date"] == "2025-06-15"
    assert [c["id"] for c in june["items"]] == [collection["id"]]
    assert by_supplier["total"] == 2


def test_collector_can_record_but_not_delete(client, auth_as, supplier, product, rate, collection):
    headers = auth_as("collector")

    created = client.post("/api/v1/collections/", headers=headers, json={
        "supplier_id": supplier["id"], "product_id": product["id"],
        "collection_date": "2025-06-16", "quantity": "3", "unit": "kg",
    })
    deleted = client.delete(f"/api/v1/collections/{collection['id']}", headers=headers)

    assert created.status_code == 201
    assert deleted.status_code == 403
