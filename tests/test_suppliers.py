from decimal import Decimal


def test_create_supplier_starts_at_version_one(client, auth):
    response = client.post("/api/v1/suppliers/", headers=auth, json={
        "name": "Hill Top",
        "code": "SUP100",
        "email": "hilltop@example.com",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Supplier created successfully"
    assert body["data"]["version"] == 1
    assert body["data"]["is_active"] is True


def test_duplicate_code_conflicts(client, auth, supplier):
    response = client.post("/api/v1/suppliers/", headers=auth, json={
        "name": "Copy", "code": supplier["code"],
    })

    assert response.status_code == 409
    assert response.json()["message"] == "The code has already been taken."


def test_code_of_deleted_supplier_stays_reserved(client, auth, supplier):
    client.delete(f"/api/v1/suppliers/{supplier['id']}", headers=auth)

    response = client.post("/api/v1/suppliers/", headers=auth, json={
        "name": "Copy", "code": supplier["code"],
    })

    assert response.status_code == 409


def test_missing_name_fails_validation(client, auth):
    response = client.post("/api/v1/suppliers/", headers=auth, json={"code": "X1"})

    assert response.status_code == 422
    assert "name" in response.json()["errors"]


def test_get_unknown_supplier_is_404(client, auth):
    response = client.get(
        "/api/v1/suppliers/00000000-0000-0000-0000-000000000000", headers=auth)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Supplier not found."}


def test_list_paginates_and_searches(client, auth):
    for i in range(20):
        client.post("/api/v1/suppliers/", headers=auth, json={
            "name": f"Supplier {i:02d}",
            "code": f"S{i:03d}",
            "region": "North" if i % 2 else "South",
        })

    page = client.get("/api/v1/suppliers/", headers=auth).json()["data"]
    assert page["total"] == 20
    assert page["per_page"] == 15
    assert page["pages"] == 2
    assert len(page["items"]) == 15

    second = client.get("/api/v1/suppliers/?page=2", headers=auth).json()["data"]
    assert len(second["items"]) == 5

    north = client.get("/api/v1/suppliers/?search=North&per_page=100", headers=auth).json()["data"]
    assert north["total"] == 10


def test_per_page_is_capped(client, auth, supplier):
    page = client.get("/api/v1/suppliers/?per_page=500", headers=auth).json()["data"]

    assert page["per_page"] == 100


def test_sorting_by_name_and_unknown_field_fallback(client, auth):
    for name, code in (("Bravo", "B"), ("Alpha", "A"), ("Charlie", "C")):
        client.post("/api/v1/suppliers/", headers=auth, json={"name": name, "code": code})

    asc = client.get("/api/v1/suppliers/?sort_by=name&sort_order=asc", headers=auth).json()["data"]
    assert [s["name"] for s in asc["items"]] == ["Alpha", "Bravo", "Charlie"]

    fallback = client.get("/api/v1/suppliers/?sort_by=password", headers=auth)
    assert fallback.status_code == 200
    assert fallback.json()["data"]["total"] == 3


def test_filter_by_active_flag(client, auth):
    client.post("/api/v1/suppliers/", headers=auth, json={"name": "On", "code": "ON"})
    client.post("/api/v1/suppliers/", headers=auth, json={"name": "Off", "code": "OFF", "is_active": False})

    page = client.get("/api/v1/suppliers/?is_active=false", headers=auth).json()["data"]

    assert [s["code"] for s in page["items"]] == ["OFF"]


def test_update_changes_fields_and_bumps_version(client, auth, supplier):
    response = client.put(f"/api/v1/suppliers/{supplier['id']}", headers=auth, json={
        "name": "Renamed Estate",
        "version": 1,
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Renamed Estate"
    assert data["code"] == supplier["code"]
    assert data["version"] == 2


def test_update_to_taken_code_conflicts(client, auth, supplier):
    other = client.post("/api/v1/suppliers/", headers=auth, json={
        "name": "Other", "code": "SUP999",
    }).json()["data"]

    response = client.put(f"/api/v1/suppliers/{other['id']}", headers=auth, json={
        "code": supplier["code"], "version": 1,
    })

    assert response.status_code == 409
    assert "conflict" not in response.json()


def test_soft_deleted_supplier_disappears(client, auth, supplier):
    response = client.delete(f"/api/v1/suppliers/{supplier['id']}", headers=auth)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == supplier["id"]

    assert client.get(f"/api/v1/suppliers/{supplier['id']}", headers=auth).status_code == 404
    assert client.get("/api/v1/suppliers/", headers=auth).json()["data"]["total"] == 0
    assert client.delete(f"/api/v1/suppliers/{supplier['id']}", headers=auth).status_code == 404


def test_balance_is_collected_minus_paid(client, auth, supplier, collection):
    client.post("/api/v1/payments/", headers=auth, json={
        "supplier_id": supplier["id"],
        "payment_date": "2025-06-20",
        "amount": "5000.00",
        "type": "partial",
    })

    response = client.get(f"/api/v1/suppliers/{supplier['id']}/balance", headers=auth)

    assert response.status_code == 200
    data = response.json()["data"]
    assert Decimal(data["total_collected"]) == Decimal("12625.00")
    assert Decimal(data["total_paid"]) == Decimal("5000.00")
    assert Decimal(data["balance"]) == Decimal("7625.00")
    assert data["supplier"]["code"] == supplier["code"]
    assert data["period"] == {"start_date": None, "end_date": None}


def test_balance_respects_date_range(client, auth, supplier, collection):
    response = client.get(
        f"/api/v1/suppliers/{supplier['id']}/balance?start_date=2025-07-01", headers=auth)

    data = response.json()["data"]
    assert Decimal(data["total_collected"]) == Decimal("0")
    assert data["period"]["start_date"] == "2025-07-01"


def test_supplier_sub_lists(client, auth, supplier, collection):
    collections = client.get(f"/api/v1/suppliers/{supplier['id']}/collections", headers=auth)
    payments = client.get(f"/api/v1/suppliers/{supplier['id']}/payments", headers=auth)

    assert collections.json()["data"]["total"] == 1
    assert collections.json()["data"]["items"][0]["id"] == collection["id"]
    assert payments.json()["data"]["total"] == 0
