from decimal import Decimal


def _payment(client, auth, supplier, **overrides):
    payload = {
        "supplier_id": supplier["id"],
        "payment_date": "2025-06-20",
        "amount": "5000.00",
        "type": "advance",
    }
    payload.update(overrides)
    return client.post("/api/v1/payments/", headers=auth, json=payload)


def test_create_payment(client, auth, admin, supplier):
    response = _payment(client, auth, supplier, reference_number="PAY-001", payment_method="cash")

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Payment created successfully"
    data = body["data"]
    assert Decimal(data["amount"]) == Decimal("5000.00")
    assert data["type"] == "advance"
    assert data["user_id"] == str(admin.id)
    assert data["supplier"]["code"] == "SUP001"
    assert data["version"] == 1


def test_amount_must_be_positive(client, auth, supplier):
    response = _payment(client, auth, supplier, amount="-10")

    assert response.status_code == 422
    assert "amount" in response.json()["errors"]


def test_unknown_type_is_rejected(client, auth, supplier):
    response = _payment(client, auth, supplier, type="bonus")

    assert response.status_code == 422
    assert "type" in response.json()["errors"]


def test_duplicate_reference_number(client, auth, supplier):
    _payment(client, auth, supplier, reference_number="PAY-001")

    response = _payment(client, auth, supplier, reference_number="PAY-001")

    assert response.status_code == 409
    assert response.json()["message"] == "The reference number has already been taken."


def test_payments_without_reference_do_not_collide(client, auth, supplier):
    first = _payment(client, auth, supplier)
    second = _payment(client, auth, supplier)

    assert first.status_code == 201
    assert second.status_code == 201


def test_unknown_supplier_is_rejected(client, auth, supplier):
    response = _payment(client, auth, {"id": "00000000-0000-0000-0000-000000000000"})

    assert response.status_code == 422
    assert response.json()["message"] == "The selected supplier is invalid."


def test_update_payment(client, auth, supplier):
    payment = _payment(client, auth, supplier).json()["data"]

    response = client.put(f"/api/v1/payments/{payment['id']}", headers=auth, json={
        "amount": "4500",
        "type": "partial",
        "version": 1,
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert Decimal(data["amount"]) == Decimal("4500.00")
    assert data["type"] == "partial"
    assert data["version"] == 2


def test_update_to_taken_reference_number(client, auth, supplier):
    _payment(client, auth, supplier, reference_number="PAY-001")
    other = _payment(client, auth, supplier, reference_number="PAY-002").json()["data"]

    response = client.put(f"/api/v1/payments/{other['id']}", headers=auth, json={
        "reference_number": "PAY-001",
        "version": 1,
    })

    assert response.status_code == 409


def test_list_filters(client, auth, supplier):
    _payment(client, auth, supplier, type="advance", payment_date="2025-05-01")
    _payment(client, auth, supplier, type="partial", payment_date="2025-06-01")
    _payment(client, auth, supplier, type="partial", payment_date="2025-07-01")

    partial = client.get("/api/v1/payments/?type=partial", headers=auth).json()["data"]
    june = client.get(
        "/api/v1/payments/?start_date=2025-06-01&end_date=2025-06-30", headers=auth
    ).json()["data"]

    assert partial["total"] == 2
    assert partial["items"][0]["payment_date"] == "2025-07-01"
    assert june["total"] == 1


def test_delete_payment(client, auth, supplier):
    payment = _payment(client, auth, supplier).json()["data"]

    deleted = client.delete(f"/api/v1/payments/{payment['id']}", headers=auth)
    fetched = client.get(f"/api/v1/payments/{payment['id']}", headers=auth)

    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Payment deleted successfully"
    assert fetched.status_code == 404


def test_collector_cannot_see_payments(client, auth_as, supplier):
    response = client.get("/api/v1/payments/", headers=auth_as("collector"))

    assert response.status_code == 403
