def test_index(client):
    response = client.get("/api/v1/")

    assert response.status_code == 200
    assert response.json() == {"status": "API is running"}


def test_ready_once_roles_are_seeded(client, roles):
    response = client.get("/api/v1/readiness")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "online", "default_role": "collector"}


def test_not_ready_without_default_role(client):
    response = client.get("/api/v1/readiness")

    assert response.status_code == 503
    assert response.json()["success"] is False
    assert response.json()["message"] == "Default role 'collector' is not seeded. Run seed.py."
