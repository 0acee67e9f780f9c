from sqlmodel import select

from ledger.db.schema import User
from tests.conftest import PASSWORD, bearer, login, make_user


def test_register_assigns_default_role(client, roles):
    response = client.post("/api/v1/auth/register", json={
        "name": "New Collector",
        "email": "new.collector@example.com",
        "password": "long-enough-password",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["email"] == "new.collector@example.com"
    assert data["user"]["role"]["name"] == "collector"


def test_register_duplicate_email_conflicts(client, admin):
    response = client.post("/api/v1/auth/register", json={
        "name": "Someone",
        "email": admin.email,
        "password": "long-enough-password",
    })

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_register_short_password_fails_validation(client, roles):
    response = client.post("/api/v1/auth/register", json={
        "name": "Someone",
        "email": "someone@example.com",
        "password": "short",
    })

    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "Validation failed"
    assert "password" in body["errors"]


def test_register_without_default_role_is_server_error(client):
    response = client.post("/api/v1/auth/register", json={
        "name": "Someone",
        "email": "someone@example.com",
        "password": "long-enough-password",
    })

    assert response.status_code == 500


def test_login_returns_tokens_and_user(client, admin):
    response = client.post("/api/v1/auth/login", json={
        "email": admin.email,
        "password": PASSWORD,
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["expires_in"] > 0
    assert data["user"]["id"] == str(admin.id)


def test_login_wrong_password(client, admin):
    response = client.post("/api/v1/auth/login", json={
        "email": admin.email,
        "password": "not-the-password",
    })

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Incorrect email or password"}


def test_login_inactive_user_forbidden(client, session, roles):
    user = make_user(session, roles["viewer"], "inactive@example.com", is_active=False)

    response = client.post("/api/v1/auth/login", json={
        "email": user.email,
        "password": PASSWORD,
    })

    assert response.status_code == 403


def test_me_includes_permissions(client, auth):
    response = client.get("/api/v1/auth/me", headers=auth)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "admin@example.com"
    assert "suppliers.create" in data["permissions"]
    assert "reports.view" in data["permissions"]


def test_protected_route_requires_token(client):
    response = client.get("/api/v1/suppliers/")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_invalid_token_rejected(client):
    response = client.get("/api/v1/auth/me", headers=bearer("not-a-jwt"))

    assert response.status_code == 401


def test_refresh_issues_new_access_token(client, admin):
    tokens = client.post("/api/v1/auth/login", json={
        "email": admin.email, "password": PASSWORD,
    }).json()["data"]

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

    assert response.status_code == 200
    access = response.json()["data"]["access_token"]
    assert client.get("/api/v1/auth/me", headers=bearer(access)).status_code == 200


def test_refresh_rejects_access_token(client, admin):
    access = login(client, admin.email)

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": access})

    assert response.status_code == 401


def test_refresh_token_cannot_authenticate_requests(client, admin):
    tokens = client.post("/api/v1/auth/login", json={
        "email": admin.email, "password": PASSWORD,
    }).json()["data"]

    response = client.get("/api/v1/auth/me", headers=bearer(tokens["refresh_token"]))

    assert response.status_code == 401


def test_logout_revokes_access_token(client, auth):
    response = client.post("/api/v1/auth/logout", headers=auth)
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    assert client.get("/api/v1/auth/me", headers=auth).status_code == 401


def test_missing_permission_is_forbidden(client, auth_as):
    viewer = auth_as("viewer")

    response = client.post("/api/v1/suppliers/", headers=viewer, json={
        "name": "Not Allowed", "code": "NOPE",
    })

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_deactivated_user_token_stops_working(client, session, auth_as):
    headers = auth_as("collector")
    user = session.exec(select(User).where(User.email == "collector@example.com")).one()
    user.is_active = False
    session.add(user)
    session.commit()

    assert client.get("/api/v1/auth/me", headers=headers).status_code == 403
