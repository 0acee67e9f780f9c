from ledger.core.permissions import PERMISSIONS
from tests.conftest import PASSWORD, login, make_user


# --- Roles ---

def test_list_roles_with_user_counts(client, auth, roles):
    response = client.get("/api/v1/roles/", headers=auth)

    assert response.status_code == 200
    counts = {r["name"]: r["users_count"] for r in response.json()["data"]["items"]}
    assert counts == {"admin": 1, "manager": 0, "collector": 0, "viewer": 0}


def test_list_permission_keys(client, auth):
    response = client.get("/api/v1/roles/permissions", headers=auth)

    assert response.json()["data"] == PERMISSIONS


def test_create_role(client, auth):
    response = client.post("/api/v1/roles/", headers=auth, json={
        "name": "auditor",
        "display_name": "Auditor",
        "permissions": ["reports.view", "audit.view", "reports.view"],
    })

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["permissions"] == ["reports.view", "audit.view"]
    assert data["users_count"] == 0
    assert data["version"] == 1


def test_unknown_permission_is_rejected(client, auth):
    response = client.post("/api/v1/roles/", headers=auth, json={
        "name": "broken",
        "display_name": "Broken",
        "permissions": ["suppliers.view", "rockets.launch"],
    })

    assert response.status_code == 422
    assert response.json()["errors"]["permissions"] == ["Unknown permissions: rockets.launch"]


def test_duplicate_role_name(client, auth, roles):
    response = client.post("/api/v1/roles/", headers=auth, json={
        "name": "manager",
        "display_name": "Another Manager",
    })

    assert response.status_code == 409


def test_update_role_permissions(client, auth, roles):
    viewer = roles["viewer"]
    # The request refreshes this same object
    version = viewer.version

    response = client.put(f"/api/v1/roles/{viewer.id}", headers=auth, json={
        "permissions": ["suppliers.view"],
        "version": version,
    })

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["permissions"] == ["suppliers.view"]
    assert data["version"] == version + 1


def test_role_with_users_cannot_be_deleted(client, auth, roles):
    response = client.delete(f"/api/v1/roles/{roles['admin'].id}", headers=auth)

    assert response.status_code == 422
    assert response.json()["message"] == "Cannot delete role with active users."


def test_delete_unused_role(client, auth, roles):
    response = client.delete(f"/api/v1/roles/{roles['viewer'].id}", headers=auth)

    assert response.status_code == 200
    assert client.get(f"/api/v1/roles/{roles['viewer'].id}", headers=auth).status_code == 404


def test_manager_cannot_manage_roles(client, auth_as):
    response = client.get("/api/v1/roles/", headers=auth_as("manager"))

    assert response.status_code == 403


# --- Users ---

def test_create_user(client, auth, roles):
    response = client.post("/api/v1/users/", headers=auth, json={
        "name": "Field Collector",
        "email": "Collector@Example.com",
        "password": "collector-pass",
        "role_id": str(roles["collector"].id),
    })

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "collector@example.com"
    assert data["role"]["name"] == "collector"
    assert "password" not in data
    assert "hashed_password" not in data

    assert login(client, "collector@example.com", "collector-pass")


def test_create_user_with_taken_email(client, auth, roles, admin):
    response = client.post("/api/v1/users/", headers=auth, json={
        "name": "Copy",
        "email": admin.email,
        "password": "another-pass",
        "role_id": str(roles["viewer"].id),
    })

    assert response.status_code == 409
    assert response.json()["message"] == "A user with this email already exists."


def test_create_user_with_unknown_role(client, auth):
    response = client.post("/api/v1/users/", headers=auth, json={
        "name": "Nobody",
        "email": "nobody@example.com",
        "password": "another-pass",
        "role_id": "00000000-0000-0000-0000-000000000000",
    })

    assert response.status_code == 422
    assert response.json()["message"] == "The selected role is invalid."


def test_password_change(client, auth, session, roles):
    user = make_user(session, roles["viewer"], "viewer@example.com")

    response = client.put(f"/api/v1/users/{user.id}", headers=auth, json={
        "password": "brand-new-password",
        "version": 1,
    })

    assert response.status_code == 200
    assert response.json()["data"]["version"] == 2
    old = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert old.status_code == 401
    assert login(client, user.email, "brand-new-password")


def test_user_list_filters_by_role(client, auth, session, roles):
    make_user(session, roles["viewer"], "viewer@example.com")
    make_user(session, roles["viewer"], "viewer2@example.com", is_active=False)

    by_role = client.get(f"/api/v1/users/?role_id={roles['viewer'].id}", headers=auth)
    active = client.get(
        f"/api/v1/users/?role_id={roles['viewer'].id}&is_active=true", headers=auth)

    assert by_role.json()["data"]["total"] == 2
    assert active.json()["data"]["total"] == 1


def test_cannot_delete_own_account(client, auth, admin):
    response = client.delete(f"/api/v1/users/{admin.id}", headers=auth)

    assert response.status_code == 422
    assert response.json()["message"] == "You cannot delete your own account."


def test_delete_user(client, auth, session, roles):
    user = make_user(session, roles["viewer"], "viewer@example.com")

    response = client.delete(f"/api/v1/users/{user.id}", headers=auth)

    assert response.status_code == 200
    assert client.get(f"/api/v1/users/{user.id}", headers=auth).status_code == 404
    # Deleted users no longer count against their role
    roles_page = client.get("/api/v1/roles/", headers=auth).json()["data"]
    counts = {r["name"]: r["users_count"] for r in roles_page["items"]}
    assert counts["viewer"] == 0
