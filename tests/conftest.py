import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ledger.core.permissions import DEFAULT_ROLES
from ledger.db.core import get_session
from ledger.db.schema import Role, User
from ledger.main import app
from ledger.services.password import get_password_hash


PASSWORD = "secret-password"


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="roles")
def roles_fixture(session):
    roles = {}
    for name, definition in DEFAULT_ROLES.items():
        role = Role(
            name=name,
            display_name=definition["display_name"],
            description=definition["description"],
            permissions=list(definition["permissions"]),
        )
        session.add(role)
        roles[name] = role
    session.commit()
    for role in roles.values():
        session.refresh(role)
    return roles


def make_user(session: Session, role: Role, email: str, name: str = "Test User", is_active: bool = True) -> User:
    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        role_id=role.id,
        is_active=is_active,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="admin")
def admin_fixture(session, roles):
    return make_user(session, roles["admin"], "admin@example.com", "Admin")


@pytest.fixture(name="client")
def client_fixture(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def login(client: TestClient, email: str, password: str = PASSWORD) -> str:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["access_token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="auth")
def auth_fixture(client, admin):
    """Authorization headers of the admin user."""
    return bearer(login(client, admin.email))


@pytest.fixture(name="auth_as")
def auth_as_fixture(client, session, roles):
    """Builds headers for a fresh user holding the given role."""
    def _auth_as(role_name: str) -> dict:
        user = make_user(session, roles[role_name], f"{role_name}@example.com", role_name.title())
        return bearer(login(client, user.email))

    return _auth_as


# --- Factories going through the API ---

@pytest.fixture(name="supplier")
def supplier_fixture(client, auth):
    response = client.post("/api/v1/suppliers/", headers=auth, json={
        "name": "Green Valley Estate",
        "code": "SUP001",
        "region": "Central",
        "phone": "0771234567",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture(name="product")
def product_fixture(client, auth):
    response = client.post("/api/v1/products/", headers=auth, json={
        "name": "Tea Leaves",
        "code": "TEA001",
        "base_unit": "kg",
        "supported_units": ["g"],
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture(name="rate")
def rate_fixture(client, auth, product):
    response = client.post("/api/v1/rates/", headers=auth, json={
        "product_id": product["id"],
        "rate": "250.00",
        "unit": "kg",
        "effective_from": "2025-01-01",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture(name="collection")
def collection_fixture(client, auth, supplier, product, rate):
    response = client.post("/api/v1/collections/", headers=auth, json={
        "supplier_id": supplier["id"],
        "product_id": product["id"],
        "collection_date": "2025-06-15",
        "quantity": "50.5",
        "unit": "kg",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]
