import pytest
from fastapi.testclient import TestClient

from config.settings import settings
from core.entities.user import Role
from core.use_cases.user_use_cases import register_user, signup_client
from infrastructure.db.client_repository import SQLiteClientRepository
from infrastructure.db.sqlite import SQLiteUserRepository, connect, init_db
from infrastructure.payments.stub_provider import StubPaymentProvider
from infrastructure.web.dependencies import get_payment_provider, token_for
from main import app

PASSWORD = "secret123"
STAFF_ROLES = (Role.ADMIN, Role.FINANCEIRO, Role.OPERACIONAL, Role.VENDAS)


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "transport.db")
    monkeypatch.setattr(settings, "DB_PATH", path)
    init_db(path)
    return path


@pytest.fixture()
def db(db_path):
    conn = connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture()
def seed(db):
    """One organization with a user per staff role, plus a portal customer."""
    users = SQLiteUserRepository(db)
    org = users.create_organization("Viação Teste", "viacao-teste")
    headers = {}
    accounts = {}
    for role in STAFF_ROLES:
        user = register_user(users, email=f"{role.value}@example.com", password=PASSWORD,
                             role=role.value, organization_id=org.id, name=role.value.title())
        accounts[role.value] = user
        headers[role.value] = auth(token_for(user))

    customer = signup_client(users, SQLiteClientRepository(db), name="Ana Souza", username="ana.souza",
                             email="ana@example.com", password=PASSWORD, document="12345678900",
                             organization_id=org.id)
    customer_user = users.get_by_id(customer.user_id)
    headers["client"] = auth(token_for(customer_user))
    return {"org": org, "users": accounts, "headers": headers, "customer": customer}


@pytest.fixture()
def api(db_path):
    app.dependency_overrides[get_payment_provider] = lambda: StubPaymentProvider()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_vehicle(api, seed):
    def _make(**overrides):
        body = {"plate": "abc1d23", "model": "Marcopolo G7", "type": "ONIBUS", "passenger_capacity": 44}
        body.update(overrides)
        resp = api.post("/api/fleet/vehicles", json=body, headers=seed["headers"]["admin"])
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


@pytest.fixture()
def make_trip(api, seed):
    def _make(**overrides):
        body = {
            "origin_city": "São Paulo",
            "destination_city": "Rio de Janeiro",
            "departure_date": "2030-01-15",
            "departure_time": "22:00",
            "seats_available": 40,
            "price_conventional": "50.00",
            "price_executive": "80.00",
            "price_sleeper": "150.00",
        }
        body.update(overrides)
        resp = api.post("/api/trips", json=body, headers=seed["headers"]["admin"])
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make
