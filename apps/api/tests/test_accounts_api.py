from __future__ import annotations

from collections.abc import Generator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import SessionUser, get_current_user
from app.core.database import Base, get_db
from app.crm.models import CRMActivity, CRMContact, CRMDeal, CRMNote, CRMStage, CRMUser
from app.main import app


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_user() -> SessionUser:
        return SessionUser(id=1, email="admin@localcrm.test", name="Alex Admin")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_account(client: TestClient, name: str, **fields: str) -> dict:
    response = client.post("/api/accounts", json={"name": name, **fields})
    assert response.status_code == 201
    return response.json()["data"]


def test_create_account_success(client: TestClient) -> None:
    response = client.post(
        "/api/accounts",
        json={"name": "Acme", "industry": "Manufacturing", "website": "https://acme.example"},
    )

    assert response.status_code == 201
    body = response.json()["data"]
    assert isinstance(body["id"], int)
    assert body["name"] == "Acme"
    assert body["industry"] == "Manufacturing"
    assert body["phone"] is None
    assert datetime.fromisoformat(body["created_at"])
    assert datetime.fromisoformat(body["updated_at"])


def test_create_account_missing_name(client: TestClient) -> None:
    response = client.post("/api/accounts", json={"industry": "Retail"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation error"
    assert "name" in body["details"]


def test_create_account_empty_name_writes_nothing(client: TestClient) -> None:
    response = client.post("/api/accounts", json={"name": ""})

    assert response.status_code == 400
    assert client.get("/api/accounts").json()["data"] == []


def test_list_accounts_sorted_by_name_with_search(client: TestClient) -> None:
    _create_account(client, "Zeta Works")
    _create_account(client, "Atlas Manufacturing")
    _create_account(client, "Summit Labs")

    listed = client.get("/api/accounts").json()["data"]
    assert [item["name"] for item in listed] == ["Atlas Manufacturing", "Summit Labs", "Zeta Works"]

    searched = client.get("/api/accounts", params={"search": "lab"}).json()["data"]
    assert [item["name"] for item in searched] == ["Summit Labs"]


def test_get_account_not_found(client: TestClient) -> None:
    response = client.get("/api/accounts/999")

    assert response.status_code == 404
    assert response.json() == {"error": "Account not found"}


def test_update_account_replaces_all_fields(client: TestClient) -> None:
    created = _create_account(client, "Acme", industry="Retail", phone="555-0100")

    response = client.put(f"/api/accounts/{created['id']}", json={"name": "Acme Corp"})

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["name"] == "Acme Corp"
    assert body["industry"] is None
    assert body["phone"] is None
    assert datetime.fromisoformat(body["updated_at"]) >= datetime.fromisoformat(created["updated_at"])


def test_update_missing_account_returns_not_found(client: TestClient) -> None:
    response = client.put("/api/accounts/4242", json={"name": "Ghost"})

    assert response.status_code == 404
    assert response.json()["error"] == "Account not found"


def test_delete_account_is_unconditional(client: TestClient) -> None:
    created = _create_account(client, "Acme")

    first = client.delete(f"/api/accounts/{created['id']}")
    second = client.delete(f"/api/accounts/{created['id']}")

    assert first.status_code == 200
    assert first.json() == {"data": {"success": True}}
    assert second.json() == {"data": {"success": True}}
    assert client.get(f"/api/accounts/{created['id']}").status_code == 404


def test_delete_account_cascades_through_deals(client: TestClient, db_session: Session) -> None:
    user = CRMUser(email="owner@localcrm.test", password_hash="x", name="Owner")
    stage = CRMStage(name="Lead", order_index=1)
    db_session.add_all([user, stage])
    db_session.commit()

    account = _create_account(client, "Acme")
    contact = client.post(
        "/api/contacts",
        json={"account_id": account["id"], "first_name": "Jamie", "last_name": "Ng"},
    )
    assert contact.status_code == 201
    deal = client.post(
        "/api/deals",
        json={
            "account_id": account["id"],
            "title": "Acme Rollout",
            "amount": 1000,
            "stage_id": stage.id,
            "owner_user_id": user.id,
        },
    )
    assert deal.status_code == 201
    deal_id = deal.json()["data"]["id"]
    activity = client.post(
        "/api/activities",
        json={"deal_id": deal_id, "type": "call", "subject": "Kickoff", "assigned_user_id": user.id},
    )
    assert activity.status_code == 201
    note = client.post("/api/notes", json={"deal_id": deal_id, "author_user_id": user.id, "body": "Signed NDA"})
    assert note.status_code == 201

    assert client.delete(f"/api/accounts/{account['id']}").status_code == 200

    db_session.expire_all()
    for model in (CRMContact, CRMDeal, CRMActivity, CRMNote):
        assert db_session.scalar(select(func.count()).select_from(model)) == 0


def test_invalid_path_id_is_a_validation_error(client: TestClient) -> None:
    response = client.get("/api/accounts/not-a-number")

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
