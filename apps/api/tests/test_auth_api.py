from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import decode_session_token, issue_session_token
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.core.passwords import hash_password, verify_password
from app.crm.models import CRMUser
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

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def admin(db_session: Session) -> CRMUser:
    user = CRMUser(email="admin@localcrm.test", password_hash=hash_password("admin123", iterations=1000), name="Alex Admin")
    db_session.add(user)
    db_session.commit()
    return user


def test_password_hash_round_trip() -> None:
    stored = hash_password("admin123", iterations=1000)

    assert stored.startswith("pbkdf2_sha256$1000$")
    assert verify_password("admin123", stored)
    assert not verify_password("admin124", stored)
    assert not verify_password("admin123", "not-a-hash")


def test_session_token_round_trip() -> None:
    token = issue_session_token(42)

    assert decode_session_token(token) == 42
    assert decode_session_token(token + "tampered") is None


def test_login_sets_session_cookie(client: TestClient, admin: CRMUser) -> None:
    response = client.post("/api/auth/login", json={"email": "admin@localcrm.test", "password": "admin123"})

    assert response.status_code == 200
    assert response.json()["data"] == {"id": admin.id, "email": "admin@localcrm.test", "name": "Alex Admin"}
    cookie_header = response.headers["set-cookie"]
    assert f"{get_settings().session_cookie_name}=" in cookie_header
    assert "HttpOnly" in cookie_header
    assert "samesite=lax" in cookie_header.lower()

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "admin@localcrm.test"


def test_login_with_wrong_password(client: TestClient, admin: CRMUser) -> None:
    response = client.post("/api/auth/login", json={"email": "admin@localcrm.test", "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_login_validation_error(client: TestClient) -> None:
    response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "123"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation error"
    assert "email" in body["details"]
    assert "password" in body["details"]


def test_crm_routes_require_session(client: TestClient) -> None:
    for path in ["/api/accounts", "/api/contacts", "/api/stages", "/api/deals", "/api/activities", "/api/notes"]:
        response = client.get(path)
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}


def test_invalid_session_cookie_is_rejected(client: TestClient) -> None:
    client.cookies.set(get_settings().session_cookie_name, "garbage")

    assert client.get("/api/auth/me").status_code == 401


def test_logout_clears_session(client: TestClient, admin: CRMUser) -> None:
    client.post("/api/auth/login", json={"email": "admin@localcrm.test", "password": "admin123"})
    assert client.get("/api/accounts").status_code == 200

    response = client.post("/api/auth/logout")

    assert response.json() == {"data": {"success": True}}
    assert client.get("/api/accounts").status_code == 401


def test_health_is_public(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
