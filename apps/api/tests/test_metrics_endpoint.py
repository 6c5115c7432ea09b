from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import SessionUser, get_current_user
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.crm.seed import seed_demo_data
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


@pytest.fixture()
def seeded(db_session: Session) -> None:
    seed_demo_data(db_session, admin_email="admin@localcrm.test", admin_password="admin123")


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_metrics_endpoint_exposes_http_and_crm_metrics(client: TestClient, seeded: None) -> None:
    assert client.get("/api/health").status_code == 200
    deals = client.get("/api/deals", params={"search": "Atlas", "stage_id": ""})
    assert deals.status_code == 200
    deal = deals.json()["data"][0]
    stages = client.get("/api/stages").json()["data"]
    patched = client.patch(f"/api/deals/{deal['id']}/stage", json={"stage_id": stages[-1]["id"]})
    assert patched.status_code == 200

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "crm_mutations_total" in body
    assert "crm_list_queries_total" in body

    assert 'path="/api/health"' in body
    assert 'path="/api/deals/{id}/stage"' in body
    assert 'resource="deals",action="patch"' in body or 'action="patch",resource="deals"' in body
    assert 'filter_count="1",resource="deals"' in body or 'resource="deals",filter_count="1"' in body


def test_metrics_endpoint_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    response = client.get("/metrics")

    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}
