from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paintops.core.auth import get_current_actor
from paintops.core.config import get_settings
from paintops.core.database import get_db
from paintops.main import app
from paintops.middleware.rate_limit import reset_rate_limiter
from paintops.models import Base, User
from paintops.platform.security import ActorContext


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


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def actor_role() -> dict[str, str]:
    return {"role": "admin"}


@pytest.fixture()
def client(db_session: Session, actor_role: dict[str, str]) -> Generator[TestClient, None, None]:
    user = User(username="metrics-admin", role="admin")
    db_session.add(user)
    db_session.commit()
    user_id = user.id

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_actor(request: Request) -> ActorContext:
        return ActorContext(
            user_id=user_id,
            username="metrics-admin",
            role=actor_role["role"],
            correlation_id="metrics-corr-1",
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def test_metrics_endpoint_exposes_http_and_domain_metrics(client: TestClient) -> None:
    health = client.get("/health")
    assert health.status_code == 200

    customer = client.post("/api/clients", json={"name": "Metrics Client", "type": "commercial"})
    assert customer.status_code == 201
    project = client.post("/api/projects", json={"title": "Metrics project", "client_id": customer.json()["id"]})
    assert project.status_code == 201

    quote = client.post("/api/quotes", json={"project_id": project.json()["id"], "labor_cost": "500"})
    assert quote.status_code == 201
    approved = client.post(f"/api/quotes/{quote.json()['id']}/approve")
    assert approved.status_code == 200

    order = client.post(
        "/api/service-orders",
        json={"project_id": project.json()["id"], "description": "Metrics service order"},
    )
    assert order.status_code == 201

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "quotes_created_total" in body
    assert "quotes_approved_total" in body

    assert 'path="/health"' in body
    assert 'path="/api/quotes/{id}/approve"' in body
    assert 'source="quote_created",status="quote_sent"' in body
    assert 'source="service_order_created",status="in_preparation"' in body
    assert 'event="created"' in body


def test_metrics_require_permission(client: TestClient, actor_role: dict[str, str]) -> None:
    actor_role["role"] = "member"

    response = client.get("/metrics")

    assert response.status_code == 403
    assert response.json()["code"] == "metrics_forbidden"


def test_metrics_hidden_when_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "false")
    get_settings.cache_clear()

    response = client.get("/metrics")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"
