from __future__ import annotations

import os
from collections.abc import Generator

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("OTEL_ENABLED", "true")

from paintops.core.auth import get_current_actor
from paintops.core.config import get_settings
from paintops.core.database import get_db
from paintops.main import app
from paintops.middleware.rate_limit import reset_rate_limiter
from paintops.models import Base, User
from paintops.otel import setup_inmemory_otel
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
def setup_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def span_exporter() -> InMemorySpanExporter:
    exporter = setup_inmemory_otel()
    exporter.clear()
    return exporter


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    user = User(username="otel-user", role="member")
    db_session.add(user)
    db_session.commit()
    user_id = user.id

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_actor(request: Request) -> ActorContext:
        return ActorContext(
            user_id=user_id,
            username="otel-user",
            role="member",
            correlation_id=getattr(request.state, "correlation_id", None),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_request_span_contains_correlation_id(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    response = client.post(
        "/api/clients",
        json={"name": "Traced Client", "type": "residential"},
        headers={"X-Correlation-Id": "otel-corr-1"},
    )
    assert response.status_code == 201

    spans = span_exporter.get_finished_spans()
    assert spans
    assert any(span.attributes.get("correlation_id") == "otel-corr-1" for span in spans)


def test_status_transition_span_records_source(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    customer = client.post("/api/clients", json={"name": "Traced Client", "type": "residential"})
    project = client.post("/api/projects", json={"title": "Traced project", "client_id": customer.json()["id"]})
    quote = client.post("/api/quotes", json={"project_id": project.json()["id"], "materials_cost": "250"})
    assert quote.status_code == 201

    transition_spans = [span for span in span_exporter.get_finished_spans() if span.name == "project.status_transition"]
    assert transition_spans
    assert any(
        span.attributes.get("project.id") == project.json()["id"]
        and span.attributes.get("project.from_status") == "pending_visit"
        and span.attributes.get("project.to_status") == "quote_sent"
        and span.attributes.get("project.transition_source") == "quote_created"
        for span in transition_spans
    )
