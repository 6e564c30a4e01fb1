from __future__ import annotations

import json
import logging
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
from paintops.logging import JsonLogFormatter
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
def setup_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("RATE_LIMIT_DISABLED", "true")
    get_settings.cache_clear()
    reset_rate_limiter()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    user = User(username="log-user", role="member")
    db_session.add(user)
    db_session.commit()
    user_id = user.id

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_actor(request: Request) -> ActorContext:
        return ActorContext(
            user_id=user_id,
            username="log-user",
            role="member",
            correlation_id=getattr(request.state, "correlation_id", None),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_logs_include_correlation_id_for_http(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    response = client.get("/api/clients/4242", headers={"X-Correlation-Id": "abc-123"})
    assert response.status_code == 404

    records = [
        record
        for record in caplog.records
        if record.name == "paintops.request" and record.getMessage() == "http.request"
    ]
    assert records
    assert any(
        getattr(record, "correlation_id", None) == "abc-123"
        and getattr(record, "method", None) == "GET"
        and getattr(record, "path", None) == "/api/clients/{id}"
        and getattr(record, "status_code", None) == 404
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in records
    )


def test_status_transition_logs_carry_project_context(
    client: TestClient,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO)
    customer = client.post("/api/clients", json={"name": "Logged Client", "type": "residential"})
    project = client.post(
        "/api/projects",
        json={"title": "Logged project", "client_id": customer.json()["id"]},
    ).json()

    response = client.patch(
        f"/api/projects/{project['id']}/status",
        json={"status": "quote_sent"},
        headers={"X-Correlation-Id": "status-log-1"},
    )
    assert response.status_code == 200

    transitions = [
        record
        for record in caplog.records
        if record.name == "paintops.projects" and record.getMessage() == "project.status_changed"
    ]
    assert any(
        getattr(record, "project_id", None) == project["id"]
        and getattr(record, "from_status", None) == "pending_visit"
        and getattr(record, "to_status", None) == "quote_sent"
        and getattr(record, "source", None) == "manual"
        and getattr(record, "correlation_id", None) == "status-log-1"
        for record in transitions
    )


def test_json_formatter_emits_known_fields() -> None:
    record = logging.LogRecord(
        name="paintops.quotes",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="quote.created",
        args=(),
        exc_info=None,
    )
    record.correlation_id = "fmt-1"
    record.entity_id = 7
    record.project_id = 3

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["msg"] == "quote.created"
    assert payload["logger"] == "paintops.quotes"
    assert payload["level"] == "INFO"
    assert payload["correlation_id"] == "fmt-1"
    assert payload["fields"] == {"entity_id": 7, "project_id": 3}
