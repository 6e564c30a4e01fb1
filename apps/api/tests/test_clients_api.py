from __future__ import annotations

from collections.abc import Generator
from datetime import date, timedelta

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paintops import events
from paintops.core.auth import get_current_actor
from paintops.core.config import get_settings
from paintops.core.database import get_db
from paintops.main import app
from paintops.middleware.rate_limit import reset_rate_limiter
from paintops.models import Activity, Base, Project, User
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
    events.published_events.clear()
    yield
    get_settings.cache_clear()
    reset_rate_limiter()
    events.published_events.clear()


@pytest.fixture()
def actor_user(db_session: Session) -> User:
    user = User(username="office", role="admin")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def client(db_session: Session, actor_user: User) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    def override_get_current_actor(request: Request) -> ActorContext:
        return ActorContext(
            user_id=actor_user.id,
            username=actor_user.username,
            role=actor_user.role,
            correlation_id=getattr(request.state, "correlation_id", None),
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_actor] = override_get_current_actor
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create_client(client: TestClient, **overrides) -> dict:
    payload = {"name": "Willow Bakery", "type": "commercial", "phone": "5551234567"}
    payload.update(overrides)
    response = client.post("/api/clients", json=payload)
    assert response.status_code == 201
    return response.json()


def test_new_prospect_gets_follow_up_defaults(client: TestClient) -> None:
    created = _create_client(client)

    today = date.today()
    assert created["is_prospect"] is True
    assert created["last_contact_date"] == today.isoformat()
    assert created["next_follow_up"] == (today + timedelta(days=7)).isoformat()
    assert events.published_events[-1]["event_type"] == "client.created"


def test_validation_errors_use_envelope(client: TestClient) -> None:
    response = client.post(
        "/api/clients",
        json={"name": "X", "type": "commercial", "phone": "123"},
        headers={"X-Correlation-Id": "client-validate-1"},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_failed"
    assert body["correlation_id"] == "client-validate-1"
    fields = {detail["field"] for detail in body["details"]}
    assert {"name", "phone"} <= fields


def test_follow_up_queue_lists_due_prospects_only(client: TestClient) -> None:
    yesterday = date.today() - timedelta(days=1)
    due = _create_client(client, name="Due Prospect", next_follow_up=yesterday.isoformat())
    _create_client(client, name="Later Prospect")
    _create_client(client, name="Converted Client", is_prospect=False, next_follow_up=yesterday.isoformat())

    response = client.get("/api/clients/follow-ups")

    assert response.status_code == 200
    assert [row["id"] for row in response.json()] == [due["id"]]


def test_record_follow_up_stamps_notes_and_reschedules(client: TestClient, db_session: Session) -> None:
    created = _create_client(client, next_follow_up=date.today().isoformat())

    response = client.post(f"/api/clients/{created['id']}/follow-up", json={"notes": "Called, wants a visit"})

    assert response.status_code == 200
    body = response.json()
    today = date.today()
    assert body["last_contact_date"] == today.isoformat()
    assert body["next_follow_up"] == (today + timedelta(days=7)).isoformat()
    assert body["notes"] == f"[{today.isoformat()}] Called, wants a visit"

    past = client.post(
        f"/api/clients/{created['id']}/follow-up",
        json={"next_follow_up": (today - timedelta(days=3)).isoformat()},
    )
    assert past.status_code == 422
    assert past.json()["code"] == "client_follow_up_failed"


def test_converting_prospect_logs_contract_activity(client: TestClient, db_session: Session) -> None:
    created = _create_client(client)

    converted = client.patch(f"/api/clients/{created['id']}", json={"is_prospect": False})
    assert converted.status_code == 200
    assert converted.json()["is_prospect"] is False

    contract = db_session.scalar(
        select(Activity).where(Activity.related_id == created["id"], Activity.type == "contract")
    )
    assert contract is not None
    assert contract.title == "Prospect converted to client: Willow Bakery"

    back = client.patch(f"/api/clients/{created['id']}", json={"is_prospect": True})
    assert back.status_code == 422
    assert back.json()["code"] == "client_update_failed"


def test_contacted_prospect_keeps_a_follow_up_date(client: TestClient) -> None:
    created = _create_client(client)
    url = f"/api/clients/{created['id']}"

    cleared = client.patch(url, json={"next_follow_up": None})
    assert cleared.status_code == 200
    assert cleared.json()["next_follow_up"] == (date.today() + timedelta(days=7)).isoformat()

    backdated = client.patch(url, json={"last_contact_date": "2026-09-01", "next_follow_up": None})
    assert backdated.json()["next_follow_up"] == "2026-09-08"

    converted = client.patch(url, json={"is_prospect": False, "next_follow_up": None})
    assert converted.status_code == 200
    assert converted.json()["next_follow_up"] is None


def test_client_with_projects_cannot_be_deleted(client: TestClient, db_session: Session) -> None:
    created = _create_client(client, is_prospect=False)
    db_session.add(Project(title="Storefront repaint", client_id=created["id"]))
    db_session.commit()

    blocked = client.delete(f"/api/clients/{created['id']}")
    assert blocked.status_code == 409
    body = blocked.json()
    assert body["code"] == "client_delete_failed"
    assert body["details"]["project_count"] == 1

    detail = client.get(f"/api/clients/{created['id']}")
    assert detail.status_code == 200
    assert [project["title"] for project in detail.json()["projects"]] == ["Storefront repaint"]


def test_delete_client_without_projects(client: TestClient, db_session: Session) -> None:
    created = _create_client(client)

    response = client.delete(f"/api/clients/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"status": "deleted"}
    assert client.get(f"/api/clients/{created['id']}").status_code == 404
    warning = db_session.scalar(select(Activity).where(Activity.type == "warning"))
    assert warning is not None
    assert warning.title == "Client deleted: Willow Bakery"


def test_list_filters_by_prospect_flag_and_search(client: TestClient) -> None:
    _create_client(client, name="Cedar Homes", city="Portland")
    _create_client(client, name="Birch Storage", is_prospect=False)

    prospects = client.get("/api/clients", params={"is_prospect": "true"})
    assert [row["name"] for row in prospects.json()] == ["Cedar Homes"]

    search = client.get("/api/clients", params={"search": "portland"})
    assert [row["name"] for row in search.json()] == ["Cedar Homes"]
