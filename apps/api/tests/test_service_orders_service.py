from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paintops import events
from paintops.business.service_orders.schemas import ServiceOrderCreate, ServiceOrderUpdate
from paintops.business.service_orders.service import ServiceOrderService
from paintops.core.config import get_settings
from paintops.models import Activity, Base, Client, Project, ServiceOrder, User
from paintops.platform.errors import DomainValidationError, IntegrityConflictError
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
def clear_stubs() -> Generator[None, None, None]:
    events.published_events.clear()
    get_settings.cache_clear()
    yield
    events.published_events.clear()
    get_settings.cache_clear()


@pytest.fixture()
def actor(db_session: Session) -> ActorContext:
    user = User(username="foreman", role="member")
    db_session.add(user)
    db_session.commit()
    return ActorContext(user_id=user.id, username=user.username, role=user.role)


@pytest.fixture()
def service() -> ServiceOrderService:
    return ServiceOrderService()


@pytest.fixture()
def project(db_session: Session) -> Project:
    client = Client(name="Northside Dental", type="commercial", is_prospect=False)
    db_session.add(client)
    db_session.flush()
    project = Project(title="Clinic hallway", client_id=client.id, status="quote_approved")
    db_session.add(project)
    db_session.commit()
    return project


def _order(service: ServiceOrderService, session: Session, actor: ActorContext, project: Project):
    return service.create_order(
        session,
        actor,
        ServiceOrderCreate(project_id=project.id, description="Prime and paint hallway walls"),
    )


def test_order_lifecycle_drives_project_status(
    db_session: Session,
    actor: ActorContext,
    service: ServiceOrderService,
    project: Project,
) -> None:
    order = _order(service, db_session, actor, project)
    assert order.status == "pending"
    assert order.order_number.startswith("WO")
    db_session.refresh(project)
    assert project.status == "in_preparation"

    started = service.start_order(db_session, actor, order.id, signature="J. Ortiz")
    assert started.status == "in_progress"
    assert started.start_signature == "J. Ortiz"
    db_session.refresh(project)
    assert project.status == "in_progress"

    completed = service.complete_order(db_session, actor, order.id, signature="Owner")
    assert completed.status == "completed"
    assert completed.end_signature == "Owner"
    db_session.refresh(project)
    assert project.status == "completed"

    sources = [
        event["payload"]["source"]
        for event in events.published_events
        if event["event_type"] == "project.status_changed"
    ]
    assert sources == ["service_order_created", "service_order_started", "service_order_completed"]


def test_start_twice_keeps_first_timestamp(
    db_session: Session,
    actor: ActorContext,
    service: ServiceOrderService,
    project: Project,
) -> None:
    order = _order(service, db_session, actor, project)
    first = service.start_order(db_session, actor, order.id)

    second = service.start_order(db_session, actor, order.id, signature="late")

    assert second.started_at == first.started_at
    assert second.start_signature is None


def test_complete_requires_started_order(
    db_session: Session,
    actor: ActorContext,
    service: ServiceOrderService,
    project: Project,
) -> None:
    order = _order(service, db_session, actor, project)

    with pytest.raises(IntegrityConflictError):
        service.complete_order(db_session, actor, order.id)

    stored = db_session.get(ServiceOrder, order.id)
    assert stored is not None
    assert stored.completed_at is None


def test_completed_order_cannot_be_edited(
    db_session: Session,
    actor: ActorContext,
    service: ServiceOrderService,
    project: Project,
) -> None:
    order = _order(service, db_session, actor, project)
    service.start_order(db_session, actor, order.id)
    service.complete_order(db_session, actor, order.id)

    with pytest.raises(IntegrityConflictError):
        service.update_order(db_session, actor, order.id, ServiceOrderUpdate(instructions="Second coat"))


def test_delete_logs_warning_activity(
    db_session: Session,
    actor: ActorContext,
    service: ServiceOrderService,
    project: Project,
) -> None:
    order = _order(service, db_session, actor, project)

    service.delete_order(db_session, actor, order.id)

    assert db_session.get(ServiceOrder, order.id) is None
    warning = db_session.scalar(
        select(Activity).where(Activity.related_type == "service_order", Activity.type == "warning")
    )
    assert warning is not None
    assert warning.title == f"Service order {order.order_number} deleted"


def test_list_filters_by_derived_status(
    db_session: Session,
    actor: ActorContext,
    service: ServiceOrderService,
    project: Project,
) -> None:
    pending = _order(service, db_session, actor, project)
    running = _order(service, db_session, actor, project)
    service.start_order(db_session, actor, running.id)

    assert [order.id for order in service.list_orders(db_session, status="pending")] == [pending.id]
    assert [order.id for order in service.list_orders(db_session, status="in_progress")] == [running.id]
    with pytest.raises(DomainValidationError):
        service.list_orders(db_session, status="paused")
