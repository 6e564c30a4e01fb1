from __future__ import annotations

from collections.abc import Generator
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paintops import events
from paintops.business.quotes.pricing import compute_quote_totals
from paintops.business.quotes.schemas import QuoteCostInput, QuoteCreate
from paintops.business.quotes.service import QuoteService
from paintops.core.config import get_settings
from paintops.models import Activity, Base, Client, Project, Quote, User
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
    user = User(username="estimator", role="member")
    db_session.add(user)
    db_session.commit()
    return ActorContext(user_id=user.id, username=user.username, role=user.role)


@pytest.fixture()
def service() -> QuoteService:
    return QuoteService()


def _project(session: Session, *, status: str = "pending_visit") -> Project:
    client = Client(name="Linden Family", type="residential")
    session.add(client)
    session.flush()
    project = Project(title="Exterior repaint", client_id=client.id, status=status)
    session.add(project)
    session.commit()
    return project


def _create(service: QuoteService, session: Session, actor: ActorContext, project_id: int, **overrides):
    payload = {
        "project_id": project_id,
        "materials_cost": Decimal("1200"),
        "labor_cost": Decimal("1000"),
        "additional_costs": Decimal("150"),
        "margin": Decimal("20"),
    }
    payload.update(overrides)
    return service.create_quote(session, actor, QuoteCreate(**payload))


def test_create_quote_computes_total_and_advances_pending_project(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session)

    quote = _create(service, db_session, actor, project.id)

    assert quote.total_amount == Decimal("2820.00")
    assert quote.is_approved is False
    assert quote.quote_number.startswith("Q")
    db_session.refresh(project)
    assert project.status == "quote_sent"

    changed = [event for event in events.published_events if event["event_type"] == "project.status_changed"]
    assert changed[-1]["payload"] == {
        "project_id": project.id,
        "from_status": "pending_visit",
        "to_status": "quote_sent",
        "source": "quote_created",
    }


def test_create_quote_leaves_later_projects_where_they_are(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session, status="in_progress")

    _create(service, db_session, actor, project.id)

    db_session.refresh(project)
    assert project.status == "in_progress"


def test_client_supplied_total_is_ignored(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session)
    dto = QuoteCreate.model_validate(
        {
            "project_id": project.id,
            "materials_cost": "100",
            "labor_cost": "50",
            "margin": "10",
            "total_amount": "99999",
        }
    )

    quote = service.create_quote(db_session, actor, dto)

    assert quote.total_amount == Decimal("165.00")


def test_stored_total_matches_stored_components(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session)
    created = _create(
        service,
        db_session,
        actor,
        project.id,
        materials_cost=Decimal("10000"),
        labor_cost=Decimal("0.05"),
        additional_costs=Decimal("0"),
        margin=Decimal("12.35"),
    )

    stored = db_session.get(Quote, created.id)
    recomputed = compute_quote_totals(stored.materials_cost, stored.labor_cost, stored.additional_costs, stored.margin)
    assert stored.total_amount == recomputed.total == Decimal("11235.06")


@pytest.mark.parametrize(
    "field_name, value",
    [
        ("margin", "12.345"),
        ("materials_cost", "10.001"),
        ("margin", "10000"),
        ("labor_cost", "10000000000"),
    ],
)
def test_amounts_must_fit_their_columns(field_name: str, value: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        QuoteCreate.model_validate({"project_id": 1, field_name: value})

    assert excinfo.value.errors()[0]["loc"] == (field_name,)


def test_total_beyond_column_range_is_rejected(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session)

    with pytest.raises(DomainValidationError) as excinfo:
        _create(
            service,
            db_session,
            actor,
            project.id,
            materials_cost=Decimal("9000000000"),
            margin=Decimal("50"),
        )

    assert excinfo.value.details["field"] == "total_amount"
    assert db_session.scalar(select(Quote.id)) is None


def test_caller_supplied_number_must_be_unique(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session)
    _create(service, db_session, actor, project.id, quote_number="Q2610-0001")

    with pytest.raises(IntegrityConflictError):
        _create(service, db_session, actor, project.id, quote_number="Q2610-0001")


def test_quote_for_missing_project_is_rejected(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    with pytest.raises(DomainValidationError):
        _create(service, db_session, actor, 404)


def test_approve_moves_project_and_is_idempotent(
    db_session: Session,
    actor: ActorContext,
    service: QuoteService,
) -> None:
    project = _project(db_session)
    quote = _create(service, db_session, actor, project.id)

    approved = service.approve_quote(db_session, actor, quote.id)
    assert approved.is_approved is True
    assert approved.approval_date is not None
    db_session.refresh(project)
    assert project.status == "quote_approved"

    again = service.approve_quote(db_session, actor, quote.id)
    assert again.approval_date == approved.approval_date

    approvals = db_session.scalars(
        select(Activity).where(Activity.related_type == "quote", Activity.type == "contract")
    ).all()
    assert len(approvals) == 1
    assert approvals[0].title == f"Quote {quote.quote_number} approved"
    assert [event["event_type"] for event in events.published_events].count("quote.approved") == 1


def test_send_marks_sent_at(db_session: Session, actor: ActorContext, service: QuoteService) -> None:
    project = _project(db_session)
    quote = _create(service, db_session, actor, project.id)

    sent = service.send_quote(db_session, actor, quote.id)

    assert sent.sent_at is not None


def test_list_filters_by_approval(db_session: Session, actor: ActorContext, service: QuoteService) -> None:
    project = _project(db_session)
    first = _create(service, db_session, actor, project.id)
    second = _create(service, db_session, actor, project.id)
    service.approve_quote(db_session, actor, first.id)

    pending = service.list_quotes(db_session, is_approved=False)
    approved = service.list_quotes(db_session, is_approved=True)

    assert [quote.id for quote in pending] == [second.id]
    assert [quote.id for quote in approved] == [first.id]


def test_preview_does_not_persist(db_session: Session, service: QuoteService) -> None:
    preview = service.preview(QuoteCostInput(materials_cost=Decimal("10"), margin=Decimal("10")))

    assert preview.subtotal == Decimal("10.00")
    assert preview.margin_amount == Decimal("1.00")
    assert preview.total == Decimal("11.00")
    assert service.list_quotes(db_session) == []
