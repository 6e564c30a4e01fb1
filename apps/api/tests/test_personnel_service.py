from __future__ import annotations

from collections.abc import Generator
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from paintops.business.personnel.schemas import AssignmentCreate, PersonnelCreate, PersonnelUpdate
from paintops.business.personnel.service import PersonnelService
from paintops.core.config import get_settings
from paintops.models import Base, Client, Personnel, Project, ProjectAssignment, User
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
def clear_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def actor(db_session: Session) -> ActorContext:
    user = User(username="scheduler", role="member")
    db_session.add(user)
    db_session.commit()
    return ActorContext(user_id=user.id, username=user.username, role=user.role)


@pytest.fixture()
def service() -> PersonnelService:
    return PersonnelService()


@pytest.fixture()
def project(db_session: Session) -> Project:
    client = Client(name="Oak Street HOA", type="residential", is_prospect=False)
    db_session.add(client)
    db_session.flush()
    project = Project(title="Clubhouse trim", client_id=client.id)
    db_session.add(project)
    db_session.commit()
    return project


def _people(session: Session, count: int, *, active: bool = True) -> list[Personnel]:
    people = [
        Personnel(
            name=f"Painter {index}",
            type="employee",
            position="Painter",
            phone="5550001000",
            is_active=active,
        )
        for index in range(count)
    ]
    session.add_all(people)
    session.commit()
    return people


def test_availability_subtracts_distinct_open_assignments(
    db_session: Session,
    service: PersonnelService,
    project: Project,
) -> None:
    people = _people(db_session, 5)
    db_session.add_all(
        [
            ProjectAssignment(project_id=project.id, personnel_id=people[0].id, start_date=date(2026, 10, 1)),
            ProjectAssignment(project_id=project.id, personnel_id=people[1].id, start_date=date(2026, 10, 1)),
            ProjectAssignment(
                project_id=project.id,
                personnel_id=people[2].id,
                start_date=date(2026, 9, 1),
                end_date=date(2026, 9, 30),
            ),
        ]
    )
    db_session.commit()

    availability = service.get_availability(db_session)

    assert availability.total == 5
    assert availability.available == 3


def test_same_person_on_two_projects_counts_once(
    db_session: Session,
    service: PersonnelService,
    project: Project,
) -> None:
    people = _people(db_session, 2)
    other = Project(title="Pool house", client_id=project.client_id)
    db_session.add(other)
    db_session.flush()
    db_session.add_all(
        [
            ProjectAssignment(project_id=project.id, personnel_id=people[0].id, start_date=date(2026, 10, 1)),
            ProjectAssignment(project_id=other.id, personnel_id=people[0].id, start_date=date(2026, 10, 2)),
        ]
    )
    db_session.commit()

    availability = service.get_availability(db_session)

    assert availability.total == 2
    assert availability.available == 1


def test_inactive_personnel_do_not_count(
    db_session: Session,
    service: PersonnelService,
    project: Project,
) -> None:
    _people(db_session, 2)
    inactive = _people(db_session, 1, active=False)
    db_session.add(ProjectAssignment(project_id=project.id, personnel_id=inactive[0].id, start_date=date(2026, 10, 1)))
    db_session.commit()

    availability = service.get_availability(db_session)

    assert availability.total == 2
    assert availability.available == 2


def test_assign_and_release(
    db_session: Session,
    actor: ActorContext,
    service: PersonnelService,
    project: Project,
) -> None:
    person = service.create_personnel(
        db_session,
        actor,
        PersonnelCreate(name="Ana Lopez", type="subcontractor", position="Sprayer", phone="5550002000"),
    )

    assignment = service.assign_to_project(
        db_session,
        actor,
        project.id,
        AssignmentCreate(personnel_id=person.id),
        today=date(2026, 10, 17),
    )
    assert assignment.start_date == date(2026, 10, 17)
    assert assignment.end_date is None
    assert assignment.personnel.name == "Ana Lopez"
    assert service.get_availability(db_session).available == 0

    with pytest.raises(IntegrityConflictError):
        service.assign_to_project(db_session, actor, project.id, AssignmentCreate(personnel_id=person.id))

    ended = service.end_assignment(db_session, actor, assignment.id, end_date=date(2026, 10, 20))
    assert ended.end_date == date(2026, 10, 20)
    assert service.get_availability(db_session).available == 1

    with pytest.raises(IntegrityConflictError):
        service.end_assignment(db_session, actor, assignment.id)


def test_inactive_person_cannot_be_assigned(
    db_session: Session,
    actor: ActorContext,
    service: PersonnelService,
    project: Project,
) -> None:
    person = _people(db_session, 1)[0]
    service.update_personnel(db_session, actor, person.id, PersonnelUpdate(is_active=False))

    with pytest.raises(DomainValidationError):
        service.assign_to_project(db_session, actor, project.id, AssignmentCreate(personnel_id=person.id))


def test_assignment_end_before_start_is_rejected(
    db_session: Session,
    actor: ActorContext,
    service: PersonnelService,
    project: Project,
) -> None:
    person = _people(db_session, 1)[0]

    with pytest.raises(DomainValidationError):
        service.assign_to_project(
            db_session,
            actor,
            project.id,
            AssignmentCreate(personnel_id=person.id, start_date=date(2026, 10, 10), end_date=date(2026, 10, 1)),
        )
