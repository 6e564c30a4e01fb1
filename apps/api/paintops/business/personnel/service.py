from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.orm import Session

from paintops.business.activities.service import ActivityService
from paintops.business.personnel.models import Personnel, ProjectAssignment
from paintops.business.personnel.schemas import (
    AssignmentCreate,
    AssignmentRead,
    AvailabilityRead,
    PersonnelCreate,
    PersonnelRead,
    PersonnelUpdate,
)
from paintops.business.projects.models import Project
from paintops.core.database import transaction
from paintops.platform.errors import DomainValidationError, IntegrityConflictError, NotFoundError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.personnel")


@dataclass(slots=True)
class PersonnelService:
    activity_service: ActivityService = field(default_factory=ActivityService)

    def list_personnel(
        self,
        session: Session,
        *,
        is_active: bool | None = None,
        personnel_type: str | None = None,
    ) -> list[PersonnelRead]:
        stmt: Select[tuple[Personnel]] = select(Personnel)
        if is_active is not None:
            stmt = stmt.where(Personnel.is_active.is_(is_active))
        if personnel_type is not None:
            stmt = stmt.where(Personnel.type == personnel_type)
        rows = session.scalars(stmt.order_by(Personnel.name.asc(), Personnel.id.asc())).all()
        return [PersonnelRead.model_validate(row) for row in rows]

    def get_personnel(self, session: Session, personnel_id: int) -> PersonnelRead:
        return PersonnelRead.model_validate(self._get_or_404(session, personnel_id))

    def create_personnel(self, session: Session, actor: ActorContext, dto: PersonnelCreate) -> PersonnelRead:
        person = Personnel(**dto.model_dump(mode="python"))
        with transaction(session):
            session.add(person)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"New {person.type} added: {person.name}",
                description=f"Position: {person.position}",
                activity_type="info",
                related_type="personnel",
                related_id=person.id,
            )
        session.refresh(person)
        return PersonnelRead.model_validate(person)

    def update_personnel(
        self,
        session: Session,
        actor: ActorContext,
        personnel_id: int,
        dto: PersonnelUpdate,
    ) -> PersonnelRead:
        person = self._get_or_404(session, personnel_id)
        changes = {
            key: value
            for key, value in dto.model_dump(exclude_unset=True, mode="python").items()
            if not (key in {"name", "type", "position", "phone", "is_active"} and value is None)
        }
        deactivating = person.is_active and changes.get("is_active") is False

        with transaction(session):
            for key, value in changes.items():
                setattr(person, key, value)
            session.flush()
            if deactivating:
                self.activity_service.record(
                    session,
                    actor,
                    title=f"{person.name} marked inactive",
                    activity_type="warning",
                    related_type="personnel",
                    related_id=person.id,
                )
        session.refresh(person)
        return PersonnelRead.model_validate(person)

    def get_availability(self, session: Session) -> AvailabilityRead:
        """Active people minus the active people currently on an open-ended assignment."""
        total = session.scalar(select(func.count(Personnel.id)).where(Personnel.is_active.is_(True))) or 0
        occupied = (
            session.scalar(
                select(func.count(distinct(ProjectAssignment.personnel_id)))
                .join(Personnel, Personnel.id == ProjectAssignment.personnel_id)
                .where(ProjectAssignment.end_date.is_(None), Personnel.is_active.is_(True))
            )
            or 0
        )
        return AvailabilityRead(available=max(total - occupied, 0), total=total)

    def assign_to_project(
        self,
        session: Session,
        actor: ActorContext,
        project_id: int,
        dto: AssignmentCreate,
        *,
        today: date | None = None,
    ) -> AssignmentRead:
        project = session.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        person = self._get_or_404(session, dto.personnel_id)
        if not person.is_active:
            raise DomainValidationError(
                f"{person.name} is inactive and cannot be assigned",
                details={"field": "personnel_id"},
            )

        start_date = dto.start_date or today or date.today()
        if dto.end_date is not None and dto.end_date < start_date:
            raise DomainValidationError("end_date must be on or after start_date", details={"field": "end_date"})

        already_open = session.scalar(
            select(ProjectAssignment.id).where(
                ProjectAssignment.project_id == project_id,
                ProjectAssignment.personnel_id == person.id,
                ProjectAssignment.end_date.is_(None),
            )
        )
        if already_open is not None:
            raise IntegrityConflictError(
                f"{person.name} is already assigned to this project",
                details={"assignment_id": already_open},
            )

        assignment = ProjectAssignment(
            project_id=project_id,
            personnel_id=person.id,
            start_date=start_date,
            end_date=dto.end_date,
            notes=dto.notes,
        )
        with transaction(session):
            session.add(assignment)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"{person.name} assigned to {project.title}",
                activity_type="info",
                related_type="project",
                related_id=project.id,
            )
        session.refresh(assignment)
        logger.info(
            "personnel.assigned",
            extra={"actor_user_id": actor.user_id, "project_id": project_id, "entity_id": person.id},
        )
        return AssignmentRead.model_validate(assignment)

    def end_assignment(
        self,
        session: Session,
        actor: ActorContext,
        assignment_id: int,
        *,
        end_date: date | None = None,
    ) -> AssignmentRead:
        assignment = session.get(ProjectAssignment, assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)
        if assignment.end_date is not None:
            raise IntegrityConflictError(
                f"Assignment {assignment_id} already ended",
                details={"end_date": assignment.end_date.isoformat()},
            )

        closing_date = end_date or date.today()
        if closing_date < assignment.start_date:
            raise DomainValidationError("end_date must be on or after start_date", details={"field": "end_date"})

        with transaction(session):
            assignment.end_date = closing_date
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"{assignment.personnel.name} released from project",
                activity_type="info",
                related_type="project",
                related_id=assignment.project_id,
            )
        session.refresh(assignment)
        return AssignmentRead.model_validate(assignment)

    @staticmethod
    def _get_or_404(session: Session, personnel_id: int) -> Personnel:
        person = session.get(Personnel, personnel_id)
        if person is None:
            raise NotFoundError("Personnel", personnel_id)
        return person


personnel_service = PersonnelService()
