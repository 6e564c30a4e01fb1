from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from paintops import events
from paintops.business.activities.service import ActivityService
from paintops.business.clients.models import Client
from paintops.business.personnel.models import ProjectAssignment
from paintops.business.projects.models import Project, ProjectImage
from paintops.business.projects.schemas import (
    BoardColumn,
    ProjectCreate,
    ProjectDetailRead,
    ProjectImageCreate,
    ProjectImageRead,
    ProjectRead,
    ProjectUpdate,
)
from paintops.business.projects.status import (
    PIPELINE,
    STATUS_LABELS,
    ProjectStatus,
    TransitionSource,
    is_transition_allowed,
    parse_status,
)
from paintops.core.config import get_settings
from paintops.core.database import transaction
from paintops.metrics import observe_project_status_transition
from paintops.otel import status_transition_span
from paintops.platform.errors import DomainValidationError, IntegrityConflictError, NotFoundError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.projects")


@dataclass(slots=True)
class ProjectService:
    activity_service: ActivityService = field(default_factory=ActivityService)

    def list_projects(
        self,
        session: Session,
        *,
        status: str | None = None,
        client_id: int | None = None,
    ) -> list[ProjectRead]:
        stmt: Select[tuple[Project]] = select(Project).options(selectinload(Project.client))
        if status is not None:
            stmt = stmt.where(Project.status == parse_status(status).value)
        if client_id is not None:
            stmt = stmt.where(Project.client_id == client_id)

        rows = session.scalars(stmt.order_by(Project.created_at.desc(), Project.id.desc())).all()
        return [ProjectRead.model_validate(row) for row in rows]

    def get_board(self, session: Session) -> list[BoardColumn]:
        """Every pipeline status as a column, in pipeline order, even when empty."""
        projects = self.list_projects(session)
        grouped: dict[str, list[ProjectRead]] = {status: [] for status in PIPELINE}
        for project in projects:
            grouped[project.status.value].append(project)
        return [
            BoardColumn(status=ProjectStatus(status), label=STATUS_LABELS[status], projects=grouped[status])
            for status in PIPELINE
        ]

    def get_project(self, session: Session, project_id: int) -> ProjectDetailRead:
        project = session.scalar(
            select(Project)
            .where(Project.id == project_id)
            .options(
                selectinload(Project.client),
                selectinload(Project.quotes),
                selectinload(Project.service_orders),
                selectinload(Project.images),
                selectinload(Project.assignments).selectinload(ProjectAssignment.personnel),
            )
        )
        if project is None:
            raise NotFoundError("Project", project_id)
        return ProjectDetailRead.model_validate(project)

    def create_project(self, session: Session, actor: ActorContext, dto: ProjectCreate) -> ProjectRead:
        client = session.get(Client, dto.client_id)
        if client is None:
            raise DomainValidationError(
                f"Client {dto.client_id} does not exist",
                details={"field": "client_id"},
            )

        payload = dto.model_dump(mode="python")
        payload["status"] = parse_status(payload["status"]).value
        project = Project(**payload, created_by=actor.user_id)
        with transaction(session):
            session.add(project)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"New project created: {project.title}",
                description=f"Client: {client.name}",
                activity_type="info",
                related_type="project",
                related_id=project.id,
            )
            events.publish(
                events.build_envelope(
                    "project.created",
                    actor.user_id,
                    {"project_id": project.id, "client_id": client.id, "status": project.status},
                )
            )
        session.refresh(project)
        logger.info("project.created", extra={"actor_user_id": actor.user_id, "project_id": project.id})
        return ProjectRead.model_validate(project)

    def update_project(self, session: Session, actor: ActorContext, project_id: int, dto: ProjectUpdate) -> ProjectRead:
        project = self.get_for_update(session, project_id)
        changes = dto.model_dump(exclude_unset=True, mode="python")
        target_status = changes.pop("status", None)
        for key in ("title", "priority"):
            if key in changes and changes[key] is None:
                changes.pop(key)

        with transaction(session):
            for key, value in changes.items():
                setattr(project, key, value)
            session.flush()
            if target_status is not None:
                self._manual_transition(session, actor, project, parse_status(target_status))
        session.refresh(project)
        return ProjectRead.model_validate(project)

    def update_status(
        self,
        session: Session,
        actor: ActorContext,
        project_id: int,
        target: str | ProjectStatus,
    ) -> ProjectRead:
        target_status = parse_status(target)
        project = self.get_for_update(session, project_id)
        with transaction(session):
            self._manual_transition(session, actor, project, target_status)
        session.refresh(project)
        return ProjectRead.model_validate(project)

    def apply_side_effect_status(
        self,
        session: Session,
        actor: ActorContext,
        project: Project,
        target: ProjectStatus,
        source: TransitionSource,
    ) -> bool:
        """Move a project because something already happened elsewhere (a quote, a service order).

        Bypasses the strict transition table. Runs inside the caller's transaction and
        returns False without writing anything when the project is already at ``target``.
        """
        if project.status == target.value:
            return False
        self._write_status(session, actor, project, target, source)
        return True

    def add_image(
        self,
        session: Session,
        actor: ActorContext,
        project_id: int,
        dto: ProjectImageCreate,
    ) -> ProjectImageRead:
        project = self.get_for_update(session, project_id)
        image = ProjectImage(project_id=project.id, uploaded_by=actor.user_id, **dto.model_dump(mode="python"))
        with transaction(session):
            session.add(image)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"{dto.type.capitalize()} photo added to {project.title}",
                description=dto.caption,
                activity_type="info",
                related_type="project",
                related_id=project.id,
            )
        session.refresh(image)
        return ProjectImageRead.model_validate(image)

    def get_for_update(self, session: Session, project_id: int) -> Project:
        project = session.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def _manual_transition(
        self,
        session: Session,
        actor: ActorContext,
        project: Project,
        target: ProjectStatus,
    ) -> None:
        strict = get_settings().strict_status_transitions
        if not is_transition_allowed(project.status, target.value, strict=strict):
            raise IntegrityConflictError(
                f"Invalid project transition {project.status} -> {target.value}",
                details={"from_status": project.status, "to_status": target.value},
            )
        self._write_status(session, actor, project, target, TransitionSource.MANUAL)

    def _write_status(
        self,
        session: Session,
        actor: ActorContext,
        project: Project,
        target: ProjectStatus,
        source: TransitionSource,
    ) -> None:
        previous = project.status
        with status_transition_span(project.id, previous, target.value, source.value):
            project.status = target.value
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Project status updated: {project.title}",
                description=f"Status changed from {STATUS_LABELS[previous]} to {STATUS_LABELS[target.value]}",
                activity_type="completed" if target is ProjectStatus.COMPLETED else "info",
                related_type="project",
                related_id=project.id,
            )
            events.publish(
                events.build_envelope(
                    "project.status_changed",
                    actor.user_id,
                    {
                        "project_id": project.id,
                        "from_status": previous,
                        "to_status": target.value,
                        "source": source.value,
                    },
                )
            )

        observe_project_status_transition(source.value, target.value)
        logger.info(
            "project.status_changed",
            extra={
                "actor_user_id": actor.user_id,
                "project_id": project.id,
                "from_status": previous,
                "to_status": target.value,
                "source": source.value,
            },
        )


project_service = ProjectService()
