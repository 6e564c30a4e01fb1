from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paintops import events
from paintops.business.activities.service import ActivityService
from paintops.business.projects.models import Project
from paintops.business.projects.service import ProjectService
from paintops.business.projects.status import ProjectStatus, TransitionSource
from paintops.business.quotes.numbering import next_order_number, order_number_taken
from paintops.business.service_orders.models import ServiceOrder
from paintops.business.service_orders.schemas import ServiceOrderCreate, ServiceOrderRead, ServiceOrderUpdate
from paintops.core.database import transaction
from paintops.metrics import observe_service_order_event
from paintops.platform.errors import DomainValidationError, IntegrityConflictError, NotFoundError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.service_orders")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ServiceOrderService:
    """Work orders signed off on site.

    Status is derived from the timestamps: no ``started_at`` means pending, a
    ``started_at`` without ``completed_at`` means in progress, both means completed.
    """

    activity_service: ActivityService = field(default_factory=ActivityService)
    project_service: ProjectService = field(default_factory=ProjectService)

    def list_orders(
        self,
        session: Session,
        *,
        project_id: int | None = None,
        status: str | None = None,
    ) -> list[ServiceOrderRead]:
        stmt: Select[tuple[ServiceOrder]] = select(ServiceOrder)
        if project_id is not None:
            stmt = stmt.where(ServiceOrder.project_id == project_id)
        if status == "pending":
            stmt = stmt.where(ServiceOrder.started_at.is_(None))
        elif status == "in_progress":
            stmt = stmt.where(ServiceOrder.started_at.is_not(None), ServiceOrder.completed_at.is_(None))
        elif status == "completed":
            stmt = stmt.where(ServiceOrder.completed_at.is_not(None))
        elif status is not None:
            raise DomainValidationError(f"Unknown service order status: {status}", details={"field": "status"})

        rows = session.scalars(stmt.order_by(ServiceOrder.created_at.desc(), ServiceOrder.id.desc())).all()
        return [ServiceOrderRead.model_validate(row) for row in rows]

    def get_order(self, session: Session, order_id: int) -> ServiceOrderRead:
        return ServiceOrderRead.model_validate(self._get_or_404(session, order_id))

    def create_order(self, session: Session, actor: ActorContext, dto: ServiceOrderCreate) -> ServiceOrderRead:
        project = session.get(Project, dto.project_id)
        if project is None:
            raise DomainValidationError(f"Project {dto.project_id} does not exist", details={"field": "project_id"})

        if dto.order_number is not None:
            if order_number_taken(session, dto.order_number):
                raise IntegrityConflictError(
                    f"Order number {dto.order_number} already exists",
                    details={"field": "order_number"},
                )
            order_number = dto.order_number
        else:
            order_number = next_order_number(session)

        order = ServiceOrder(
            project_id=project.id,
            order_number=order_number,
            description=dto.description,
            instructions=dto.instructions,
            created_by=actor.user_id,
        )
        try:
            with transaction(session):
                session.add(order)
                session.flush()
                self.activity_service.record(
                    session,
                    actor,
                    title=f"Service order {order.order_number} created",
                    description=f"Project: {project.title}",
                    activity_type="info",
                    related_type="service_order",
                    related_id=order.id,
                )
                self.project_service.apply_side_effect_status(
                    session,
                    actor,
                    project,
                    ProjectStatus.IN_PREPARATION,
                    TransitionSource.SERVICE_ORDER_CREATED,
                )
                events.publish(
                    events.build_envelope(
                        "service_order.created",
                        actor.user_id,
                        {"service_order_id": order.id, "project_id": project.id},
                    )
                )
        except IntegrityError as exc:
            raise IntegrityConflictError(
                f"Order number {order_number} already exists",
                details={"field": "order_number"},
            ) from exc
        session.refresh(order)
        observe_service_order_event("created")
        return ServiceOrderRead.model_validate(order)

    def update_order(
        self,
        session: Session,
        actor: ActorContext,
        order_id: int,
        dto: ServiceOrderUpdate,
    ) -> ServiceOrderRead:
        order = self._get_or_404(session, order_id)
        changes = dto.model_dump(exclude_unset=True, mode="python")
        if "description" in changes and changes["description"] is None:
            changes.pop("description")
        if order.completed_at is not None and changes:
            raise IntegrityConflictError(
                f"Service order {order.order_number} is completed and can no longer be edited",
                details={"status": order.status},
            )

        with transaction(session):
            for key, value in changes.items():
                setattr(order, key, value)
        session.refresh(order)
        return ServiceOrderRead.model_validate(order)

    def start_order(
        self,
        session: Session,
        actor: ActorContext,
        order_id: int,
        *,
        signature: str | None = None,
    ) -> ServiceOrderRead:
        order = self._get_or_404(session, order_id)
        if order.started_at is not None:
            return ServiceOrderRead.model_validate(order)

        project = order.project
        with transaction(session):
            order.started_at = utcnow()
            order.start_signature = signature
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Service order {order.order_number} started",
                description=f"Project: {project.title}",
                activity_type="info",
                related_type="service_order",
                related_id=order.id,
            )
            self.project_service.apply_side_effect_status(
                session,
                actor,
                project,
                ProjectStatus.IN_PROGRESS,
                TransitionSource.SERVICE_ORDER_STARTED,
            )
            events.publish(
                events.build_envelope(
                    "service_order.started",
                    actor.user_id,
                    {"service_order_id": order.id, "project_id": project.id},
                )
            )
        session.refresh(order)
        observe_service_order_event("started")
        return ServiceOrderRead.model_validate(order)

    def complete_order(
        self,
        session: Session,
        actor: ActorContext,
        order_id: int,
        *,
        signature: str | None = None,
    ) -> ServiceOrderRead:
        order = self._get_or_404(session, order_id)
        if order.completed_at is not None:
            return ServiceOrderRead.model_validate(order)
        if order.started_at is None:
            raise IntegrityConflictError(
                f"Service order {order.order_number} has not been started",
                details={"status": order.status},
            )

        project = order.project
        with transaction(session):
            order.completed_at = utcnow()
            order.end_signature = signature
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Service order {order.order_number} completed",
                description=f"Project: {project.title}",
                activity_type="completed",
                related_type="service_order",
                related_id=order.id,
            )
            self.project_service.apply_side_effect_status(
                session,
                actor,
                project,
                ProjectStatus.COMPLETED,
                TransitionSource.SERVICE_ORDER_COMPLETED,
            )
            events.publish(
                events.build_envelope(
                    "service_order.completed",
                    actor.user_id,
                    {"service_order_id": order.id, "project_id": project.id},
                )
            )
        session.refresh(order)
        observe_service_order_event("completed")
        logger.info(
            "service_order.completed",
            extra={"actor_user_id": actor.user_id, "entity_id": order.id, "project_id": project.id},
        )
        return ServiceOrderRead.model_validate(order)

    def delete_order(self, session: Session, actor: ActorContext, order_id: int) -> None:
        order = self._get_or_404(session, order_id)
        order_number = order.order_number
        project_id = order.project_id
        with transaction(session):
            session.delete(order)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Service order {order_number} deleted",
                activity_type="warning",
                related_type="service_order",
                related_id=order_id,
            )
        observe_service_order_event("deleted")
        logger.info(
            "service_order.deleted",
            extra={"actor_user_id": actor.user_id, "entity_id": order_id, "project_id": project_id},
        )

    @staticmethod
    def _get_or_404(session: Session, order_id: int) -> ServiceOrder:
        order = session.get(ServiceOrder, order_id)
        if order is None:
            raise NotFoundError("ServiceOrder", order_id)
        return order


service_order_service = ServiceOrderService()
