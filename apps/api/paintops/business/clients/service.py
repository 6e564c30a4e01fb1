from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session, selectinload

from paintops import events
from paintops.business.activities.service import ActivityService
from paintops.business.clients.models import Client
from paintops.business.clients.schemas import (
    ClientCreate,
    ClientDetailRead,
    ClientRead,
    ClientUpdate,
    FollowUpRecord,
)
from paintops.business.projects.models import Project
from paintops.core.config import get_settings
from paintops.core.database import transaction
from paintops.platform.errors import DomainValidationError, IntegrityConflictError, NotFoundError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.clients")

_NON_NULLABLE_FIELDS = {"name", "type", "is_prospect"}


def _follow_up_after(start: date) -> date:
    return start + timedelta(days=get_settings().follow_up_interval_days)


@dataclass(slots=True)
class ClientService:
    activity_service: ActivityService = field(default_factory=ActivityService)

    def list_clients(
        self,
        session: Session,
        *,
        is_prospect: bool | None = None,
        search: str | None = None,
    ) -> list[ClientRead]:
        stmt: Select[tuple[Client]] = select(Client)
        if is_prospect is not None:
            stmt = stmt.where(Client.is_prospect.is_(is_prospect))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Client.name.ilike(pattern), Client.email.ilike(pattern), Client.city.ilike(pattern)))

        rows = session.scalars(stmt.order_by(Client.created_at.desc(), Client.id.desc())).all()
        return [ClientRead.model_validate(row) for row in rows]

    def list_follow_ups(self, session: Session, *, as_of: date | None = None) -> list[ClientRead]:
        """Prospects whose next follow-up is due on or before ``as_of`` (today by default), soonest first."""
        cutoff = as_of or date.today()
        rows = session.scalars(
            select(Client)
            .where(
                Client.is_prospect.is_(True),
                Client.next_follow_up.is_not(None),
                Client.next_follow_up <= cutoff,
            )
            .order_by(Client.next_follow_up.asc(), Client.id.asc())
        ).all()
        return [ClientRead.model_validate(row) for row in rows]

    def get_client(self, session: Session, client_id: int) -> ClientDetailRead:
        client = session.scalar(
            select(Client).where(Client.id == client_id).options(selectinload(Client.projects))
        )
        if client is None:
            raise NotFoundError("Client", client_id)
        return ClientDetailRead.model_validate(client)

    def create_client(
        self,
        session: Session,
        actor: ActorContext,
        dto: ClientCreate,
        *,
        today: date | None = None,
    ) -> ClientRead:
        current_day = today or date.today()
        payload = dto.model_dump(mode="python")
        if payload["last_contact_date"] is None:
            payload["last_contact_date"] = current_day
        if payload["is_prospect"] and payload["next_follow_up"] is None:
            payload["next_follow_up"] = _follow_up_after(current_day)

        client = Client(**payload, created_by=actor.user_id)
        with transaction(session):
            session.add(client)
            session.flush()
            kind = "prospect" if client.is_prospect else "client"
            self.activity_service.record(
                session,
                actor,
                title=f"New {kind} created: {client.name}",
                description=f"Type: {client.type}",
                activity_type="info",
                related_type="client",
                related_id=client.id,
            )
            events.publish(
                events.build_envelope(
                    "client.created",
                    actor.user_id,
                    {"client_id": client.id, "is_prospect": client.is_prospect},
                )
            )
        session.refresh(client)
        logger.info("client.created", extra={"actor_user_id": actor.user_id, "entity_id": client.id})
        return ClientRead.model_validate(client)

    def update_client(
        self,
        session: Session,
        actor: ActorContext,
        client_id: int,
        dto: ClientUpdate,
    ) -> ClientRead:
        client = self._get_or_404(session, client_id)
        changes = {
            key: value
            for key, value in dto.model_dump(exclude_unset=True, mode="python").items()
            if not (key in _NON_NULLABLE_FIELDS and value is None)
        }

        converting = client.is_prospect and changes.get("is_prospect") is False
        if not client.is_prospect and changes.get("is_prospect") is True:
            raise DomainValidationError(
                "A converted client cannot become a prospect again",
                details={"field": "is_prospect"},
            )
        if changes.get("last_contact_date") is not None and changes.get("next_follow_up") is None:
            changes["next_follow_up"] = _follow_up_after(changes["last_contact_date"])
        # A contacted prospect always has a follow-up date.
        last_contact = changes.get("last_contact_date", client.last_contact_date)
        if (
            changes.get("is_prospect", client.is_prospect)
            and last_contact is not None
            and changes.get("next_follow_up", client.next_follow_up) is None
        ):
            changes["next_follow_up"] = _follow_up_after(last_contact)

        with transaction(session):
            for key, value in changes.items():
                setattr(client, key, value)
            session.flush()
            if converting:
                self.activity_service.record(
                    session,
                    actor,
                    title=f"Prospect converted to client: {client.name}",
                    description="The prospect has been converted to a regular client",
                    activity_type="contract",
                    related_type="client",
                    related_id=client.id,
                )
                events.publish(events.build_envelope("client.converted", actor.user_id, {"client_id": client.id}))
        session.refresh(client)
        if converting:
            logger.info("client.converted", extra={"actor_user_id": actor.user_id, "entity_id": client.id})
        return ClientRead.model_validate(client)

    def record_follow_up(
        self,
        session: Session,
        actor: ActorContext,
        client_id: int,
        dto: FollowUpRecord,
        *,
        today: date | None = None,
    ) -> ClientRead:
        client = self._get_or_404(session, client_id)
        current_day = today or date.today()
        next_follow_up = dto.next_follow_up or _follow_up_after(current_day)
        if next_follow_up < current_day:
            raise DomainValidationError("Next follow-up cannot be in the past", details={"field": "next_follow_up"})

        with transaction(session):
            client.last_contact_date = current_day
            client.next_follow_up = next_follow_up
            if dto.notes:
                stamped = f"[{current_day.isoformat()}] {dto.notes.strip()}"
                client.notes = f"{client.notes}\n{stamped}" if client.notes else stamped
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Follow-up with {client.name}",
                description=dto.notes,
                activity_type="info",
                related_type="client",
                related_id=client.id,
            )
        session.refresh(client)
        return ClientRead.model_validate(client)

    def delete_client(self, session: Session, actor: ActorContext, client_id: int) -> None:
        client = self._get_or_404(session, client_id)
        project_count = session.scalar(select(func.count(Project.id)).where(Project.client_id == client_id)) or 0
        if project_count > 0:
            raise IntegrityConflictError(
                f"Client {client_id} still has {project_count} project(s)",
                details={"client_id": client_id, "project_count": project_count},
            )

        name = client.name
        with transaction(session):
            session.delete(client)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Client deleted: {name}",
                activity_type="warning",
                related_type="client",
                related_id=client_id,
            )
        logger.info("client.deleted", extra={"actor_user_id": actor.user_id, "entity_id": client_id})

    @staticmethod
    def _get_or_404(session: Session, client_id: int) -> Client:
        client = session.get(Client, client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client


client_service = ClientService()
