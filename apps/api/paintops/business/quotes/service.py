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
from paintops.business.quotes.models import Quote
from paintops.business.quotes.numbering import next_quote_number, quote_number_taken
from paintops.business.quotes.pricing import MAX_AMOUNT, compute_quote_totals
from paintops.business.quotes.schemas import QuoteCostInput, QuoteCreate, QuotePreview, QuoteRead
from paintops.core.database import transaction
from paintops.metrics import observe_quote_approved, observe_quote_created
from paintops.platform.errors import DomainValidationError, IntegrityConflictError, NotFoundError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.quotes")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class QuoteService:
    activity_service: ActivityService = field(default_factory=ActivityService)
    project_service: ProjectService = field(default_factory=ProjectService)

    def list_quotes(
        self,
        session: Session,
        *,
        project_id: int | None = None,
        is_approved: bool | None = None,
    ) -> list[QuoteRead]:
        stmt: Select[tuple[Quote]] = select(Quote)
        if project_id is not None:
            stmt = stmt.where(Quote.project_id == project_id)
        if is_approved is not None:
            stmt = stmt.where(Quote.is_approved.is_(is_approved))
        rows = session.scalars(stmt.order_by(Quote.created_at.desc(), Quote.id.desc())).all()
        return [QuoteRead.model_validate(row) for row in rows]

    def get_quote(self, session: Session, quote_id: int) -> QuoteRead:
        return QuoteRead.model_validate(self._get_or_404(session, quote_id))

    def preview(self, dto: QuoteCostInput) -> QuotePreview:
        totals = compute_quote_totals(dto.materials_cost, dto.labor_cost, dto.additional_costs, dto.margin)
        return QuotePreview(subtotal=totals.subtotal, margin_amount=totals.margin_amount, total=totals.total)

    def create_quote(self, session: Session, actor: ActorContext, dto: QuoteCreate) -> QuoteRead:
        project = session.get(Project, dto.project_id)
        if project is None:
            raise DomainValidationError(f"Project {dto.project_id} does not exist", details={"field": "project_id"})

        if dto.quote_number is not None:
            if quote_number_taken(session, dto.quote_number):
                raise IntegrityConflictError(
                    f"Quote number {dto.quote_number} already exists",
                    details={"field": "quote_number"},
                )
            quote_number = dto.quote_number
        else:
            quote_number = next_quote_number(session)

        totals = compute_quote_totals(dto.materials_cost, dto.labor_cost, dto.additional_costs, dto.margin)
        if totals.total > MAX_AMOUNT:
            raise DomainValidationError(
                "Quote total exceeds the largest storable amount",
                details={"field": "total_amount", "total": str(totals.total), "max": str(MAX_AMOUNT)},
            )
        quote = Quote(
            project_id=project.id,
            quote_number=quote_number,
            materials_cost=dto.materials_cost,
            labor_cost=dto.labor_cost,
            additional_costs=dto.additional_costs,
            margin=dto.margin,
            total_amount=totals.total,
            notes=dto.notes,
            language=dto.language,
            created_by=actor.user_id,
        )
        try:
            with transaction(session):
                session.add(quote)
                session.flush()
                self.activity_service.record(
                    session,
                    actor,
                    title=f"Quote {quote.quote_number} created",
                    description=f"Project: {project.title}. Total: {totals.total}",
                    activity_type="info",
                    related_type="quote",
                    related_id=quote.id,
                )
                if project.status == ProjectStatus.PENDING_VISIT.value:
                    self.project_service.apply_side_effect_status(
                        session,
                        actor,
                        project,
                        ProjectStatus.QUOTE_SENT,
                        TransitionSource.QUOTE_CREATED,
                    )
                events.publish(
                    events.build_envelope(
                        "quote.created",
                        actor.user_id,
                        {"quote_id": quote.id, "project_id": project.id, "total_amount": str(totals.total)},
                    )
                )
        except IntegrityError as exc:
            raise IntegrityConflictError(
                f"Quote number {quote_number} already exists",
                details={"field": "quote_number"},
            ) from exc
        session.refresh(quote)

        observe_quote_created()
        logger.info(
            "quote.created",
            extra={"actor_user_id": actor.user_id, "entity_id": quote.id, "project_id": project.id},
        )
        return QuoteRead.model_validate(quote)

    def approve_quote(self, session: Session, actor: ActorContext, quote_id: int) -> QuoteRead:
        quote = self._get_or_404(session, quote_id)
        if quote.is_approved:
            return QuoteRead.model_validate(quote)

        project = quote.project
        with transaction(session):
            quote.is_approved = True
            quote.approval_date = utcnow()
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Quote {quote.quote_number} approved",
                description=f"Project: {project.title}. Total: {quote.total_amount}",
                activity_type="contract",
                related_type="quote",
                related_id=quote.id,
            )
            self.project_service.apply_side_effect_status(
                session,
                actor,
                project,
                ProjectStatus.QUOTE_APPROVED,
                TransitionSource.QUOTE_APPROVED,
            )
            events.publish(
                events.build_envelope(
                    "quote.approved",
                    actor.user_id,
                    {"quote_id": quote.id, "project_id": project.id},
                )
            )
        session.refresh(quote)

        observe_quote_approved()
        logger.info(
            "quote.approved",
            extra={"actor_user_id": actor.user_id, "entity_id": quote.id, "project_id": project.id},
        )
        return QuoteRead.model_validate(quote)

    def send_quote(self, session: Session, actor: ActorContext, quote_id: int) -> QuoteRead:
        quote = self._get_or_404(session, quote_id)
        with transaction(session):
            quote.sent_at = utcnow()
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"Quote {quote.quote_number} sent to client",
                activity_type="info",
                related_type="quote",
                related_id=quote.id,
            )
        session.refresh(quote)
        return QuoteRead.model_validate(quote)

    @staticmethod
    def _get_or_404(session: Session, quote_id: int) -> Quote:
        quote = session.get(Quote, quote_id)
        if quote is None:
            raise NotFoundError("Quote", quote_id)
        return quote


quote_service = QuoteService()
