from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.quotes.schemas import QuoteCostInput, QuoteCreate, QuotePreview, QuoteRead
from paintops.business.quotes.service import quote_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/quotes", tags=["quotes"])


@router.get("", response_model=list[QuoteRead])
def list_quotes(
    request: Request,
    project_id: int | None = Query(default=None),
    is_approved: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[QuoteRead] | JSONResponse:
    try:
        require_permission(actor, "quotes.read")
        return quote_service.list_quotes(db, project_id=project_id, is_approved=is_approved)
    except DomainError as exc:
        return domain_error_response(request, exc, code="quote_list_failed")


@router.post("/preview", response_model=QuotePreview)
def preview_quote(
    request: Request,
    dto: QuoteCostInput,
    actor: ActorContext = Depends(get_current_actor),
) -> QuotePreview | JSONResponse:
    try:
        require_permission(actor, "quotes.read")
        return quote_service.preview(dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="quote_preview_failed")


@router.get("/{quote_id}", response_model=QuoteRead)
def get_quote(
    request: Request,
    quote_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> QuoteRead | JSONResponse:
    try:
        require_permission(actor, "quotes.read")
        return quote_service.get_quote(db, quote_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="quote_get_failed")


@router.post("", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
def create_quote(
    request: Request,
    dto: QuoteCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> QuoteRead | JSONResponse:
    try:
        require_permission(actor, "quotes.write")
        return quote_service.create_quote(db, actor, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="quote_create_failed")


@router.post("/{quote_id}/approve", response_model=QuoteRead)
def approve_quote(
    request: Request,
    quote_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> QuoteRead | JSONResponse:
    try:
        require_permission(actor, "quotes.write")
        return quote_service.approve_quote(db, actor, quote_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="quote_approve_failed")


@router.post("/{quote_id}/send", response_model=QuoteRead)
def send_quote(
    request: Request,
    quote_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> QuoteRead | JSONResponse:
    try:
        require_permission(actor, "quotes.write")
        return quote_service.send_quote(db, actor, quote_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="quote_send_failed")
