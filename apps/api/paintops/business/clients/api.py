from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.clients.schemas import (
    ClientCreate,
    ClientDetailRead,
    ClientRead,
    ClientUpdate,
    FollowUpRecord,
)
from paintops.business.clients.service import client_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("", response_model=list[ClientRead])
def list_clients(
    request: Request,
    is_prospect: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[ClientRead] | JSONResponse:
    try:
        require_permission(actor, "clients.read")
        return client_service.list_clients(db, is_prospect=is_prospect, search=search)
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_list_failed")


@router.get("/follow-ups", response_model=list[ClientRead])
def list_follow_ups(
    request: Request,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[ClientRead] | JSONResponse:
    try:
        require_permission(actor, "clients.read")
        return client_service.list_follow_ups(db)
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_follow_up_list_failed")


@router.get("/{client_id}", response_model=ClientDetailRead)
def get_client(
    request: Request,
    client_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ClientDetailRead | JSONResponse:
    try:
        require_permission(actor, "clients.read")
        return client_service.get_client(db, client_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_get_failed")


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    request: Request,
    dto: ClientCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ClientRead | JSONResponse:
    try:
        require_permission(actor, "clients.write")
        return client_service.create_client(db, actor, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_create_failed")


@router.patch("/{client_id}", response_model=ClientRead)
def update_client(
    request: Request,
    client_id: int,
    dto: ClientUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ClientRead | JSONResponse:
    try:
        require_permission(actor, "clients.write")
        return client_service.update_client(db, actor, client_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_update_failed")


@router.post("/{client_id}/follow-up", response_model=ClientRead)
def record_follow_up(
    request: Request,
    client_id: int,
    dto: FollowUpRecord,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ClientRead | JSONResponse:
    try:
        require_permission(actor, "clients.write")
        return client_service.record_follow_up(db, actor, client_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_follow_up_failed")


@router.delete("/{client_id}", status_code=status.HTTP_200_OK, response_model=None)
def delete_client(
    request: Request,
    client_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> Any:
    try:
        require_permission(actor, "clients.delete")
        client_service.delete_client(db, actor, client_id)
        return {"status": "deleted"}
    except DomainError as exc:
        return domain_error_response(request, exc, code="client_delete_failed")
