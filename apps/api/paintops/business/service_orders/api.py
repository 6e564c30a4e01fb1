from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.service_orders.schemas import (
    ServiceOrderCreate,
    ServiceOrderRead,
    ServiceOrderSignature,
    ServiceOrderUpdate,
)
from paintops.business.service_orders.service import service_order_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/service-orders", tags=["service_orders"])


@router.get("", response_model=list[ServiceOrderRead])
def list_service_orders(
    request: Request,
    project_id: int | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[ServiceOrderRead] | JSONResponse:
    try:
        require_permission(actor, "service_orders.read")
        return service_order_service.list_orders(db, project_id=project_id, status=status_filter)
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_list_failed")


@router.get("/{order_id}", response_model=ServiceOrderRead)
def get_service_order(
    request: Request,
    order_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ServiceOrderRead | JSONResponse:
    try:
        require_permission(actor, "service_orders.read")
        return service_order_service.get_order(db, order_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_get_failed")


@router.post("", response_model=ServiceOrderRead, status_code=status.HTTP_201_CREATED)
def create_service_order(
    request: Request,
    dto: ServiceOrderCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ServiceOrderRead | JSONResponse:
    try:
        require_permission(actor, "service_orders.write")
        return service_order_service.create_order(db, actor, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_create_failed")


@router.patch("/{order_id}", response_model=ServiceOrderRead)
def update_service_order(
    request: Request,
    order_id: int,
    dto: ServiceOrderUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ServiceOrderRead | JSONResponse:
    try:
        require_permission(actor, "service_orders.write")
        return service_order_service.update_order(db, actor, order_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_update_failed")


@router.post("/{order_id}/start", response_model=ServiceOrderRead)
def start_service_order(
    request: Request,
    order_id: int,
    dto: ServiceOrderSignature | None = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ServiceOrderRead | JSONResponse:
    try:
        require_permission(actor, "service_orders.write")
        return service_order_service.start_order(db, actor, order_id, signature=dto.signature if dto else None)
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_start_failed")


@router.post("/{order_id}/complete", response_model=ServiceOrderRead)
def complete_service_order(
    request: Request,
    order_id: int,
    dto: ServiceOrderSignature | None = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ServiceOrderRead | JSONResponse:
    try:
        require_permission(actor, "service_orders.write")
        return service_order_service.complete_order(db, actor, order_id, signature=dto.signature if dto else None)
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_complete_failed")


@router.delete("/{order_id}", status_code=status.HTTP_200_OK, response_model=None)
def delete_service_order(
    request: Request,
    order_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> Any:
    try:
        require_permission(actor, "service_orders.delete")
        service_order_service.delete_order(db, actor, order_id)
        return {"status": "deleted"}
    except DomainError as exc:
        return domain_error_response(request, exc, code="service_order_delete_failed")
