from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.personnel.schemas import (
    AssignmentCreate,
    AssignmentEnd,
    AssignmentRead,
    AvailabilityRead,
    PersonnelCreate,
    PersonnelRead,
    PersonnelUpdate,
)
from paintops.business.personnel.service import personnel_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/personnel", tags=["personnel"])
assignments_router = APIRouter(prefix="/api", tags=["personnel.assignments"])


@router.get("", response_model=list[PersonnelRead])
def list_personnel(
    request: Request,
    is_active: bool | None = Query(default=None),
    personnel_type: str | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[PersonnelRead] | JSONResponse:
    try:
        require_permission(actor, "personnel.read")
        return personnel_service.list_personnel(db, is_active=is_active, personnel_type=personnel_type)
    except DomainError as exc:
        return domain_error_response(request, exc, code="personnel_list_failed")


@router.get("/availability", response_model=AvailabilityRead)
def get_availability(
    request: Request,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> AvailabilityRead | JSONResponse:
    try:
        require_permission(actor, "personnel.read")
        return personnel_service.get_availability(db)
    except DomainError as exc:
        return domain_error_response(request, exc, code="personnel_availability_failed")


@router.get("/{personnel_id}", response_model=PersonnelRead)
def get_personnel(
    request: Request,
    personnel_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> PersonnelRead | JSONResponse:
    try:
        require_permission(actor, "personnel.read")
        return personnel_service.get_personnel(db, personnel_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="personnel_get_failed")


@router.post("", response_model=PersonnelRead, status_code=status.HTTP_201_CREATED)
def create_personnel(
    request: Request,
    dto: PersonnelCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> PersonnelRead | JSONResponse:
    try:
        require_permission(actor, "personnel.write")
        return personnel_service.create_personnel(db, actor, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="personnel_create_failed")


@router.patch("/{personnel_id}", response_model=PersonnelRead)
def update_personnel(
    request: Request,
    personnel_id: int,
    dto: PersonnelUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> PersonnelRead | JSONResponse:
    try:
        require_permission(actor, "personnel.write")
        return personnel_service.update_personnel(db, actor, personnel_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="personnel_update_failed")


@assignments_router.post(
    "/projects/{project_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def assign_personnel(
    request: Request,
    project_id: int,
    dto: AssignmentCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> AssignmentRead | JSONResponse:
    try:
        require_permission(actor, "personnel.write")
        return personnel_service.assign_to_project(db, actor, project_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="assignment_create_failed")


@assignments_router.post("/assignments/{assignment_id}/end", response_model=AssignmentRead)
def end_assignment(
    request: Request,
    assignment_id: int,
    dto: AssignmentEnd,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> AssignmentRead | JSONResponse:
    try:
        require_permission(actor, "personnel.write")
        return personnel_service.end_assignment(db, actor, assignment_id, end_date=dto.end_date)
    except DomainError as exc:
        return domain_error_response(request, exc, code="assignment_end_failed")
