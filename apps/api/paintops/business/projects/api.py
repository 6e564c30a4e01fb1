from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.projects.schemas import (
    BoardColumn,
    ProjectCreate,
    ProjectDetailRead,
    ProjectImageCreate,
    ProjectImageRead,
    ProjectRead,
    ProjectStatusUpdate,
    ProjectUpdate,
)
from paintops.business.projects.service import project_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("", response_model=list[ProjectRead])
def list_projects(
    request: Request,
    status_filter: str | None = Query(default=None, alias="status"),
    client_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[ProjectRead] | JSONResponse:
    try:
        require_permission(actor, "projects.read")
        return project_service.list_projects(db, status=status_filter, client_id=client_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_list_failed")


@router.get("/board", response_model=list[BoardColumn])
def get_board(
    request: Request,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[BoardColumn] | JSONResponse:
    try:
        require_permission(actor, "projects.read")
        return project_service.get_board(db)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_board_failed")


@router.get("/{project_id}", response_model=ProjectDetailRead)
def get_project(
    request: Request,
    project_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProjectDetailRead | JSONResponse:
    try:
        require_permission(actor, "projects.read")
        return project_service.get_project(db, project_id)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_get_failed")


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    request: Request,
    dto: ProjectCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProjectRead | JSONResponse:
    try:
        require_permission(actor, "projects.write")
        return project_service.create_project(db, actor, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_create_failed")


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    request: Request,
    project_id: int,
    dto: ProjectUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProjectRead | JSONResponse:
    try:
        require_permission(actor, "projects.write")
        return project_service.update_project(db, actor, project_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_update_failed")


@router.patch("/{project_id}/status", response_model=ProjectRead)
def update_project_status(
    request: Request,
    project_id: int,
    dto: ProjectStatusUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProjectRead | JSONResponse:
    try:
        require_permission(actor, "projects.write")
        return project_service.update_status(db, actor, project_id, dto.status)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_status_update_failed")


@router.post("/{project_id}/images", response_model=ProjectImageRead, status_code=status.HTTP_201_CREATED)
def add_project_image(
    request: Request,
    project_id: int,
    dto: ProjectImageCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> ProjectImageRead | JSONResponse:
    try:
        require_permission(actor, "projects.write")
        return project_service.add_image(db, actor, project_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="project_image_create_failed")
