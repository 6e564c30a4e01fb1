from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.users.schemas import UserCreate, UserRead, UserUpdate
from paintops.business.users.service import user_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[UserRead])
def list_users(
    request: Request,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[UserRead] | JSONResponse:
    try:
        require_permission(actor, "users.manage")
        return user_service.list_users(db)
    except DomainError as exc:
        return domain_error_response(request, exc, code="user_list_failed")


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    request: Request,
    dto: UserCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> UserRead | JSONResponse:
    try:
        require_permission(actor, "users.manage")
        return user_service.create_user(db, actor, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="user_create_failed")


@router.patch("/{user_id}", response_model=UserRead)
def update_user(
    request: Request,
    user_id: int,
    dto: UserUpdate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> UserRead | JSONResponse:
    try:
        require_permission(actor, "users.manage")
        return user_service.update_user(db, actor, user_id, dto)
    except DomainError as exc:
        return domain_error_response(request, exc, code="user_update_failed")


@router.delete("/{user_id}", status_code=status.HTTP_200_OK, response_model=None)
def delete_user(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> Any:
    try:
        require_permission(actor, "users.manage")
        user_service.delete_user(db, actor, user_id)
        return {"status": "deleted"}
    except DomainError as exc:
        return domain_error_response(request, exc, code="user_delete_failed")
