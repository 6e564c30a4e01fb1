from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paintops.business.activities.service import ActivityService
from paintops.business.users.models import User
from paintops.business.users.schemas import UserCreate, UserRead, UserUpdate
from paintops.core.database import transaction
from paintops.platform.errors import AuthorizationError, DomainValidationError, IntegrityConflictError, NotFoundError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.users")

SUPERADMIN = "superadmin"


@dataclass(slots=True)
class UserService:
    activity_service: ActivityService = field(default_factory=ActivityService)

    def list_users(self, session: Session) -> list[UserRead]:
        rows = session.scalars(select(User).order_by(User.username.asc())).all()
        return [UserRead.model_validate(row) for row in rows]

    def get_user(self, session: Session, user_id: int) -> UserRead:
        return UserRead.model_validate(self._get_or_404(session, user_id))

    def create_user(self, session: Session, actor: ActorContext, dto: UserCreate) -> UserRead:
        if dto.role == SUPERADMIN and not actor.is_superadmin:
            raise AuthorizationError("Only a superadmin can create a superadmin")
        self._ensure_username_free(session, dto.username)

        user = User(**dto.model_dump(mode="python"))
        try:
            with transaction(session):
                session.add(user)
                session.flush()
                self.activity_service.record(
                    session,
                    actor,
                    title=f"User {user.username} created",
                    activity_type="info",
                    related_type="user",
                    related_id=user.id,
                )
        except IntegrityError as exc:
            raise IntegrityConflictError(f"Username {dto.username} is already taken") from exc
        session.refresh(user)

        logger.info("user.created", extra={"actor_user_id": actor.user_id, "entity_id": user.id})
        return UserRead.model_validate(user)

    def update_user(self, session: Session, actor: ActorContext, user_id: int, dto: UserUpdate) -> UserRead:
        user = self._get_or_404(session, user_id)
        changes = dto.model_dump(exclude_unset=True, mode="python")

        if user.role == SUPERADMIN and not actor.is_superadmin:
            raise AuthorizationError("Only a superadmin can edit a superadmin account")
        if changes.get("role") == SUPERADMIN and not actor.is_superadmin:
            raise AuthorizationError("Only a superadmin can grant the superadmin role")
        if "role" in changes and changes["role"] is None:
            changes.pop("role")
        if changes.get("username") and changes["username"] != user.username:
            self._ensure_username_free(session, changes["username"])

        previous_role = user.role
        try:
            with transaction(session):
                for key, value in changes.items():
                    setattr(user, key, value)
                session.flush()
                description = None
                if user.role != previous_role:
                    description = f"Role changed from {previous_role} to {user.role}"
                self.activity_service.record(
                    session,
                    actor,
                    title=f"User {user.username} updated",
                    description=description,
                    activity_type="info",
                    related_type="user",
                    related_id=user.id,
                )
        except IntegrityError as exc:
            raise IntegrityConflictError("Username is already taken") from exc
        session.refresh(user)
        return UserRead.model_validate(user)

    def delete_user(self, session: Session, actor: ActorContext, user_id: int) -> None:
        user = self._get_or_404(session, user_id)
        if user.id == actor.user_id:
            raise DomainValidationError("You cannot delete your own account", details={"user_id": user_id})
        if user.role == SUPERADMIN and not actor.is_superadmin:
            raise AuthorizationError("Only a superadmin can delete a superadmin account")

        username = user.username
        with transaction(session):
            session.delete(user)
            session.flush()
            self.activity_service.record(
                session,
                actor,
                title=f"User {username} deleted",
                activity_type="warning",
                related_type="user",
                related_id=user_id,
            )
        logger.info("user.deleted", extra={"actor_user_id": actor.user_id, "entity_id": user_id})

    @staticmethod
    def _get_or_404(session: Session, user_id: int) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    def _ensure_username_free(session: Session, username: str) -> None:
        existing = session.scalar(select(User.id).where(User.username == username))
        if existing is not None:
            raise IntegrityConflictError(f"Username {username} is already taken", details={"field": "username"})


user_service = UserService()
