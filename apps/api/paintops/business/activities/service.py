from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from paintops.business.activities.models import ACTIVITY_TYPES, RELATED_TYPES, Activity
from paintops.business.activities.schemas import ActivityRead
from paintops.core.config import get_settings
from paintops.platform.errors import DomainValidationError, MissingActorError
from paintops.platform.security.context import ActorContext


logger = logging.getLogger("paintops.activities")

MAX_RECENT_LIMIT = 100


@dataclass(slots=True)
class ActivityService:
    """Append-only log of notable things users did.

    ``record`` only adds and flushes; the caller owns the transaction so the
    entry commits (or rolls back) together with the change it describes.
    """

    def record(
        self,
        session: Session,
        actor: ActorContext | None,
        *,
        title: str,
        activity_type: str = "info",
        related_type: str | None = None,
        related_id: int | None = None,
        description: str | None = None,
    ) -> Activity:
        if actor is None:
            raise MissingActorError("Activities must be attributed to an authenticated user")
        if len(title.strip()) < 3:
            raise DomainValidationError("Activity title must be at least 3 characters", details={"field": "title"})
        if activity_type not in ACTIVITY_TYPES:
            raise DomainValidationError(f"Unknown activity type: {activity_type}", details={"field": "type"})
        if related_type is not None and related_type not in RELATED_TYPES:
            raise DomainValidationError(f"Unknown related type: {related_type}", details={"field": "related_type"})

        activity = Activity(
            title=title.strip(),
            description=description,
            type=activity_type,
            related_type=related_type,
            related_id=related_id,
            created_by=actor.user_id,
        )
        session.add(activity)
        session.flush()
        logger.info(
            "activity.recorded",
            extra={
                "actor_user_id": actor.user_id,
                "entity_type": related_type,
                "entity_id": related_id,
            },
        )
        return activity

    def list_recent(self, session: Session, *, limit: int | None = None) -> list[ActivityRead]:
        effective_limit = limit if limit is not None else get_settings().recent_activity_limit
        effective_limit = max(1, min(effective_limit, MAX_RECENT_LIMIT))

        rows = session.scalars(
            select(Activity).order_by(Activity.created_at.desc(), Activity.id.desc()).limit(effective_limit)
        ).unique().all()
        return [self._to_read(row) for row in rows]

    @staticmethod
    def _to_read(activity: Activity) -> ActivityRead:
        read = ActivityRead.model_validate(activity)
        read.created_by_username = activity.creator.username if activity.creator is not None else None
        return read


activity_service = ActivityService()
