from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.activities.schemas import ActivityRead
from paintops.business.activities.service import MAX_RECENT_LIMIT, activity_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("", response_model=list[ActivityRead])
def list_activities(
    request: Request,
    limit: int | None = Query(default=None, ge=1, le=MAX_RECENT_LIMIT),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> list[ActivityRead] | JSONResponse:
    try:
        require_permission(actor, "activities.read")
        return activity_service.list_recent(db, limit=limit)
    except DomainError as exc:
        return domain_error_response(request, exc, code="activity_list_failed")
