from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from paintops.api.errors import domain_error_response
from paintops.business.dashboard.schemas import DashboardRead
from paintops.business.dashboard.service import dashboard_service
from paintops.core.auth import get_current_actor
from paintops.core.database import get_db
from paintops.platform.errors import DomainError
from paintops.platform.security import ActorContext, require_permission


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardRead)
def get_dashboard(
    request: Request,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_current_actor),
) -> DashboardRead | JSONResponse:
    try:
        require_permission(actor, "dashboard.read")
        return dashboard_service.get_dashboard(db)
    except DomainError as exc:
        return domain_error_response(request, exc, code="dashboard_get_failed")
