from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from paintops.api.errors import error_response
from paintops.business.activities.api import router as activities_router
from paintops.business.clients.api import router as clients_router
from paintops.business.dashboard.api import router as dashboard_router
from paintops.business.personnel.api import assignments_router, router as personnel_router
from paintops.business.projects.api import router as projects_router
from paintops.business.quotes.api import router as quotes_router
from paintops.business.service_orders.api import router as service_orders_router
from paintops.business.users.api import router as users_router
from paintops.business.users.schemas import MeRead
from paintops.core.auth import get_current_actor
from paintops.core.config import get_settings
from paintops.metrics import generate_metrics_payload, metrics_content_type
from paintops.platform.security import ActorContext, has_permission

router = APIRouter()
router.include_router(dashboard_router)
router.include_router(users_router)
router.include_router(clients_router)
router.include_router(projects_router)
router.include_router(assignments_router)
router.include_router(personnel_router)
router.include_router(quotes_router)
router.include_router(service_orders_router)
router.include_router(activities_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/me", tags=["auth"], response_model=MeRead)
def me(actor: ActorContext = Depends(get_current_actor)) -> MeRead:
    return MeRead(
        user_id=actor.user_id,
        username=actor.username,
        role=actor.role,
        permissions=sorted(actor.permissions),
    )


@router.get("/metrics", tags=["system"], response_model=None)
def metrics(request: Request, actor: ActorContext = Depends(get_current_actor)) -> Response | JSONResponse:
    settings = get_settings()
    if not settings.metrics_enabled:
        return error_response(request, status_code=404, code="not_found", message="not found")
    if not has_permission(actor, "system.metrics.read"):
        return error_response(
            request,
            status_code=403,
            code="metrics_forbidden",
            message="Missing permission: system.metrics.read",
        )
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
