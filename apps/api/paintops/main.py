from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from paintops import events
from paintops.api.errors import error_response
from paintops.api.routes import router as api_router
from paintops.context import correlation_scope
from paintops.core.config import get_settings
from paintops.core.database import SessionLocal
from paintops.logging import configure_logging
from paintops.middleware.correlation_id import CorrelationIdMiddleware
from paintops.middleware.rate_limit import MutationRateLimitMiddleware
from paintops.middleware.request_logging import RequestLoggingMiddleware
from paintops.otel import server_request_hook, setup_otel
from paintops.platform.errors import DomainError


configure_logging()
logger = logging.getLogger("paintops.lifecycle")


def _on_system_started(envelope: events.Envelope) -> None:
    logger.info("system_event", extra={"event_name": envelope["event_type"]})


def _seed_bootstrap_superadmin() -> None:
    from paintops.business.users.seed import ensure_bootstrap_superadmin

    username = get_settings().bootstrap_superadmin_username
    if not username:
        return
    session = SessionLocal()
    try:
        ensure_bootstrap_superadmin(session, username)
    finally:
        session.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    events.event_bus.subscribe("system.started", _on_system_started)
    with correlation_scope("startup"):
        _seed_bootstrap_superadmin()
        events.publish(events.build_envelope("system.started", None, {"service": "api"}))
    yield
    events.event_bus.unsubscribe("system.started", _on_system_started)


app = FastAPI(title="PaintOps API", version="0.1.0", lifespan=lifespan)
app.add_middleware(MutationRateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.include_router(api_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):  # type: ignore[no-untyped-def]
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return error_response(
        request,
        status_code=422,
        code="validation_failed",
        message="Request validation failed",
        details=details,
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):  # type: ignore[no-untyped-def]
    if exc.status_code == 401:
        return error_response(
            request,
            status_code=401,
            code="unauthorized",
            message=exc.message,
            details=exc.details,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return error_response(
        request, status_code=exc.status_code, code="request_failed", message=exc.message, details=exc.details
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):  # type: ignore[no-untyped-def]
    logger.error("unhandled_error", exc_info=exc, extra={"path": request.url.path, "error": str(exc)})
    return error_response(
        request,
        status_code=500,
        code="internal_error",
        message="Internal server error",
    )


setup_otel(get_settings())

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=server_request_hook)
