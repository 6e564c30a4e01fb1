from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


HTTP_REQUESTS = Counter("http_requests_total", "HTTP requests served", ["method", "path", "status"])
HTTP_LATENCY = Histogram("http_request_duration_seconds", "HTTP request latency in seconds", ["method", "path"])

STATUS_WRITES = Counter(
    "project_status_transitions_total",
    "Project status writes, by what caused them and the status written",
    ["source", "status"],
)
QUOTES_CREATED = Counter("quotes_created_total", "Quotes created")
QUOTES_APPROVED = Counter("quotes_approved_total", "Quotes moved to approved")
SERVICE_ORDER_EVENTS = Counter("service_order_events_total", "Service order lifecycle events", ["event"])

_TEMPLATE_PARAM = re.compile(r"\{[^{}]+\}")
_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


def resolve_http_path_label(request: Request) -> str:
    """Low-cardinality path label: the matched route template, or the raw path with ids masked."""
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if isinstance(template, str) and template:
        return _TEMPLATE_PARAM.sub("{id}", template)
    return _NUMERIC_SEGMENT.sub("/{id}", request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    HTTP_REQUESTS.labels(method=method, path=path, status=str(status)).inc()
    HTTP_LATENCY.labels(method=method, path=path).observe(duration)


def observe_project_status_transition(source: str, status: str) -> None:
    STATUS_WRITES.labels(source=source, status=status).inc()


def observe_quote_created() -> None:
    QUOTES_CREATED.inc()


def observe_quote_approved() -> None:
    QUOTES_APPROVED.inc()


def observe_service_order_event(event: str) -> None:
    SERVICE_ORDER_EVENTS.labels(event=event).inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
