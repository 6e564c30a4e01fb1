from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from paintops.core.config import Settings


SERVICE_NAME = "paintops-api"

_provider: TracerProvider | None = None
_exporters_attached = False


def _provider_for(settings: Settings | None = None) -> TracerProvider:
    global _provider

    if _provider is None:
        attributes = {"service.name": SERVICE_NAME, "service.version": os.getenv("APP_VERSION", "0.1.0")}
        if settings is not None:
            attributes["deployment.environment"] = settings.app_env
        _provider = TracerProvider(resource=Resource.create(attributes))
        trace.set_tracer_provider(_provider)
    return _provider


def setup_otel(settings: Settings) -> TracerProvider | None:
    """Install the tracer provider and its exporters once, when tracing is switched on."""
    global _exporters_attached

    if not settings.otel_enabled:
        return None

    provider = _provider_for(settings)
    if _exporters_attached:
        return provider

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    if os.getenv("OTEL_CONSOLE_EXPORTER", "false").lower() == "true":
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    _exporters_attached = True
    return provider


def setup_inmemory_otel() -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    _provider_for().add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


@contextmanager
def status_transition_span(project_id: int, from_status: str, to_status: str, source: str) -> Iterator[Any]:
    tracer = trace.get_tracer("paintops.projects")
    with tracer.start_as_current_span("project.status_transition") as span:
        span.set_attribute("project.id", project_id)
        span.set_attribute("project.from_status", from_status)
        span.set_attribute("project.to_status", to_status)
        span.set_attribute("project.transition_source", source)
        yield span


def server_request_hook(span: Any, scope: dict[str, Any]) -> None:
    if span is None or not span.is_recording():
        return
    for name, value in scope.get("headers", []):
        if name == b"x-correlation-id":
            span.set_attribute("correlation_id", value.decode("latin-1"))
            return
