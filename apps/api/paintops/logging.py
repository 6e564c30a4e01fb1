from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from paintops.context import get_correlation_id
from paintops.core.config import Settings, get_settings


# Only these ``extra=`` keys reach the JSON line; anything else is dropped.
LOG_FIELDS = frozenset(
    {
        "method",
        "path",
        "status_code",
        "duration_ms",
        "actor_user_id",
        "entity_type",
        "entity_id",
        "project_id",
        "from_status",
        "to_status",
        "source",
        "event_name",
        "error",
    }
)
_MAX_ERROR_LENGTH = 500

_base_factory = logging.getLogRecordFactory()


def _correlated_record(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _base_factory(*args, **kwargs)
    record.correlation_id = get_correlation_id()
    return record


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: fixed envelope keys plus whitelisted ``fields``."""

    def __init__(self, *, service: str = "paintops-api", environment: str = "local") -> None:
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        fields = {key: value for key, value in record.__dict__.items() if key in LOG_FIELDS}
        if isinstance(fields.get("error"), str):
            fields["error"] = fields["error"][:_MAX_ERROR_LENGTH]

        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "service": self.service,
            "env": self.environment,
            "correlation_id": getattr(record, "correlation_id", None),
            "fields": fields,
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(settings: Settings | None = None) -> None:
    root = logging.getLogger()
    if getattr(root, "_paintops_configured", False):
        return

    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter(service=settings.app_name, environment=settings.app_env))

    logging.setLogRecordFactory(_correlated_record)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    root._paintops_configured = True  # type: ignore[attr-defined]
