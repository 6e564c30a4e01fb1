from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from paintops.api.errors import error_response
from paintops.core.auth import decode_token, extract_bearer_token
from paintops.core.config import get_settings
from paintops.platform.errors import MissingActorError


logger = logging.getLogger("paintops.rate_limit")

WINDOW_SECONDS = 60
MUTATING_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})
# POST endpoints that compute without persisting.
READ_ONLY_POSTS = frozenset({"/api/quotes/preview"})


@dataclass
class _Bucket:
    tokens: float
    refilled_at: float

    def take(self, now: float, capacity: int, per_second: float) -> int:
        """Spend one token. Returns 0 on success, else whole seconds until a token is back."""
        self.tokens = min(float(capacity), self.tokens + max(0.0, now - self.refilled_at) * per_second)
        self.refilled_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return 0
        return max(1, math.ceil((1.0 - self.tokens) / per_second))


class MutationRateLimiter:
    """Token buckets keyed by (user, route group), refilled continuously over the window."""

    def __init__(self, window_seconds: int = WINDOW_SECONDS) -> None:
        self.window_seconds = window_seconds
        self._lock = threading.Lock()
        self._buckets: dict[tuple[str, str], _Bucket] = {}

    def retry_after(self, user_key: str, route_group: str, capacity: int) -> int:
        if capacity <= 0:
            return self.window_seconds
        now = time.monotonic()
        with self._lock:
            bucket = self._buckets.setdefault((user_key, route_group), _Bucket(float(capacity), now))
            return bucket.take(now, capacity, capacity / self.window_seconds)

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


limiter = MutationRateLimiter()


class MutationRateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        settings = get_settings()
        path = request.url.path
        if (
            settings.rate_limit_disabled
            or not path.startswith("/api/")
            or request.method.upper() not in MUTATING_METHODS
            or path.rstrip("/") in READ_ONLY_POSTS
        ):
            return await call_next(request)

        user_key = _user_key(request)
        route_group = _route_group(path)
        wait = limiter.retry_after(user_key, route_group, settings.rate_limit_mutations_per_minute)
        if not wait:
            return await call_next(request)

        logger.warning(
            "rate_limit.blocked",
            extra={"method": request.method, "path": path, "actor_user_id": user_key},
        )
        return error_response(
            request,
            status_code=429,
            code="rate_limited",
            message="Too many requests",
            details={"route_group": route_group, "retry_after": wait},
            headers={"Retry-After": str(wait)},
        )


def _route_group(path: str) -> str:
    # /api/<group>/...
    parts = [part for part in path.split("/") if part]
    return parts[1] if len(parts) > 1 else "api"


def _user_key(request: Request) -> str:
    try:
        return decode_token(extract_bearer_token(request)).sub
    except MissingActorError:
        return "anonymous"


def reset_rate_limiter() -> None:
    limiter.clear()
