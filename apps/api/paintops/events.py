"""In-process domain events.

Services build an envelope with :func:`build_envelope` and hand it to :func:`publish`
inside their transaction. Handlers run synchronously, in subscription order; a handler
subscribed to ``"*"`` sees every event. ``published_events`` keeps the most recent
``PUBLISHED_EVENTS_LIMIT`` envelopes for inspection.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict, deque
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from paintops.context import get_correlation_id


logger = logging.getLogger("paintops.events")

Envelope = dict[str, Any]
EventHandler = Callable[[Envelope], None]

WILDCARD = "*"
ENVELOPE_VERSION = 1
PUBLISHED_EVENTS_LIMIT = 1000


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def dispatch(self, envelope: Envelope) -> None:
        event_type = envelope["event_type"]
        targets = [*self._handlers.get(event_type, ()), *self._handlers.get(WILDCARD, ())]
        for handler in targets:
            handler(envelope)


event_bus = EventBus()
published_events: deque[Envelope] = deque(maxlen=PUBLISHED_EVENTS_LIMIT)


def build_envelope(event_type: str, actor_user_id: int | None, payload: dict[str, Any]) -> Envelope:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "actor_user_id": actor_user_id,
        "version": ENVELOPE_VERSION,
        "payload": payload,
    }


def publish(envelope: Envelope) -> None:
    if not envelope.get("event_type"):
        raise ValueError("event envelope has no event_type")
    envelope.setdefault("correlation_id", get_correlation_id())

    published_events.append(envelope)
    logger.debug("event.published", extra={"event_name": envelope["event_type"]})
    event_bus.dispatch(envelope)
