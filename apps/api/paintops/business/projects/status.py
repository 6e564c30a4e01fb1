from __future__ import annotations

from enum import Enum

from paintops.platform.errors import DomainValidationError


class ProjectStatus(str, Enum):
    PENDING_VISIT = "pending_visit"
    QUOTE_SENT = "quote_sent"
    QUOTE_APPROVED = "quote_approved"
    IN_PREPARATION = "in_preparation"
    IN_PROGRESS = "in_progress"
    FINAL_REVIEW = "final_review"
    COMPLETED = "completed"
    ARCHIVED = "archived"


PIPELINE: tuple[str, ...] = tuple(item.value for item in ProjectStatus)

STATUS_LABELS: dict[str, str] = {
    "pending_visit": "Pending Visit",
    "quote_sent": "Quote Sent",
    "quote_approved": "Quote Approved",
    "in_preparation": "In Preparation",
    "in_progress": "In Progress",
    "final_review": "Final Review",
    "completed": "Completed",
    "archived": "Archived",
}

PERMISSIVE_TRANSITIONS: dict[str, set[str]] = {status: set(PIPELINE) for status in PIPELINE}

# One step forward, one step back, archive from anywhere. Staying put is always allowed.
STRICT_TRANSITIONS: dict[str, set[str]] = {
    "pending_visit": {"pending_visit", "quote_sent", "archived"},
    "quote_sent": {"quote_sent", "quote_approved", "pending_visit", "archived"},
    "quote_approved": {"quote_approved", "in_preparation", "quote_sent", "archived"},
    "in_preparation": {"in_preparation", "in_progress", "quote_approved", "archived"},
    "in_progress": {"in_progress", "final_review", "in_preparation", "archived"},
    "final_review": {"final_review", "completed", "in_progress", "archived"},
    "completed": {"completed", "archived", "final_review"},
    "archived": {"archived", "completed"},
}

ACTIVE_STATUSES = frozenset({"in_preparation", "in_progress"})


class TransitionSource(str, Enum):
    MANUAL = "manual"
    QUOTE_CREATED = "quote_created"
    QUOTE_APPROVED = "quote_approved"
    SERVICE_ORDER_CREATED = "service_order_created"
    SERVICE_ORDER_STARTED = "service_order_started"
    SERVICE_ORDER_COMPLETED = "service_order_completed"


def parse_status(value: str | ProjectStatus) -> ProjectStatus:
    if isinstance(value, ProjectStatus):
        return value
    try:
        return ProjectStatus(value)
    except ValueError as exc:
        raise DomainValidationError(
            f"Unknown project status: {value}",
            details={"field": "status", "allowed": list(PIPELINE)},
        ) from exc


def transition_table(strict: bool) -> dict[str, set[str]]:
    return STRICT_TRANSITIONS if strict else PERMISSIVE_TRANSITIONS


def is_transition_allowed(current: str, target: str, *, strict: bool) -> bool:
    return target in transition_table(strict).get(current, set())
