from __future__ import annotations

from typing import TYPE_CHECKING

from paintops.platform.errors import AuthorizationError

if TYPE_CHECKING:
    from paintops.platform.security.context import ActorContext


ROLES = ("superadmin", "admin", "member", "viewer")

_READ_RESOURCES = (
    "clients",
    "projects",
    "personnel",
    "quotes",
    "service_orders",
    "activities",
    "dashboard",
)
_WRITE_RESOURCES = ("clients", "projects", "personnel", "quotes", "service_orders")
_DELETE_RESOURCES = ("clients", "service_orders")

_VIEWER = frozenset(f"{resource}.read" for resource in _READ_RESOURCES)
_MEMBER = _VIEWER | frozenset(f"{resource}.write" for resource in _WRITE_RESOURCES)
_ADMIN = (
    _MEMBER
    | frozenset(f"{resource}.delete" for resource in _DELETE_RESOURCES)
    | {"users.manage", "system.metrics.read"}
)

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    "viewer": _VIEWER,
    "member": _MEMBER,
    "admin": _ADMIN,
    "superadmin": _ADMIN,
}


def permissions_for_role(role: str) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(actor: ActorContext, permission: str) -> bool:
    return permission in actor.permissions


def require_permission(actor: ActorContext, permission: str) -> None:
    if not has_permission(actor, permission):
        raise AuthorizationError(f"Missing permission: {permission}", details={"permission": permission})
