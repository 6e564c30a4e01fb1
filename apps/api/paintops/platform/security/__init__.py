from paintops.platform.security.context import ActorContext
from paintops.platform.security.roles import (
    ROLE_PERMISSIONS,
    ROLES,
    has_permission,
    permissions_for_role,
    require_permission,
)

__all__ = [
    "ActorContext",
    "ROLE_PERMISSIONS",
    "ROLES",
    "has_permission",
    "permissions_for_role",
    "require_permission",
]
