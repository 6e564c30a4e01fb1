from __future__ import annotations

from dataclasses import dataclass

from paintops.platform.security.roles import permissions_for_role


@dataclass(slots=True)
class ActorContext:
    """The authenticated user on whose behalf a service operation runs."""

    user_id: int
    username: str
    role: str
    correlation_id: str | None = None

    @property
    def permissions(self) -> frozenset[str]:
        return permissions_for_role(self.role)

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"
