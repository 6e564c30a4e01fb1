from __future__ import annotations

from typing import Any

from fastapi import status


class DomainError(Exception):
    """Base class for failures raised by the domain services.

    Each subclass carries the HTTP status it maps to so routers can translate
    it into the JSON error envelope without inspecting the type.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class DomainValidationError(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} {entity_id} not found", details={"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class AuthorizationError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class MissingActorError(AuthorizationError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authenticated actor required") -> None:
        super().__init__(message)


class IntegrityConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
