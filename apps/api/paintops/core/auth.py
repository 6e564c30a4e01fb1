from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Depends
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from starlette.requests import Request

from paintops.context import get_correlation_id
from paintops.core.config import get_settings
from paintops.core.database import get_db
from paintops.platform.errors import MissingActorError
from paintops.platform.security.context import ActorContext


@dataclass
class AuthUser:
    sub: str
    claims: dict[str, Any]


def extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("authorization", "")
    return auth_header.replace("Bearer ", "", 1) if auth_header.startswith("Bearer ") else ""


def decode_token(token: str) -> AuthUser:
    if not token:
        raise MissingActorError("Missing bearer token")

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise MissingActorError("Invalid bearer token") from exc

    subject = payload.get("sub")
    if subject is None or str(subject) == "":
        raise MissingActorError("Token has no subject")
    return AuthUser(sub=str(subject), claims=payload)


def issue_token(user_id: int, *, extra_claims: dict[str, Any] | None = None) -> str:
    settings = get_settings()
    claims: dict[str, Any] = {"sub": str(user_id)}
    if extra_claims:
        claims.update(extra_claims)
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def get_current_actor(request: Request, db: Session = Depends(get_db)) -> ActorContext:
    from paintops.business.users.models import User

    auth_user = decode_token(extract_bearer_token(request))
    try:
        user_id = int(auth_user.sub)
    except ValueError as exc:
        raise MissingActorError("Token subject is not a user id") from exc

    user = db.get(User, user_id)
    if user is None:
        raise MissingActorError("Token subject does not match a known user")

    correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None)
    return ActorContext(
        user_id=user.id,
        username=user.username,
        role=user.role,
        correlation_id=correlation_id,
    )
