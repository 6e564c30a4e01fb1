from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from paintops.business.users.models import User
from paintops.core.database import transaction


logger = logging.getLogger("paintops.users.seed")


def ensure_bootstrap_superadmin(session: Session, username: str) -> User:
    """Create the first superadmin account if it is not there yet.

    Runs at startup before any request, so there is no actor and no activity entry.
    """
    existing = session.scalar(select(User).where(User.username == username))
    if existing is not None:
        if existing.role != "superadmin":
            logger.warning("user.bootstrap_role_mismatch", extra={"entity_id": existing.id})
        return existing

    with transaction(session):
        user = User(username=username, full_name="Administrator", role="superadmin")
        session.add(user)
    session.refresh(user)
    logger.info("user.bootstrap_superadmin_created", extra={"entity_id": user.id})
    return user
