from paintops.business.clients.models import CLIENT_TYPES, Client
from paintops.business.clients.schemas import (
    ClientCreate,
    ClientDetailRead,
    ClientProjectSummary,
    ClientRead,
    ClientUpdate,
    FollowUpRecord,
)

__all__ = [
    "CLIENT_TYPES",
    "Client",
    "ClientCreate",
    "ClientDetailRead",
    "ClientProjectSummary",
    "ClientRead",
    "ClientUpdate",
    "FollowUpRecord",
]
