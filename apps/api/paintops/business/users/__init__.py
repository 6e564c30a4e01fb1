from paintops.business.users.models import User
from paintops.business.users.schemas import MeRead, UserCreate, UserRead, UserUpdate

__all__ = [
    "User",
    "MeRead",
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
