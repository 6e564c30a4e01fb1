from paintops.business.service_orders.models import ServiceOrder
from paintops.business.service_orders.schemas import (
    ServiceOrderCreate,
    ServiceOrderRead,
    ServiceOrderSignature,
    ServiceOrderUpdate,
)

__all__ = [
    "ServiceOrder",
    "ServiceOrderCreate",
    "ServiceOrderRead",
    "ServiceOrderSignature",
    "ServiceOrderUpdate",
]
