from paintops.core.database import Base
from paintops.business.users.models import User
from paintops.business.clients.models import Client
from paintops.business.projects.models import Project, ProjectImage
from paintops.business.personnel.models import Personnel, ProjectAssignment
from paintops.business.quotes.models import Quote
from paintops.business.service_orders.models import ServiceOrder
from paintops.business.activities.models import Activity

__all__ = [
    "Base",
    "User",
    "Client",
    "Project",
    "ProjectImage",
    "Personnel",
    "ProjectAssignment",
    "Quote",
    "ServiceOrder",
    "Activity",
]
