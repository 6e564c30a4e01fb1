from paintops.business.activities.models import ACTIVITY_TYPES, RELATED_TYPES, Activity
from paintops.business.activities.schemas import ActivityRead

__all__ = [
    "ACTIVITY_TYPES",
    "RELATED_TYPES",
    "Activity",
    "ActivityRead",
]
