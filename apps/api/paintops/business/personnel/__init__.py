from paintops.business.personnel.models import PERSONNEL_TYPES, Personnel, ProjectAssignment
from paintops.business.personnel.schemas import (
    AssignmentCreate,
    AssignmentRead,
    AvailabilityRead,
    PersonnelCreate,
    PersonnelRead,
    PersonnelUpdate,
)

__all__ = [
    "PERSONNEL_TYPES",
    "Personnel",
    "ProjectAssignment",
    "AssignmentCreate",
    "AssignmentRead",
    "AvailabilityRead",
    "PersonnelCreate",
    "PersonnelRead",
    "PersonnelUpdate",
]
