from paintops.business.projects.models import IMAGE_TYPES, PRIORITIES, Project, ProjectImage
from paintops.business.projects.status import (
    PERMISSIVE_TRANSITIONS,
    PIPELINE,
    STRICT_TRANSITIONS,
    ProjectStatus,
    TransitionSource,
)

__all__ = [
    "IMAGE_TYPES",
    "PRIORITIES",
    "Project",
    "ProjectImage",
    "PERMISSIVE_TRANSITIONS",
    "PIPELINE",
    "STRICT_TRANSITIONS",
    "ProjectStatus",
    "TransitionSource",
]
