# Export all placement models for easy imports
from .base import Base
from .criterion import PlacementCriterion
from .readiness import PlacementReadiness
from .profile import PlacementStudentProfile
from .job import PlacementJob
from .interest import PlacementInterestRequest
from .application import PlacementApplication

__all__ = [
    "Base",
    "PlacementCriterion",
    "PlacementReadiness",
    "PlacementStudentProfile",
    "PlacementJob",
    "PlacementInterestRequest",
    "PlacementApplication",
]
