"""
Placement Logic Module

Provides the deterministic readiness tracker, job match engine, eligibility
gate and approval workflow for student placements.
"""

from .contracts import (
    Actor,
    CriterionDefinition,
    CriterionStatus,
    StudentReadinessRecord,
    SkillEntry,
    StudentProfile,
    JobEligibilityRules,
    RequiredSkill,
    CustomRequirement,
    JobDefinition,
    MatchResult,
    InterestRequest,
    Application,
    EligibilityDecision,
    OperationResult,
    BulkItemResult,
)
from .constants import (
    Role,
    CriterionState,
    VerificationDecision,
    ProfileStatus,
    ApprovalStatus,
    ReadinessRequirement,
    InterestStatus,
    ApplicationStatus,
    ApplicationMode,
    GateOutcome,
)
from .errors import (
    PlacementError,
    ValidationError,
    StateConflictError,
    NotFoundError,
    AuthorizationError,
    TransientCollaboratorError,
)
from .catalog import CriterionCatalog
from .skill_ledger import SkillLedger
from .readiness import ReadinessTracker
from .match_engine import compute_match, MatchCache
from .gate import EligibilityGate
from .workflow import ApprovalWorkflow
from .runner import PlacementService

__all__ = [
    # Main components
    "PlacementService",
    "ReadinessTracker",
    "EligibilityGate",
    "ApprovalWorkflow",
    "CriterionCatalog",
    "SkillLedger",
    "compute_match",
    "MatchCache",

    # Contracts
    "Actor",
    "CriterionDefinition",
    "CriterionStatus",
    "StudentReadinessRecord",
    "SkillEntry",
    "StudentProfile",
    "JobEligibilityRules",
    "RequiredSkill",
    "CustomRequirement",
    "JobDefinition",
    "MatchResult",
    "InterestRequest",
    "Application",
    "EligibilityDecision",
    "OperationResult",
    "BulkItemResult",

    # Enums
    "Role",
    "CriterionState",
    "VerificationDecision",
    "ProfileStatus",
    "ApprovalStatus",
    "ReadinessRequirement",
    "InterestStatus",
    "ApplicationStatus",
    "ApplicationMode",
    "GateOutcome",

    # Errors
    "PlacementError",
    "ValidationError",
    "StateConflictError",
    "NotFoundError",
    "AuthorizationError",
    "TransientCollaboratorError",
]
