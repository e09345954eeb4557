"""
Matching Engine Constants

Defines the status enums, proficiency scales, thresholds and weights used by the
readiness tracker, the job match engine and the eligibility gate.
All values are deterministic with no AI/ML components.
"""

import os
from enum import Enum
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()


# =============================================================================
# ROLES
# =============================================================================

class Role(str, Enum):
    """Platform roles, resolved server-side for every mutating call."""
    STUDENT = "student"
    CAMPUS_POC = "campus_poc"
    COORDINATOR = "coordinator"
    MANAGER = "manager"


# Higher rank inherits the permissions of the lower ones
ROLE_RANK: Dict[str, int] = {
    Role.STUDENT.value: 0,
    Role.CAMPUS_POC.value: 1,
    Role.COORDINATOR.value: 2,
    Role.MANAGER.value: 3,
}


# =============================================================================
# READINESS CRITERIA
# =============================================================================

class CriterionInputType(str, Enum):
    ANSWER = "answer"
    LINK = "link"
    YES_NO = "yes_no"
    COMMENT = "comment"


class CriterionCategory(str, Enum):
    PROFILE = "profile"
    SKILLS = "skills"
    TECHNICAL = "technical"
    PREPARATION = "preparation"
    ACADEMIC = "academic"
    OTHER = "other"


class CriterionState(str, Enum):
    """
    Per-student criterion state.

    not_started -> in_progress -> completed -> verified
    A POC rejection sends a completed criterion back to in_progress.
    """
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    VERIFIED = "verified"


class VerificationDecision(str, Enum):
    VERIFIED = "verified"
    REJECTED = "rejected"


# States from which a student submission advances the criterion to completed
REPORTABLE_STATES = (
    CriterionState.NOT_STARTED,
    CriterionState.IN_PROGRESS,
    CriterionState.COMPLETED,
)

DEFAULT_POC_RATING_SCALE = 4

# Seed checklist offered to coordinators when a school has no catalog yet
DEFAULT_CRITERIA: List[Dict[str, str]] = [
    {"criteria_id": "profile_complete", "name": "Profile Completed",
     "description": "All mandatory profile fields are filled", "category": "profile"},
    {"criteria_id": "resume_uploaded", "name": "Resume Uploaded",
     "description": "Latest resume is uploaded and approved", "category": "profile"},
    {"criteria_id": "english_b1", "name": "English B1 Level",
     "description": "English proficiency at least B1 (Speaking & Writing)", "category": "skills"},
    {"criteria_id": "interview_practice", "name": "Interview Practice Sessions",
     "description": "Completed minimum required mock interview sessions", "category": "preparation"},
    {"criteria_id": "dsa_problems", "name": "DSA Problems Solved",
     "description": "Solved minimum required DSA problems", "category": "technical"},
    {"criteria_id": "projects_completed", "name": "Projects Completed",
     "description": "Completed minimum required projects with documentation", "category": "technical"},
    {"criteria_id": "github_active", "name": "GitHub Profile Active",
     "description": "GitHub profile linked and has recent contributions", "category": "profile"},
    {"criteria_id": "soft_skills_assessment", "name": "Soft Skills Assessment",
     "description": "Completed soft skills assessment with minimum score", "category": "skills"},
    {"criteria_id": "attendance_requirement", "name": "Attendance Requirement",
     "description": "Meeting minimum attendance percentage", "category": "academic"},
]

# Readiness reported for a school that has no active criteria (0 or 100)
EMPTY_CATALOG_READINESS = int(os.getenv("EMPTY_CATALOG_READINESS", "0"))


# =============================================================================
# PROFILE & SKILLS
# =============================================================================

class ProfileStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"


class SkillSource(str, Enum):
    CATALOG = "catalog"
    SELF_REPORTED = "self_reported"


class SkillCategory(str, Enum):
    TECHNICAL = "technical"
    SOFT = "soft"
    LANGUAGE = "language"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Proficiency levels 0-4
PROFICIENCY_LABELS: List[str] = ["None", "Beginner", "Intermediate", "Advanced", "Expert"]
MAX_PROFICIENCY = 4

# Soft skills are always rated; 0 is only valid for technical/catalog skills
MIN_RATING_BY_CATEGORY: Dict[str, int] = {
    SkillCategory.TECHNICAL.value: 0,
    SkillCategory.SOFT.value: 1,
    SkillCategory.LANGUAGE.value: 0,
}

# Ordered module progression (School of Programming)
MODULE_HIERARCHY: List[str] = [
    "Foundation",
    "Basics of Programming",
    "DSA",
    "Backend",
    "Full Stack",
    "Interview Prep",
]

DAYS_PER_MONTH = 30


# =============================================================================
# JOBS, INTEREST & APPLICATIONS
# =============================================================================

class ReadinessRequirement(str, Enum):
    YES = "yes"
    IN_PROGRESS = "in_progress"
    NO = "no"


class InterestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    SHORTLISTED = "shortlisted"
    IN_PROGRESS = "in_progress"
    SELECTED = "selected"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class ApplicationMode(str, Enum):
    APPLICATION = "application"
    INTEREST = "interest"


# Applications in these states can no longer be withdrawn
NON_WITHDRAWABLE_STATES = (ApplicationStatus.SELECTED, ApplicationStatus.WITHDRAWN)

IN_PROGRESS_READINESS_THRESHOLD = int(os.getenv("IN_PROGRESS_READINESS_THRESHOLD", "30"))
INTEREST_REASON_MIN_LENGTH = int(os.getenv("INTEREST_REASON_MIN_LENGTH", "50"))
DEFAULT_REJECTION_REASON = "Not approved by Campus PoC"


# =============================================================================
# MATCH SCORING
# =============================================================================

# Skills and eligibility weigh equally; custom requirements only gate can_apply
MATCH_WEIGHTS: Dict[str, float] = {
    "skills": 0.5,
    "eligibility": 0.5,
}

EXCELLENT_MATCH_THRESHOLD = 80
GOOD_MATCH_THRESHOLD = 60
MAX_MISSING_SKILLS_IN_SUMMARY = 3
FULL_MARKS = 100


# =============================================================================
# ELIGIBILITY GATE
# =============================================================================

class GateOutcome(str, Enum):
    """What a student may do about a job, first matching rule wins."""
    ALREADY_APPLIED = "already_applied"
    CLOSED = "closed"
    PROFILE_APPROVAL_REQUIRED = "profile_approval_required"
    AWAITING_POC_DECISION = "awaiting_poc_decision"
    INTEREST_DENIED = "interest_denied"
    APPLY_ALLOWED = "apply_allowed"
    INTEREST_REQUIRED = "interest_required"


GATE_MESSAGES: Dict[str, str] = {
    GateOutcome.ALREADY_APPLIED.value: "You have already applied for this job",
    GateOutcome.CLOSED.value: "Application deadline has passed",
    GateOutcome.PROFILE_APPROVAL_REQUIRED.value: "Your profile must be approved by your Campus PoC before applying",
    GateOutcome.AWAITING_POC_DECISION.value: "Your interest request is awaiting a Campus PoC decision",
    GateOutcome.INTEREST_DENIED.value: "Your interest request for this job was not approved",
    GateOutcome.APPLY_ALLOWED.value: "You can apply for this job",
    GateOutcome.INTEREST_REQUIRED.value: "Some requirements are not met - you can show interest instead",
}


def enum_value(item):
    """Plain value of an enum member; strings pass through."""
    return item.value if isinstance(item, Enum) else item
