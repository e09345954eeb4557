"""
Data Contracts for the Eligibility & Readiness Matching Engine

Defines Pydantic models for the engine inputs (criteria, readiness records,
student profiles, jobs) and outputs (match results, gate decisions).
These contracts are the API boundary for the engine.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from .constants import (
    ApplicationMode,
    ApplicationStatus,
    ApprovalStatus,
    CriterionCategory,
    CriterionInputType,
    CriterionState,
    DEFAULT_POC_RATING_SCALE,
    GateOutcome,
    InterestStatus,
    MAX_PROFICIENCY,
    MIN_RATING_BY_CATEGORY,
    ProfileStatus,
    ReadinessRequirement,
    Role,
    SkillCategory,
    SkillSource,
)


# =============================================================================
# IDENTITY
# =============================================================================

class Actor(BaseModel):
    """
    Caller identity with a role resolved by the authorization collaborator.
    Never built from a client-supplied role claim.
    """
    user_id: str
    role: Role
    campus: Optional[str] = None

    class Config:
        use_enum_values = True


# =============================================================================
# READINESS CONTRACTS
# =============================================================================

class CriterionDefinition(BaseModel):
    """A single checklist item in a school's readiness catalog."""
    criteria_id: str
    name: str
    description: str = ""
    input_type: CriterionInputType = CriterionInputType.ANSWER
    category: CriterionCategory = CriterionCategory.OTHER
    is_mandatory: bool = True
    poc_comment_required: bool = False
    poc_comment_template: Optional[str] = None
    poc_rating_required: bool = False
    poc_rating_scale: int = Field(default=DEFAULT_POC_RATING_SCALE, ge=1)
    is_active: bool = True

    class Config:
        use_enum_values = True


class CriterionStatus(BaseModel):
    """One student's progress on one criterion."""
    criteria_id: str
    status: CriterionState = CriterionState.NOT_STARTED
    self_reported_value: Optional[str] = None
    proof_url: Optional[str] = None
    notes: Optional[str] = None
    verification_notes: Optional[str] = None
    poc_comment: Optional[str] = None
    poc_rating: Optional[int] = None
    completed_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


class StudentReadinessRecord(BaseModel):
    """Per (student, school) readiness checklist state."""
    student_id: str
    school: str
    criteria_status: List[CriterionStatus] = Field(default_factory=list)
    is_job_ready: bool = False
    readiness_percentage: int = Field(default=0, ge=0, le=100)
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None

    def get_status(self, criteria_id: str) -> Optional[CriterionStatus]:
        for entry in self.criteria_status:
            if entry.criteria_id == criteria_id:
                return entry
        return None


class OperationResult(BaseModel):
    """Outcome of an operation that can be logically refused without an error."""
    ok: bool
    reason: Optional[str] = None


# =============================================================================
# PROFILE CONTRACTS
# =============================================================================

class SkillEntry(BaseModel):
    """
    A skill on a student's profile.

    Catalog skills carry an approval status and only count once approved;
    self-reported technical/soft skills count at their self rating.
    """
    skill_id: str
    skill_name: str = ""
    source: SkillSource = SkillSource.SELF_REPORTED
    category: SkillCategory = SkillCategory.TECHNICAL
    self_rating: int = Field(default=0, ge=0, le=MAX_PROFICIENCY)
    approval_status: Optional[ApprovalStatus] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    class Config:
        use_enum_values = True

    @model_validator(mode="after")
    def _check_rating_and_approval(self):
        minimum = MIN_RATING_BY_CATEGORY.get(self.category, 0)
        if self.self_rating < minimum:
            raise ValueError(f"{self.category} skills must be rated between {minimum} and {MAX_PROFICIENCY}")
        if self.source == SkillSource.CATALOG and self.approval_status is None:
            self.approval_status = ApprovalStatus.PENDING
        if self.source == SkillSource.SELF_REPORTED:
            self.approval_status = None
        return self


class StudentProfile(BaseModel):
    """
    Input contract for the match engine and the eligibility gate.
    `version` changes whenever the stored profile changes.
    """
    student_id: str
    school: Optional[str] = None
    campus: Optional[str] = None
    current_module: Optional[str] = None
    cgpa: Optional[float] = None
    gender: Optional[str] = None
    house: Optional[str] = None
    attendance_percentage: Optional[float] = None
    date_of_joining: Optional[date] = None

    profile_status: ProfileStatus = ProfileStatus.DRAFT
    revision_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None

    skills: List[SkillEntry] = Field(default_factory=list)
    version: int = 0

    class Config:
        use_enum_values = True

    def get_skill(self, skill_id: str) -> Optional[SkillEntry]:
        for skill in self.skills:
            if skill.skill_id == skill_id:
                return skill
        return None


# =============================================================================
# JOB CONTRACTS
# =============================================================================

class JobEligibilityRules(BaseModel):
    """Eligibility rules; unset rules are vacuously satisfied."""
    min_cgpa: Optional[float] = None
    schools: List[str] = Field(default_factory=list)
    campuses: List[str] = Field(default_factory=list)
    min_module: Optional[str] = None
    female_only: bool = False
    houses: List[str] = Field(default_factory=list)
    min_attendance: Optional[float] = None
    min_months_at_org: Optional[int] = None
    readiness_requirement: ReadinessRequirement = ReadinessRequirement.YES

    class Config:
        use_enum_values = True


class RequiredSkill(BaseModel):
    skill_id: str
    skill_name: str = ""
    proficiency_level: int = Field(default=1, ge=1, le=MAX_PROFICIENCY)
    required: bool = True


class CustomRequirement(BaseModel):
    requirement: str
    is_mandatory: bool = True


class JobDefinition(BaseModel):
    job_id: str
    title: str = ""
    company: str = ""
    eligibility: JobEligibilityRules = Field(default_factory=JobEligibilityRules)
    required_skills: List[RequiredSkill] = Field(default_factory=list)
    custom_requirements: List[CustomRequirement] = Field(default_factory=list)
    application_deadline: Optional[datetime] = None
    version: int = 0


# =============================================================================
# MATCH OUTPUT CONTRACTS
# =============================================================================

class SkillMatchDetail(BaseModel):
    skill_id: str
    skill_name: str
    required: bool
    required_level: int
    required_level_label: str
    student_level: int
    student_level_label: str
    meets: bool
    gap: int = 0


class SkillBreakdown(BaseModel):
    matched: int = 0
    required: int = 0
    percentage: int = Field(default=100, ge=0, le=100)
    details: List[SkillMatchDetail] = Field(default_factory=list)

    @property
    def fully_met(self) -> bool:
        return self.matched == self.required


class EligibilityDetail(BaseModel):
    rule: str
    meets: bool
    student_value: Any = None
    job_requirement: Any = None
    message: str = ""


class EligibilityBreakdown(BaseModel):
    passed: int = 0
    total: int = 0
    percentage: int = Field(default=100, ge=0, le=100)
    details: List[EligibilityDetail] = Field(default_factory=list)

    @property
    def fully_met(self) -> bool:
        return self.passed == self.total


class RequirementDetail(BaseModel):
    requirement: str
    is_mandatory: bool
    acknowledged: Optional[bool] = None
    meets: bool


class RequirementBreakdown(BaseModel):
    met: int = 0
    total: int = 0
    percentage: int = Field(default=100, ge=0, le=100)
    details: List[RequirementDetail] = Field(default_factory=list)

    @property
    def fully_met(self) -> bool:
        return self.met == self.total


class MatchBreakdown(BaseModel):
    skills: SkillBreakdown
    eligibility: EligibilityBreakdown
    requirements: RequirementBreakdown


class MatchResult(BaseModel):
    """
    Output contract for the match engine.
    Ephemeral: recomputed per request, never stored as a source of truth.
    """
    overall_percentage: int = Field(ge=0, le=100)
    can_apply: bool
    breakdown: MatchBreakdown
    summary: List[str] = Field(default_factory=list)


# =============================================================================
# INTEREST & APPLICATION CONTRACTS
# =============================================================================

class InterestRequest(BaseModel):
    student_id: str
    job_id: str
    status: InterestStatus = InterestStatus.PENDING
    reason: str
    acknowledged_gaps: List[str] = Field(default_factory=list)
    improvement_plan: Optional[str] = None
    match_percentage: Optional[int] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


class Application(BaseModel):
    student_id: str
    job_id: str
    status: ApplicationStatus = ApplicationStatus.APPLIED
    mode: ApplicationMode = ApplicationMode.APPLICATION
    custom_responses: Dict[str, bool] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


# =============================================================================
# GATE OUTPUT CONTRACTS
# =============================================================================

class EligibilityDecision(BaseModel):
    """What the student may do about one job right now."""
    outcome: GateOutcome
    message: str = ""
    meets_readiness: Optional[bool] = None
    can_apply_ui: bool = False
    requires_confirmation: bool = False
    readiness_percentage: Optional[int] = None
    match: Optional[MatchResult] = None

    class Config:
        use_enum_values = True


class BulkItemResult(BaseModel):
    """Per-item outcome of a non-atomic bulk operation."""
    item_id: str
    ok: bool
    status: Optional[str] = None
    error: Optional[str] = None
