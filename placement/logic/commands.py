"""
Command Objects

One explicit, validated command per mutating operation. The router builds
them from request bodies and PlacementService applies them; the caller's
identity travels separately as an Actor.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .constants import (
    ApprovalStatus,
    CriterionCategory,
    CriterionInputType,
    InterestStatus,
    ProfileStatus,
    SkillCategory,
    SkillSource,
    VerificationDecision,
)


# =============================================================================
# READINESS
# =============================================================================

class StartCriterion(BaseModel):
    school: str
    criteria_id: str


class ReportCriterion(BaseModel):
    school: str
    criteria_id: str
    value: Optional[str] = None
    proof_url: Optional[str] = None
    notes: Optional[str] = None


class VerifyCriterion(BaseModel):
    student_id: str
    school: str
    criteria_id: str
    decision: VerificationDecision
    verification_notes: Optional[str] = None
    poc_comment: Optional[str] = None
    poc_rating: Optional[int] = None

    class Config:
        use_enum_values = True


class UnverifyCriterion(BaseModel):
    student_id: str
    school: str
    criteria_id: str
    notes: Optional[str] = None


class ApproveJobReady(BaseModel):
    student_id: str
    school: str
    notes: Optional[str] = None


class RevokeJobReady(BaseModel):
    student_id: str
    school: str
    notes: Optional[str] = None


# =============================================================================
# CATALOG
# =============================================================================

class AddCriterion(BaseModel):
    school: str
    name: str
    criteria_id: Optional[str] = None
    description: str = ""
    input_type: CriterionInputType = CriterionInputType.ANSWER
    category: CriterionCategory = CriterionCategory.OTHER
    is_mandatory: bool = True
    poc_comment_required: bool = False
    poc_comment_template: Optional[str] = None
    poc_rating_required: bool = False
    poc_rating_scale: Optional[int] = Field(default=None, ge=1)

    class Config:
        use_enum_values = True


class UpdateCriterion(BaseModel):
    school: str
    criteria_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    input_type: Optional[CriterionInputType] = None
    category: Optional[CriterionCategory] = None
    is_mandatory: Optional[bool] = None
    poc_comment_required: Optional[bool] = None
    poc_comment_template: Optional[str] = None
    poc_rating_required: Optional[bool] = None
    poc_rating_scale: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None

    class Config:
        use_enum_values = True


class RemoveCriterion(BaseModel):
    school: str
    criteria_id: str


# =============================================================================
# PROFILE & SKILLS
# =============================================================================

class ReviewProfile(BaseModel):
    student_id: str
    decision: ProfileStatus
    revision_notes: Optional[str] = None

    class Config:
        use_enum_values = True


class AddSkill(BaseModel):
    skill_id: str
    skill_name: str = ""
    source: SkillSource = SkillSource.SELF_REPORTED
    category: SkillCategory = SkillCategory.TECHNICAL
    self_rating: int = 0

    class Config:
        use_enum_values = True


class DecideSkill(BaseModel):
    student_id: str
    skill_id: str
    decision: ApprovalStatus

    class Config:
        use_enum_values = True


class BulkApproveSkills(BaseModel):
    """Approve the listed skills, or every pending catalog skill when none are listed."""
    student_id: str
    skill_ids: Optional[List[str]] = None


# =============================================================================
# INTEREST & APPLICATIONS
# =============================================================================

class SubmitInterest(BaseModel):
    job_id: str
    reason: str
    acknowledged_gaps: List[str] = Field(default_factory=list)
    improvement_plan: Optional[str] = None


class DecideInterest(BaseModel):
    student_id: str
    job_id: str
    decision: InterestStatus
    review_notes: Optional[str] = None
    rejection_reason: Optional[str] = None

    class Config:
        use_enum_values = True


class SubmitApplication(BaseModel):
    job_id: str
    custom_responses: Dict[str, bool] = Field(default_factory=dict)


class WithdrawApplication(BaseModel):
    job_id: str
