"""
Approval Workflow

POC/coordinator decisions over student profiles, catalog skills and interest
requests. Criterion verification and job-ready certification live on the
ReadinessTracker; the runner exposes all of them together.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from .constants import (
    DEFAULT_REJECTION_REASON,
    ApprovalStatus,
    InterestStatus,
    ProfileStatus,
    Role,
    enum_value,
)
from .contracts import Actor, InterestRequest, StudentProfile
from .errors import StateConflictError, ValidationError
from .permissions import require_owner, require_role
from .skill_ledger import SkillLedger

logger = logging.getLogger(__name__)


class ApprovalWorkflow:

    def __init__(self, ledger: Optional[SkillLedger] = None):
        self.ledger = ledger or SkillLedger()

    # -------------------------------------------------------------------------
    # Profile approval
    # -------------------------------------------------------------------------

    def submit_profile(self, actor: Actor, profile: StudentProfile) -> StudentProfile:
        """Student sends a draft or revised profile for POC review."""
        require_owner(actor, profile.student_id)
        if profile.profile_status not in (ProfileStatus.DRAFT, ProfileStatus.NEEDS_REVISION):
            raise StateConflictError(f"Profile cannot be submitted while {profile.profile_status}")

        updated = profile.model_copy(deep=True)
        updated.profile_status = ProfileStatus.PENDING_APPROVAL.value
        updated.submitted_at = datetime.now(timezone.utc)
        updated.revision_notes = None
        updated.version += 1
        logger.info(f"Profile of {profile.student_id} submitted for approval")
        return updated

    def review_profile(
        self,
        actor: Actor,
        profile: StudentProfile,
        decision: ProfileStatus,
        revision_notes: Optional[str] = None,
    ) -> StudentProfile:
        """
        Approve a submitted profile or send it back for revision.

        Sending back requires notes and blocks applying until the student
        resubmits and a POC approves again.
        """
        require_role(actor, Role.CAMPUS_POC)
        decision = enum_value(decision)

        if decision == ProfileStatus.APPROVED:
            if profile.profile_status != ProfileStatus.PENDING_APPROVAL:
                raise StateConflictError(f"Only a submitted profile can be approved (current: {profile.profile_status})")
        elif decision == ProfileStatus.NEEDS_REVISION:
            if not (revision_notes or "").strip():
                raise ValidationError("Revision notes are required")
            if profile.profile_status not in (ProfileStatus.PENDING_APPROVAL, ProfileStatus.APPROVED):
                raise StateConflictError(f"Profile cannot be sent for revision while {profile.profile_status}")
        else:
            raise ValidationError("Invalid status")

        updated = profile.model_copy(deep=True)
        updated.profile_status = decision
        updated.reviewed_by = actor.user_id
        updated.reviewed_at = datetime.now(timezone.utc)
        updated.revision_notes = None if decision == ProfileStatus.APPROVED else revision_notes.strip()
        updated.version += 1
        logger.info(f"Profile of {profile.student_id} marked {decision} by {actor.user_id}")
        return updated

    # -------------------------------------------------------------------------
    # Skill approval
    # -------------------------------------------------------------------------

    def decide_skill(
        self,
        actor: Actor,
        profile: StudentProfile,
        skill_id: str,
        decision: ApprovalStatus,
    ) -> StudentProfile:
        require_role(actor, Role.CAMPUS_POC)
        decision = enum_value(decision)
        if decision not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
            raise ValidationError("Invalid status")

        updated = self.ledger.set_approval(profile, skill_id, decision, actor.user_id)
        logger.info(f"Skill {skill_id} of {profile.student_id} {decision} by {actor.user_id}")
        return updated

    # -------------------------------------------------------------------------
    # Interest requests
    # -------------------------------------------------------------------------

    def decide_interest(
        self,
        actor: Actor,
        request: InterestRequest,
        decision: InterestStatus,
        review_notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> InterestRequest:
        """Approve (student may then apply for this job only) or reject a pending request."""
        require_role(actor, Role.CAMPUS_POC)
        decision = enum_value(decision)
        if decision not in (InterestStatus.APPROVED, InterestStatus.REJECTED):
            raise ValidationError("Invalid status")
        if request.status != InterestStatus.PENDING:
            raise StateConflictError(f"Interest request is already {request.status}")

        updated = request.model_copy(deep=True)
        updated.status = decision
        updated.reviewed_by = actor.user_id
        updated.reviewed_at = datetime.now(timezone.utc)
        updated.review_notes = review_notes
        if decision == InterestStatus.REJECTED:
            updated.rejection_reason = rejection_reason or DEFAULT_REJECTION_REASON
        logger.info(f"Interest request of {request.student_id} for job {request.job_id} {decision} by {actor.user_id}")
        return updated
