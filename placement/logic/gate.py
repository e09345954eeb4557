"""
Eligibility Gate

Single decision point for "what can this student do about this job".
Combines profile approval, the job's readiness policy, the readiness
percentage, the match result and any existing interest request/application.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .constants import (
    FULL_MARKS,
    GATE_MESSAGES,
    IN_PROGRESS_READINESS_THRESHOLD,
    INTEREST_REASON_MIN_LENGTH,
    NON_WITHDRAWABLE_STATES,
    ApplicationMode,
    ApplicationStatus,
    GateOutcome,
    InterestStatus,
    ProfileStatus,
    ReadinessRequirement,
    enum_value,
)
from .contracts import (
    Actor,
    Application,
    EligibilityDecision,
    InterestRequest,
    JobDefinition,
    MatchResult,
    StudentProfile,
)
from .errors import NotFoundError, StateConflictError, ValidationError
from .permissions import require_owner

logger = logging.getLogger(__name__)


def meets_readiness(requirement: str, readiness_percentage: int) -> bool:
    requirement = enum_value(requirement)
    if requirement == ReadinessRequirement.YES:
        return readiness_percentage == FULL_MARKS
    if requirement == ReadinessRequirement.IN_PROGRESS:
        return readiness_percentage >= IN_PROGRESS_READINESS_THRESHOLD
    return True


def is_active_application(application: Optional[Application]) -> bool:
    return application is not None and application.status != ApplicationStatus.WITHDRAWN


def deadline_passed(job: JobDefinition, now: datetime) -> bool:
    deadline = job.application_deadline
    if deadline is None:
        return False
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    return now > deadline


def _decision(outcome: GateOutcome, **fields) -> EligibilityDecision:
    return EligibilityDecision(outcome=outcome, message=GATE_MESSAGES[outcome.value], **fields)


class EligibilityGate:
    """
    Decision order, first match wins:

    1. active application        -> already applied
    2. deadline passed           -> closed
    3. profile not approved      -> blocked (profile approval required)
    4. interest request pending  -> blocked (awaiting POC decision)
    5. interest request rejected -> blocked (interest denied)
    6. interest request approved -> apply allowed for this job
    7. readiness policy not met  -> interest request required
    8. match, or only confirmations outstanding -> apply allowed
    9. otherwise                 -> interest request required

    An approved interest request is the only way past the job's readiness
    policy; a regular application always needs it.
    """

    def decide(
        self,
        profile_status: ProfileStatus,
        job: JobDefinition,
        readiness_percentage: int,
        match: MatchResult,
        interest_request: Optional[InterestRequest] = None,
        application: Optional[Application] = None,
        now: Optional[datetime] = None,
    ) -> EligibilityDecision:
        now = now or datetime.now(timezone.utc)
        base = {"readiness_percentage": readiness_percentage, "match": match}

        if is_active_application(application):
            return _decision(GateOutcome.ALREADY_APPLIED, **base)
        if deadline_passed(job, now):
            return _decision(GateOutcome.CLOSED, **base)
        if enum_value(profile_status) != ProfileStatus.APPROVED:
            return _decision(GateOutcome.PROFILE_APPROVAL_REQUIRED, **base)

        if interest_request is not None:
            if interest_request.status == InterestStatus.PENDING:
                return _decision(GateOutcome.AWAITING_POC_DECISION, **base)
            if interest_request.status == InterestStatus.REJECTED:
                return _decision(GateOutcome.INTEREST_DENIED, **base)
            if interest_request.status == InterestStatus.APPROVED:
                return _decision(
                    GateOutcome.APPLY_ALLOWED,
                    can_apply_ui=True,
                    requires_confirmation=not match.breakdown.requirements.fully_met,
                    **base,
                )

        ready = meets_readiness(job.eligibility.readiness_requirement, readiness_percentage)
        breakdown = match.breakdown
        # Outstanding custom requirements are confirmed on the submit form
        needs_confirmation = (
            breakdown.skills.fully_met and
            breakdown.eligibility.fully_met and
            not breakdown.requirements.fully_met
        )
        can_apply_ui = ready and (match.can_apply or needs_confirmation)

        if can_apply_ui:
            return _decision(
                GateOutcome.APPLY_ALLOWED,
                meets_readiness=ready,
                can_apply_ui=True,
                requires_confirmation=needs_confirmation and not match.can_apply,
                **base,
            )
        return _decision(GateOutcome.INTEREST_REQUIRED, meets_readiness=ready, can_apply_ui=False, **base)

    # -------------------------------------------------------------------------
    # Interest-request sub-workflow
    # -------------------------------------------------------------------------

    def submit_interest(
        self,
        actor: Actor,
        profile: StudentProfile,
        job: JobDefinition,
        readiness_percentage: int,
        match: MatchResult,
        reason: str,
        acknowledged_gaps: Optional[List[str]] = None,
        improvement_plan: Optional[str] = None,
        existing: Optional[InterestRequest] = None,
        application: Optional[Application] = None,
        now: Optional[datetime] = None,
    ) -> InterestRequest:
        """
        Create a pending interest request, replacing a previously rejected one.

        Current state is checked before anything is created so a retried
        submission cannot produce a second active request.
        """
        require_owner(actor, profile.student_id)
        now = now or datetime.now(timezone.utc)

        reason = (reason or "").strip()
        if len(reason) < INTEREST_REASON_MIN_LENGTH:
            raise ValidationError(
                f"Please provide a detailed reason (at least {INTEREST_REASON_MIN_LENGTH} characters)"
            )

        if is_active_application(application):
            raise StateConflictError("You have already applied for this job")
        if existing is not None and existing.status != InterestStatus.REJECTED:
            logger.warning(f"Duplicate interest request by {profile.student_id} for job {job.job_id}")
            raise StateConflictError(f"You already have a {existing.status} interest request for this job")

        # A previously rejected request is replaced, so judge the job as if none existed
        decision = self.decide(
            profile.profile_status, job, readiness_percentage, match, None, application, now=now,
        )
        if decision.outcome == GateOutcome.APPLY_ALLOWED:
            raise StateConflictError("You meet the requirements. Please apply directly instead of showing interest.")
        if decision.outcome != GateOutcome.INTEREST_REQUIRED:
            raise StateConflictError(decision.message)

        request = InterestRequest(
            student_id=profile.student_id,
            job_id=job.job_id,
            status=InterestStatus.PENDING,
            reason=reason,
            acknowledged_gaps=list(acknowledged_gaps or []),
            improvement_plan=improvement_plan,
            match_percentage=match.overall_percentage,
            created_at=now,
        )
        logger.info(
            f"Interest request submitted by {profile.student_id} for job {job.job_id} "
            f"({match.overall_percentage}% match)"
        )
        return request

    # -------------------------------------------------------------------------
    # Applications
    # -------------------------------------------------------------------------

    def submit_application(
        self,
        actor: Actor,
        profile: StudentProfile,
        job: JobDefinition,
        readiness_percentage: int,
        match: MatchResult,
        custom_responses: Optional[Dict[str, bool]] = None,
        interest_request: Optional[InterestRequest] = None,
        application: Optional[Application] = None,
        now: Optional[datetime] = None,
    ) -> Application:
        """Create an application when the gate allows it and mandatory requirements are confirmed."""
        require_owner(actor, profile.student_id)
        now = now or datetime.now(timezone.utc)

        decision = self.decide(
            profile.profile_status, job, readiness_percentage, match, interest_request, application, now=now,
        )
        if decision.outcome != GateOutcome.APPLY_ALLOWED:
            logger.warning(f"Application by {profile.student_id} for job {job.job_id} refused: {decision.outcome}")
            if decision.meets_readiness is False:
                raise StateConflictError(
                    f"This job requires job readiness '{enum_value(job.eligibility.readiness_requirement)}' "
                    f"and you are at {readiness_percentage}%. Show interest instead."
                )
            raise StateConflictError(decision.message)

        responses = custom_responses or {}
        for req in job.custom_requirements:
            if req.is_mandatory and responses.get(req.requirement) is not True:
                raise ValidationError(f'You must agree to: "{req.requirement}"')

        approved_interest = (
            interest_request is not None and interest_request.status == InterestStatus.APPROVED
        )
        created = Application(
            student_id=profile.student_id,
            job_id=job.job_id,
            status=ApplicationStatus.APPLIED,
            mode=ApplicationMode.INTEREST if approved_interest else ApplicationMode.APPLICATION,
            custom_responses=dict(responses),
            created_at=now,
        )
        logger.info(f"Application submitted by {profile.student_id} for job {job.job_id} ({created.mode})")
        return created

    def withdraw_application(self, actor: Actor, application: Optional[Application]) -> Application:
        if application is None:
            raise NotFoundError("Application not found")
        require_owner(actor, application.student_id)
        if application.status in NON_WITHDRAWABLE_STATES:
            raise StateConflictError("Cannot withdraw this application")

        withdrawn = application.model_copy(deep=True)
        withdrawn.status = ApplicationStatus.WITHDRAWN.value
        logger.info(f"Application of {application.student_id} for job {application.job_id} withdrawn")
        return withdrawn
