"""
Placement Service

Orchestrates the exposed operations:
1. Loads records through the repository
2. Applies the command via the tracker, gate, workflow or catalog
3. Saves the single changed record
4. Sends a fire-and-forget notification

No scoring and no state-machine rules live here.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .catalog import CriterionCatalog
from .commands import (
    AddCriterion,
    AddSkill,
    ApproveJobReady,
    BulkApproveSkills,
    DecideInterest,
    DecideSkill,
    RemoveCriterion,
    ReportCriterion,
    ReviewProfile,
    RevokeJobReady,
    StartCriterion,
    SubmitApplication,
    SubmitInterest,
    UnverifyCriterion,
    UpdateCriterion,
    VerifyCriterion,
    WithdrawApplication,
)
from .constants import (
    ApprovalStatus,
    InterestStatus,
    ProfileStatus,
    Role,
    VerificationDecision,
    enum_value,
)
from .contracts import (
    Actor,
    Application,
    BulkItemResult,
    EligibilityDecision,
    InterestRequest,
    JobDefinition,
    MatchResult,
    OperationResult,
    StudentProfile,
    StudentReadinessRecord,
)
from .errors import NotFoundError, PlacementError, StateConflictError, TransientCollaboratorError
from .gate import EligibilityGate
from .match_engine import MatchCache
from .permissions import require_campus_scope, require_owner, require_role
from .ports import Notifier, PlacementRepository
from .readiness import ReadinessTracker
from .workflow import ApprovalWorkflow

logger = logging.getLogger(__name__)


class PlacementService:

    def __init__(
        self,
        repository: PlacementRepository,
        notifier: Optional[Notifier] = None,
        tracker: Optional[ReadinessTracker] = None,
        gate: Optional[EligibilityGate] = None,
        workflow: Optional[ApprovalWorkflow] = None,
        cache: Optional[MatchCache] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.tracker = tracker or ReadinessTracker()
        self.gate = gate or EligibilityGate()
        self.workflow = workflow or ApprovalWorkflow()
        self.cache = cache or MatchCache()

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _catalog(self, school: str) -> CriterionCatalog:
        return CriterionCatalog(school, self.repository.get_criterion_catalog(school))

    def _profile(self, student_id: str) -> StudentProfile:
        profile = self.repository.get_student_profile(student_id)
        if profile is None:
            raise NotFoundError(f"Student '{student_id}' not found")
        return profile

    def _job(self, job_id: str) -> JobDefinition:
        job = self.repository.get_job(job_id)
        if job is None:
            raise NotFoundError(f"Job '{job_id}' not found")
        return job

    def _record(self, student_id: str, school: str, catalog: CriterionCatalog) -> StudentReadinessRecord:
        stored = self.repository.get_readiness_record(student_id, school)
        return self.tracker.ensure_record(stored, student_id, catalog)

    def _readiness_percentage(self, profile: StudentProfile) -> int:
        school = profile.school or ""
        catalog = self._catalog(school)
        return self._record(profile.student_id, school, catalog).readiness_percentage

    def _save(self, save, item) -> None:
        try:
            save(item)
        except TransientCollaboratorError as e:
            logger.error(f"Persistence failed, state left unchanged: {e.message}")
            raise

    def _notify(self, recipient_id: str, event: str, title: str, message: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(recipient_id, event, title, message)
        except Exception as e:
            logger.warning(f"Notification '{event}' to {recipient_id} failed: {e}")

    def _target_student(self, actor: Actor, student_id: Optional[str]) -> str:
        """Students act on themselves; POCs and above may look at any student."""
        if student_id is None or student_id == actor.user_id:
            return actor.user_id
        require_role(actor, Role.CAMPUS_POC)
        self._require_campus(actor, student_id)
        return student_id

    def _require_campus(self, actor: Actor, student_id: str, profile: Optional[StudentProfile] = None) -> None:
        """Campus POCs are scoped to the campus on the student's profile."""
        if enum_value(actor.role) != Role.CAMPUS_POC.value:
            return
        profile = profile or self._profile(student_id)
        require_campus_scope(actor, profile.campus)

    # =========================================================================
    # CATALOG
    # =========================================================================

    def get_catalog(self, school: str) -> CriterionCatalog:
        return self._catalog(school)

    def seed_default_catalog(self, actor: Actor, school: str) -> CriterionCatalog:
        require_role(actor, Role.CAMPUS_POC)
        if self.repository.get_criterion_catalog(school):
            raise StateConflictError(f"{school} already has readiness criteria")
        catalog = CriterionCatalog.with_defaults(school)
        self._save(lambda c: self.repository.save_criterion_catalog(school, c.criteria), catalog)
        logger.info(f"Default criteria seeded for {school} by {actor.user_id}")
        return catalog

    def add_criterion(self, actor: Actor, command: AddCriterion) -> CriterionCatalog:
        data = command.model_dump(exclude={"school"})
        catalog = self._catalog(command.school).add_criterion(actor, data)
        self._save(lambda c: self.repository.save_criterion_catalog(command.school, c.criteria), catalog)
        return catalog

    def update_criterion(self, actor: Actor, command: UpdateCriterion) -> CriterionCatalog:
        changes = command.model_dump(exclude={"school", "criteria_id"}, exclude_none=True)
        catalog = self._catalog(command.school).update_criterion(actor, command.criteria_id, changes)
        self._save(lambda c: self.repository.save_criterion_catalog(command.school, c.criteria), catalog)
        return catalog

    def remove_criterion(self, actor: Actor, command: RemoveCriterion) -> CriterionCatalog:
        catalog = self._catalog(command.school).remove_criterion(actor, command.criteria_id)
        self._save(lambda c: self.repository.save_criterion_catalog(command.school, c.criteria), catalog)
        return catalog

    # =========================================================================
    # READINESS
    # =========================================================================

    def get_readiness(self, actor: Actor, school: str, student_id: Optional[str] = None) -> StudentReadinessRecord:
        """Current checklist state; reading never creates the stored record."""
        student_id = self._target_student(actor, student_id)
        return self._record(student_id, school, self._catalog(school))

    def start_criterion(
        self, actor: Actor, command: StartCriterion,
    ) -> Tuple[StudentReadinessRecord, OperationResult]:
        catalog = self._catalog(command.school)
        record = self._record(actor.user_id, command.school, catalog)
        record, result = self.tracker.start_criterion(actor, record, catalog, command.criteria_id)
        if result.ok:
            self._save(self.repository.save_readiness_record, record)
        return record, result

    def report_criterion(
        self, actor: Actor, command: ReportCriterion,
    ) -> Tuple[StudentReadinessRecord, OperationResult]:
        catalog = self._catalog(command.school)
        record = self._record(actor.user_id, command.school, catalog)
        record, result = self.tracker.report_criterion(
            actor, record, catalog, command.criteria_id,
            value=command.value, proof_url=command.proof_url, notes=command.notes,
        )
        if result.ok:
            self._save(self.repository.save_readiness_record, record)
        return record, result

    def verify_criterion(self, actor: Actor, command: VerifyCriterion) -> StudentReadinessRecord:
        self._require_campus(actor, command.student_id)
        catalog = self._catalog(command.school)
        record = self._record(command.student_id, command.school, catalog)
        record = self.tracker.verify_criterion(
            actor, record, catalog, command.criteria_id, command.decision,
            verification_notes=command.verification_notes,
            poc_comment=command.poc_comment,
            poc_rating=command.poc_rating,
        )
        self._save(self.repository.save_readiness_record, record)

        name = catalog.require(command.criteria_id).name
        if command.decision == VerificationDecision.VERIFIED:
            self._notify(command.student_id, "criterion_verified", "Criterion verified",
                         f"'{name}' has been verified by your Campus PoC.")
        else:
            self._notify(command.student_id, "criterion_rejected", "Criterion needs rework",
                         f"'{name}' was not accepted. {command.verification_notes or ''}".strip())
        return record

    def unverify_criterion(self, actor: Actor, command: UnverifyCriterion) -> StudentReadinessRecord:
        self._require_campus(actor, command.student_id)
        catalog = self._catalog(command.school)
        record = self._record(command.student_id, command.school, catalog)
        record = self.tracker.unverify_criterion(actor, record, catalog, command.criteria_id, notes=command.notes)
        self._save(self.repository.save_readiness_record, record)
        return record

    def approve_job_ready(self, actor: Actor, command: ApproveJobReady) -> StudentReadinessRecord:
        self._require_campus(actor, command.student_id)
        catalog = self._catalog(command.school)
        record = self._record(command.student_id, command.school, catalog)
        record = self.tracker.approve_job_ready(actor, record, catalog, notes=command.notes)
        self._save(self.repository.save_readiness_record, record)
        self._notify(command.student_id, "job_ready_approved", "You are job ready",
                     "Your Campus PoC has approved you as job ready.")
        return record

    def revoke_job_ready(self, actor: Actor, command: RevokeJobReady) -> StudentReadinessRecord:
        self._require_campus(actor, command.student_id)
        catalog = self._catalog(command.school)
        record = self._record(command.student_id, command.school, catalog)
        record = self.tracker.revoke_job_ready(actor, record, notes=command.notes)
        self._save(self.repository.save_readiness_record, record)
        return record

    # =========================================================================
    # MATCHING & GATE
    # =========================================================================

    def compute_match(self, actor: Actor, job_id: str, student_id: Optional[str] = None) -> MatchResult:
        student_id = self._target_student(actor, student_id)
        profile = self._profile(student_id)
        job = self._job(job_id)
        return self.cache.get_or_compute(profile, job, as_of=datetime.now(timezone.utc).date())

    def decide_eligibility(
        self,
        actor: Actor,
        job_id: str,
        student_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> EligibilityDecision:
        now = now or datetime.now(timezone.utc)
        student_id = self._target_student(actor, student_id)
        profile = self._profile(student_id)
        job = self._job(job_id)
        match = self.cache.get_or_compute(profile, job, as_of=now.date())

        return self.gate.decide(
            profile.profile_status,
            job,
            self._readiness_percentage(profile),
            match,
            interest_request=self.repository.get_interest_request(student_id, job_id),
            application=self.repository.get_application(student_id, job_id),
            now=now,
        )

    # =========================================================================
    # INTEREST REQUESTS
    # =========================================================================

    def submit_interest_request(
        self, actor: Actor, command: SubmitInterest, now: Optional[datetime] = None,
    ) -> InterestRequest:
        now = now or datetime.now(timezone.utc)
        profile = self._profile(actor.user_id)
        job = self._job(command.job_id)

        request = self.gate.submit_interest(
            actor,
            profile,
            job,
            self._readiness_percentage(profile),
            self.cache.get_or_compute(profile, job, as_of=now.date()),
            command.reason,
            acknowledged_gaps=command.acknowledged_gaps,
            improvement_plan=command.improvement_plan,
            existing=self.repository.get_interest_request(actor.user_id, command.job_id),
            application=self.repository.get_application(actor.user_id, command.job_id),
            now=now,
        )
        self._save(self.repository.save_interest_request, request)
        return request

    def decide_interest_request(self, actor: Actor, command: DecideInterest) -> InterestRequest:
        require_role(actor, Role.CAMPUS_POC)
        self._require_campus(actor, command.student_id)
        existing = self.repository.get_interest_request(command.student_id, command.job_id)
        if existing is None:
            raise NotFoundError("Interest request not found")

        request = self.workflow.decide_interest(
            actor, existing, command.decision,
            review_notes=command.review_notes, rejection_reason=command.rejection_reason,
        )
        self._save(self.repository.save_interest_request, request)

        if request.status == InterestStatus.APPROVED:
            self._notify(request.student_id, "interest_approved", "Interest request approved",
                         "Your Campus PoC approved your interest. You can now apply for this job.")
        else:
            self._notify(request.student_id, "interest_rejected", "Interest request not approved",
                         request.rejection_reason or "")
        return request

    # =========================================================================
    # APPLICATIONS
    # =========================================================================

    def submit_application(
        self, actor: Actor, command: SubmitApplication, now: Optional[datetime] = None,
    ) -> Application:
        now = now or datetime.now(timezone.utc)
        profile = self._profile(actor.user_id)
        job = self._job(command.job_id)

        # The gate judges the same preview match the student saw; confirmations are checked separately
        application = self.gate.submit_application(
            actor,
            profile,
            job,
            self._readiness_percentage(profile),
            self.cache.get_or_compute(profile, job, as_of=now.date()),
            custom_responses=command.custom_responses,
            interest_request=self.repository.get_interest_request(actor.user_id, command.job_id),
            application=self.repository.get_application(actor.user_id, command.job_id),
            now=now,
        )
        self._save(self.repository.save_application, application)
        return application

    def withdraw_application(self, actor: Actor, command: WithdrawApplication) -> Application:
        existing = self.repository.get_application(actor.user_id, command.job_id)
        application = self.gate.withdraw_application(actor, existing)
        self._save(self.repository.save_application, application)
        return application

    # =========================================================================
    # PROFILE & SKILLS
    # =========================================================================

    def get_profile(self, actor: Actor, student_id: Optional[str] = None) -> StudentProfile:
        return self._profile(self._target_student(actor, student_id))

    def submit_profile(self, actor: Actor) -> StudentProfile:
        profile = self.workflow.submit_profile(actor, self._profile(actor.user_id))
        self._save(self.repository.save_student_profile, profile)
        return profile

    def review_profile(self, actor: Actor, command: ReviewProfile) -> StudentProfile:
        require_role(actor, Role.CAMPUS_POC)
        profile = self._profile(command.student_id)
        self._require_campus(actor, command.student_id, profile)
        profile = self.workflow.review_profile(actor, profile, command.decision, command.revision_notes)
        self._save(self.repository.save_student_profile, profile)

        if profile.profile_status == ProfileStatus.NEEDS_REVISION:
            self._notify(profile.student_id, "profile_revision_requested", "Profile needs revision",
                         profile.revision_notes or "")
        return profile

    def add_skill(self, actor: Actor, command: AddSkill) -> StudentProfile:
        require_owner(actor, actor.user_id)
        profile = self.workflow.ledger.add_skill(
            actor,
            self._profile(actor.user_id),
            command.skill_id,
            skill_name=command.skill_name,
            source=command.source,
            category=command.category,
            self_rating=command.self_rating,
        )
        self._save(self.repository.save_student_profile, profile)
        return profile

    def decide_skill(self, actor: Actor, command: DecideSkill) -> StudentProfile:
        require_role(actor, Role.CAMPUS_POC)
        profile = self._profile(command.student_id)
        self._require_campus(actor, command.student_id, profile)
        profile = self.workflow.decide_skill(actor, profile, command.skill_id, command.decision)
        self._save(self.repository.save_student_profile, profile)
        self._notify_skill(profile, command.skill_id, command.decision)
        return profile

    def bulk_approve_skills(self, actor: Actor, command: BulkApproveSkills) -> List[BulkItemResult]:
        """
        Approve skills one at a time.

        Not a transaction: each skill is loaded, decided and saved on its own, so
        a failure on one item leaves the others approved and is reported per item.
        """
        require_role(actor, Role.CAMPUS_POC)
        profile = self._profile(command.student_id)
        self._require_campus(actor, command.student_id, profile)
        skill_ids = command.skill_ids
        if skill_ids is None:
            skill_ids = [s.skill_id for s in self.workflow.ledger.pending_skills(profile)]

        results: List[BulkItemResult] = []
        for skill_id in skill_ids:
            try:
                updated = self.workflow.decide_skill(
                    actor, self._profile(command.student_id), skill_id, ApprovalStatus.APPROVED,
                )
                self._save(self.repository.save_student_profile, updated)
                self.repository.commit()
            except PlacementError as e:
                self.repository.rollback()
                logger.warning(f"Bulk approval of skill {skill_id} for {command.student_id} failed: {e.message}")
                results.append(BulkItemResult(item_id=skill_id, ok=False, error=e.message))
                continue
            results.append(BulkItemResult(item_id=skill_id, ok=True, status=ApprovalStatus.APPROVED.value))
            self._notify_skill(updated, skill_id, ApprovalStatus.APPROVED)

        approved = sum(1 for r in results if r.ok)
        logger.info(f"Bulk approval for {command.student_id}: {approved}/{len(results)} skills approved")
        return results

    def _notify_skill(self, profile: StudentProfile, skill_id: str, decision: str) -> None:
        skill = profile.get_skill(skill_id)
        name = skill.skill_name if skill is not None and skill.skill_name else skill_id
        if decision == ApprovalStatus.APPROVED:
            self._notify(profile.student_id, "skill_approved", "Skill approved",
                         f"Your skill '{name}' has been approved.")
        else:
            self._notify(profile.student_id, "skill_rejected", "Skill not approved",
                         f"Your skill '{name}' was not approved.")
