"""
Readiness Tracker

Maintains criterion-level and aggregate job-readiness state for one student.

Per criterion:
    not_started -> in_progress -> completed -> verified
                                  completed -> (rejected) -> in_progress
A POC may un-verify a verified criterion back to completed (override path).

Every mutating method works on a copy of the record and returns it; the caller
persists the copy with a single save.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from .catalog import CriterionCatalog
from .constants import (
    EMPTY_CATALOG_READINESS,
    REPORTABLE_STATES,
    CriterionState,
    Role,
    VerificationDecision,
    enum_value,
)
from .contracts import Actor, CriterionStatus, OperationResult, StudentReadinessRecord
from .errors import StateConflictError, ValidationError
from .permissions import require_owner, require_role

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ReadinessTracker:

    def __init__(self, empty_catalog_readiness: int = EMPTY_CATALOG_READINESS):
        if empty_catalog_readiness not in (0, 100):
            raise ValueError("empty_catalog_readiness must be 0 or 100")
        self.empty_catalog_readiness = empty_catalog_readiness

    # -------------------------------------------------------------------------
    # Record lifecycle
    # -------------------------------------------------------------------------

    def ensure_record(
        self,
        record: Optional[StudentReadinessRecord],
        student_id: str,
        catalog: CriterionCatalog,
    ) -> StudentReadinessRecord:
        """Create the record lazily and add a not_started entry for new criteria."""
        if record is None:
            record = StudentReadinessRecord(student_id=student_id, school=catalog.school)
        else:
            record = record.model_copy(deep=True)

        for criterion in catalog.active_criteria():
            if record.get_status(criterion.criteria_id) is None:
                record.criteria_status.append(CriterionStatus(criteria_id=criterion.criteria_id))

        self._refresh(record, catalog)
        return record

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def verified_count(self, record: StudentReadinessRecord, catalog: CriterionCatalog) -> int:
        count = 0
        for criterion in catalog.active_criteria():
            status = record.get_status(criterion.criteria_id)
            if status is not None and status.status == CriterionState.VERIFIED:
                count += 1
        return count

    def compute_readiness_percentage(self, record: StudentReadinessRecord, catalog: CriterionCatalog) -> int:
        """verified / total active criteria * 100, rounded down."""
        total = len(catalog.active_criteria())
        if total == 0:
            return self.empty_catalog_readiness
        return (self.verified_count(record, catalog) * 100) // total

    def mandatory_verified(self, record: StudentReadinessRecord, catalog: CriterionCatalog) -> bool:
        for criterion in catalog.mandatory_criteria():
            status = record.get_status(criterion.criteria_id)
            if status is None or status.status != CriterionState.VERIFIED:
                return False
        return True

    # -------------------------------------------------------------------------
    # Student transitions
    # -------------------------------------------------------------------------

    def start_criterion(
        self,
        actor: Actor,
        record: StudentReadinessRecord,
        catalog: CriterionCatalog,
        criteria_id: str,
    ) -> Tuple[StudentReadinessRecord, OperationResult]:
        require_owner(actor, record.student_id)
        catalog.require(criteria_id)

        record = self.ensure_record(record, record.student_id, catalog)
        status = record.get_status(criteria_id)
        if status.status != CriterionState.NOT_STARTED:
            return record, OperationResult(ok=False, reason=f"Criterion is already {status.status}")

        status.status = CriterionState.IN_PROGRESS.value
        status.updated_at = _now()
        logger.info(f"Student {record.student_id} started criterion {criteria_id}")
        return record, OperationResult(ok=True)

    def report_criterion(
        self,
        actor: Actor,
        record: StudentReadinessRecord,
        catalog: CriterionCatalog,
        criteria_id: str,
        value: Optional[str] = None,
        proof_url: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Tuple[StudentReadinessRecord, OperationResult]:
        """
        Store a student submission and move the criterion to completed.

        A verified criterion is not reopened: the submission is refused with
        ok=False rather than an error.
        """
        require_owner(actor, record.student_id)
        catalog.require(criteria_id)

        record = self.ensure_record(record, record.student_id, catalog)
        status = record.get_status(criteria_id)

        if status.status == CriterionState.VERIFIED:
            logger.warning(f"Resubmission of verified criterion {criteria_id} by {record.student_id} refused")
            return record, OperationResult(ok=False, reason="Criterion is already verified")
        if status.status not in REPORTABLE_STATES:
            return record, OperationResult(ok=False, reason=f"Criterion cannot be reported from {status.status}")

        now = _now()
        status.status = CriterionState.COMPLETED.value
        status.self_reported_value = value if value is not None else status.self_reported_value
        status.proof_url = proof_url if proof_url is not None else status.proof_url
        status.notes = notes if notes is not None else status.notes
        status.completed_at = now
        status.updated_at = now

        record.readiness_percentage = self.compute_readiness_percentage(record, catalog)
        logger.info(f"Student {record.student_id} completed criterion {criteria_id}")
        return record, OperationResult(ok=True)

    # -------------------------------------------------------------------------
    # POC transitions
    # -------------------------------------------------------------------------

    def verify_criterion(
        self,
        actor: Actor,
        record: StudentReadinessRecord,
        catalog: CriterionCatalog,
        criteria_id: str,
        decision: VerificationDecision,
        verification_notes: Optional[str] = None,
        poc_comment: Optional[str] = None,
        poc_rating: Optional[int] = None,
    ) -> StudentReadinessRecord:
        """
        Verify or reject a completed criterion.

        Rejection sends it back to in_progress; the student's submission and the
        verification notes are kept so the student can see what to fix.
        """
        require_role(actor, Role.CAMPUS_POC)
        definition = catalog.require(criteria_id)
        decision = enum_value(decision)

        current = record.get_status(criteria_id)
        if current is None or current.status != CriterionState.COMPLETED:
            state = current.status if current is not None else CriterionState.NOT_STARTED.value
            logger.warning(f"Verify {criteria_id} for {record.student_id} refused: status is {state}")
            raise StateConflictError(f"Criterion must be completed before review (current: {state})")

        if decision == VerificationDecision.VERIFIED:
            if definition.poc_comment_required and not (poc_comment or "").strip():
                raise ValidationError(f"A PoC comment is required to verify '{definition.name}'")
            if definition.poc_rating_required and poc_rating is None:
                raise ValidationError(f"A PoC rating is required to verify '{definition.name}'")
        if poc_rating is not None and not 1 <= poc_rating <= definition.poc_rating_scale:
            raise ValidationError(f"Rating must be between 1 and {definition.poc_rating_scale}")

        record = record.model_copy(deep=True)
        status = record.get_status(criteria_id)
        now = _now()

        if decision == VerificationDecision.VERIFIED:
            status.status = CriterionState.VERIFIED.value
        elif decision == VerificationDecision.REJECTED:
            status.status = CriterionState.IN_PROGRESS.value
        else:
            raise ValidationError(f"Unknown decision '{decision}'")

        status.verified_by = actor.user_id
        status.verified_at = now
        status.verification_notes = verification_notes
        if poc_comment is not None:
            status.poc_comment = poc_comment
        if poc_rating is not None:
            status.poc_rating = poc_rating
        status.updated_at = now

        self._refresh(record, catalog)
        logger.info(f"Criterion {criteria_id} for {record.student_id} {decision} by {actor.user_id}")
        return record

    def unverify_criterion(
        self,
        actor: Actor,
        record: StudentReadinessRecord,
        catalog: CriterionCatalog,
        criteria_id: str,
        notes: Optional[str] = None,
    ) -> StudentReadinessRecord:
        """Administrative override: return a verified criterion to completed."""
        require_role(actor, Role.CAMPUS_POC)
        catalog.require(criteria_id)

        current = record.get_status(criteria_id)
        if current is None or current.status != CriterionState.VERIFIED:
            raise StateConflictError("Only a verified criterion can be un-verified")

        record = record.model_copy(deep=True)
        status = record.get_status(criteria_id)
        status.status = CriterionState.COMPLETED.value
        status.verification_notes = notes
        status.updated_at = _now()

        self._refresh(record, catalog)
        logger.info(f"Criterion {criteria_id} for {record.student_id} un-verified by {actor.user_id}")
        return record

    def approve_job_ready(
        self,
        actor: Actor,
        record: StudentReadinessRecord,
        catalog: CriterionCatalog,
        notes: Optional[str] = None,
    ) -> StudentReadinessRecord:
        require_role(actor, Role.CAMPUS_POC)

        if record.is_job_ready:
            raise StateConflictError("Student is already approved as job ready")
        total = len(catalog.active_criteria())
        verified = self.verified_count(record, catalog)
        if total == 0:
            raise StateConflictError("No readiness criteria are defined for this school")
        if verified != total:
            raise StateConflictError(f"All criteria must be verified ({verified}/{total} verified)")

        record = record.model_copy(deep=True)
        record.is_job_ready = True
        record.approved_by = actor.user_id
        record.approved_at = _now()
        record.approval_notes = notes
        record.readiness_percentage = self.compute_readiness_percentage(record, catalog)
        logger.info(f"Student {record.student_id} approved as job ready by {actor.user_id}")
        return record

    def revoke_job_ready(
        self,
        actor: Actor,
        record: StudentReadinessRecord,
        notes: Optional[str] = None,
    ) -> StudentReadinessRecord:
        require_role(actor, Role.CAMPUS_POC)
        if not record.is_job_ready:
            raise StateConflictError("Student is not approved as job ready")

        record = record.model_copy(deep=True)
        record.is_job_ready = False
        record.approval_notes = notes
        logger.info(f"Job ready status of {record.student_id} revoked by {actor.user_id}")
        return record

    def _refresh(self, record: StudentReadinessRecord, catalog: CriterionCatalog) -> None:
        record.readiness_percentage = self.compute_readiness_percentage(record, catalog)
        # Job-ready certification cannot outlive a fully verified checklist
        if record.is_job_ready and (
            record.readiness_percentage < 100 or not self.mandatory_verified(record, catalog)
        ):
            record.is_job_ready = False
            logger.info(f"Job ready status of {record.student_id} cleared after criterion change")
