"""
Persistence Adapter for the Placement Engine

Maps the placement ORM tables to the engine contracts and back.

This is a pure READ + WRITE layer:
- NO scoring logic
- NO state-machine rules
- Saves only flush; the request handler (or a bulk loop, per item) commits
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.models_user import User
from placement.models import (
    PlacementApplication,
    PlacementCriterion,
    PlacementInterestRequest,
    PlacementJob,
    PlacementReadiness,
    PlacementStudentProfile,
)

from .contracts import (
    Actor,
    Application,
    CriterionDefinition,
    CriterionStatus,
    CustomRequirement,
    InterestRequest,
    JobDefinition,
    JobEligibilityRules,
    RequiredSkill,
    SkillEntry,
    StudentProfile,
    StudentReadinessRecord,
)
from .errors import StateConflictError, TransientCollaboratorError

logger = logging.getLogger(__name__)

CRITERION_FIELDS = (
    "name",
    "description",
    "input_type",
    "category",
    "is_mandatory",
    "is_active",
    "poc_comment_required",
    "poc_comment_template",
    "poc_rating_required",
    "poc_rating_scale",
)

PROFILE_FIELDS = (
    "school",
    "campus",
    "current_module",
    "cgpa",
    "gender",
    "house",
    "attendance_percentage",
    "date_of_joining",
    "profile_status",
    "revision_notes",
    "reviewed_by",
    "reviewed_at",
    "submitted_at",
    "version",
)

INTEREST_FIELDS = (
    "status",
    "reason",
    "acknowledged_gaps",
    "improvement_plan",
    "match_percentage",
    "reviewed_by",
    "reviewed_at",
    "review_notes",
    "rejection_reason",
    "created_at",
)


class SqlPlacementRepository:
    """PlacementRepository and AuthorizationProvider backed by one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except IntegrityError as e:
            logger.warning(f"Integrity conflict while {action}: {e.orig}")
            raise StateConflictError(f"Conflicting change while {action}; reload and retry")
        except SQLAlchemyError as e:
            logger.error(f"Database error while {action}: {e}")
            raise TransientCollaboratorError(f"Storage unavailable while {action}")

    # =========================================================================
    # CRITERION CATALOG
    # =========================================================================

    def get_criterion_catalog(self, school: str) -> List[CriterionDefinition]:
        with self._guard("loading criteria"):
            rows = self.db.execute(
                select(PlacementCriterion)
                .where(PlacementCriterion.school == school)
                .order_by(PlacementCriterion.position, PlacementCriterion.id)
            ).scalars().all()
        return [
            CriterionDefinition(
                criteria_id=row.criteria_id,
                **{field: getattr(row, field) for field in CRITERION_FIELDS if getattr(row, field) is not None},
            )
            for row in rows
        ]

    def save_criterion_catalog(self, school: str, criteria: List[CriterionDefinition]) -> None:
        """Replace the school's catalog; list order becomes `position`."""
        with self._guard("saving criteria"):
            self.db.execute(delete(PlacementCriterion).where(PlacementCriterion.school == school))
            for position, criterion in enumerate(criteria):
                data = criterion.model_dump(mode="json")
                self.db.add(PlacementCriterion(
                    school=school,
                    criteria_id=criterion.criteria_id,
                    position=position,
                    **{field: data[field] for field in CRITERION_FIELDS},
                ))
            self.db.flush()

    # =========================================================================
    # READINESS RECORDS
    # =========================================================================

    def _readiness_row(self, student_id: str, school: str) -> Optional[PlacementReadiness]:
        return self.db.execute(
            select(PlacementReadiness).where(
                PlacementReadiness.student_id == student_id,
                PlacementReadiness.school == school,
            )
        ).scalar_one_or_none()

    def get_readiness_record(self, student_id: str, school: str) -> Optional[StudentReadinessRecord]:
        with self._guard("loading readiness"):
            row = self._readiness_row(student_id, school)
        if row is None:
            return None
        return StudentReadinessRecord(
            student_id=row.student_id,
            school=row.school,
            criteria_status=[CriterionStatus.model_validate(item) for item in (row.criteria_status or [])],
            is_job_ready=row.is_job_ready,
            readiness_percentage=row.readiness_percentage,
            approved_by=row.approved_by,
            approved_at=row.approved_at,
            approval_notes=row.approval_notes,
        )

    def save_readiness_record(self, record: StudentReadinessRecord) -> None:
        with self._guard("saving readiness"):
            row = self._readiness_row(record.student_id, record.school)
            if row is None:
                row = PlacementReadiness(student_id=record.student_id, school=record.school)
                self.db.add(row)
            row.criteria_status = [entry.model_dump(mode="json") for entry in record.criteria_status]
            row.readiness_percentage = record.readiness_percentage
            row.is_job_ready = record.is_job_ready
            row.approved_by = record.approved_by
            row.approved_at = record.approved_at
            row.approval_notes = record.approval_notes
            self.db.flush()

    # =========================================================================
    # STUDENT PROFILES
    # =========================================================================

    def get_student_profile(self, student_id: str) -> Optional[StudentProfile]:
        with self._guard("loading profile"):
            row = self.db.get(PlacementStudentProfile, student_id)
        if row is None:
            return None
        data = {field: getattr(row, field) for field in PROFILE_FIELDS if getattr(row, field) is not None}
        return StudentProfile(
            student_id=row.student_id,
            skills=[SkillEntry.model_validate(item) for item in (row.skills or [])],
            **data,
        )

    def save_student_profile(self, profile: StudentProfile) -> None:
        with self._guard("saving profile"):
            row = self.db.get(PlacementStudentProfile, profile.student_id)
            if row is None:
                row = PlacementStudentProfile(student_id=profile.student_id)
                self.db.add(row)
            for field in PROFILE_FIELDS:
                setattr(row, field, getattr(profile, field))
            row.skills = [skill.model_dump(mode="json") for skill in profile.skills]
            self.db.flush()

    # =========================================================================
    # JOBS
    # =========================================================================

    def get_job(self, job_id: str) -> Optional[JobDefinition]:
        with self._guard("loading job"):
            row = self.db.get(PlacementJob, job_id)
        if row is None:
            return None
        return JobDefinition(
            job_id=row.job_id,
            title=row.title or "",
            company=row.company or "",
            eligibility=JobEligibilityRules.model_validate(row.eligibility or {}),
            required_skills=[RequiredSkill.model_validate(item) for item in (row.required_skills or [])],
            custom_requirements=[
                CustomRequirement.model_validate(item) for item in (row.custom_requirements or [])
            ],
            application_deadline=row.application_deadline,
            version=row.version or 0,
        )

    # =========================================================================
    # INTEREST REQUESTS
    # =========================================================================

    def _interest_row(self, student_id: str, job_id: str) -> Optional[PlacementInterestRequest]:
        return self.db.execute(
            select(PlacementInterestRequest).where(
                PlacementInterestRequest.student_id == student_id,
                PlacementInterestRequest.job_id == job_id,
            )
        ).scalar_one_or_none()

    def get_interest_request(self, student_id: str, job_id: str) -> Optional[InterestRequest]:
        with self._guard("loading interest request"):
            row = self._interest_row(student_id, job_id)
        if row is None:
            return None
        data = {field: getattr(row, field) for field in INTEREST_FIELDS if getattr(row, field) is not None}
        return InterestRequest(student_id=row.student_id, job_id=row.job_id, **data)

    def save_interest_request(self, request: InterestRequest) -> None:
        with self._guard("saving interest request"):
            row = self._interest_row(request.student_id, request.job_id)
            if row is None:
                row = PlacementInterestRequest(student_id=request.student_id, job_id=request.job_id)
                self.db.add(row)
            for field in INTEREST_FIELDS:
                setattr(row, field, getattr(request, field))
            row.acknowledged_gaps = list(request.acknowledged_gaps)
            self.db.flush()

    # =========================================================================
    # APPLICATIONS
    # =========================================================================

    def _application_row(self, student_id: str, job_id: str) -> Optional[PlacementApplication]:
        return self.db.execute(
            select(PlacementApplication).where(
                PlacementApplication.student_id == student_id,
                PlacementApplication.job_id == job_id,
            )
        ).scalar_one_or_none()

    def get_application(self, student_id: str, job_id: str) -> Optional[Application]:
        with self._guard("loading application"):
            row = self._application_row(student_id, job_id)
        if row is None:
            return None
        return Application(
            student_id=row.student_id,
            job_id=row.job_id,
            status=row.status,
            mode=row.mode,
            custom_responses=dict(row.custom_responses or {}),
            created_at=row.created_at,
        )

    def save_application(self, application: Application) -> None:
        with self._guard("saving application"):
            row = self._application_row(application.student_id, application.job_id)
            if row is None:
                row = PlacementApplication(student_id=application.student_id, job_id=application.job_id)
                self.db.add(row)
            row.status = application.status
            row.mode = application.mode
            row.custom_responses = dict(application.custom_responses)
            row.created_at = application.created_at
            self.db.flush()

    # =========================================================================
    # USERS
    # =========================================================================

    def commit(self) -> None:
        with self._guard("committing"):
            self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def resolve_actor(self, user_id: str) -> Optional[Actor]:
        with self._guard("loading user"):
            user = self.db.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return Actor(user_id=user.id, role=user.role, campus=user.campus)

    def get_user_email(self, user_id: str) -> Optional[str]:
        with self._guard("loading user"):
            user = self.db.get(User, user_id)
        return user.email if user is not None else None
