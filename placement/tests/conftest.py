"""
Shared fixtures: in-memory collaborators and small record builders.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple

import pytest

from placement.logic.catalog import CriterionCatalog
from placement.logic.contracts import (
    Actor,
    Application,
    CriterionDefinition,
    InterestRequest,
    JobDefinition,
    JobEligibilityRules,
    StudentProfile,
    StudentReadinessRecord,
)
from placement.logic.errors import TransientCollaboratorError
from placement.logic.readiness import ReadinessTracker
from placement.logic.runner import PlacementService

SCHOOL = "School of Programming"


class InMemoryRepository:
    """Dict-backed PlacementRepository; hands out copies like a real store would."""

    def __init__(self):
        self.catalogs: Dict[str, List[CriterionDefinition]] = {}
        self.records: Dict[Tuple[str, str], StudentReadinessRecord] = {}
        self.profiles: Dict[str, StudentProfile] = {}
        self.jobs: Dict[str, JobDefinition] = {}
        self.applications: Dict[Tuple[str, str], Application] = {}
        self.interests: Dict[Tuple[str, str], InterestRequest] = {}
        self.fail_saves = False
        # Profile saves fail while any of these skill ids is approved
        self.fail_profile_saves_for: set = set()
        self.commits = 0
        self.rollbacks = 0

    def _check(self):
        if self.fail_saves:
            raise TransientCollaboratorError("Storage unavailable")

    def get_criterion_catalog(self, school: str) -> List[CriterionDefinition]:
        return [c.model_copy(deep=True) for c in self.catalogs.get(school, [])]

    def save_criterion_catalog(self, school: str, criteria: List[CriterionDefinition]) -> None:
        self._check()
        self.catalogs[school] = [c.model_copy(deep=True) for c in criteria]

    def get_readiness_record(self, student_id: str, school: str) -> Optional[StudentReadinessRecord]:
        record = self.records.get((student_id, school))
        return record.model_copy(deep=True) if record else None

    def save_readiness_record(self, record: StudentReadinessRecord) -> None:
        self._check()
        self.records[(record.student_id, record.school)] = record.model_copy(deep=True)

    def get_student_profile(self, student_id: str) -> Optional[StudentProfile]:
        profile = self.profiles.get(student_id)
        return profile.model_copy(deep=True) if profile else None

    def save_student_profile(self, profile: StudentProfile) -> None:
        self._check()
        approved = {s.skill_id for s in profile.skills if s.approval_status == "approved"}
        if approved & self.fail_profile_saves_for:
            raise TransientCollaboratorError("Storage unavailable")
        self.profiles[profile.student_id] = profile.model_copy(deep=True)

    def get_job(self, job_id: str) -> Optional[JobDefinition]:
        job = self.jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    def get_application(self, student_id: str, job_id: str) -> Optional[Application]:
        application = self.applications.get((student_id, job_id))
        return application.model_copy(deep=True) if application else None

    def save_application(self, application: Application) -> None:
        self._check()
        self.applications[(application.student_id, application.job_id)] = application.model_copy(deep=True)

    def get_interest_request(self, student_id: str, job_id: str) -> Optional[InterestRequest]:
        request = self.interests.get((student_id, job_id))
        return request.model_copy(deep=True) if request else None

    def save_interest_request(self, request: InterestRequest) -> None:
        self._check()
        self.interests[(request.student_id, request.job_id)] = request.model_copy(deep=True)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class RecordingNotifier:

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str]] = []

    def notify(self, recipient_id: str, event: str, title: str, message: str) -> None:
        if self.fail:
            raise RuntimeError("SMTP down")
        self.sent.append((recipient_id, event))


def build_catalog(count: int = 4, school: str = SCHOOL, **overrides) -> CriterionCatalog:
    criteria = [
        CriterionDefinition(criteria_id=f"c{i}", name=f"Criterion {i}", **overrides)
        for i in range(1, count + 1)
    ]
    return CriterionCatalog(school, criteria)


def build_profile(**fields) -> StudentProfile:
    data = {
        "student_id": "stu-1",
        "school": SCHOOL,
        "campus": "Pune",
        "current_module": "Backend",
        "cgpa": 8.0,
        "gender": "female",
        "house": "Bhairav",
        "attendance_percentage": 90.0,
        "date_of_joining": date(2024, 1, 1),
        "profile_status": "approved",
    }
    data.update(fields)
    return StudentProfile(**data)


def build_job(**fields) -> JobDefinition:
    data = {"job_id": "job-1", "title": "Backend Intern", "company": "Acme"}
    data.update(fields)
    if "eligibility" not in data:
        data["eligibility"] = JobEligibilityRules(readiness_requirement="no")
    return JobDefinition(**data)


@pytest.fixture
def student():
    return Actor(user_id="stu-1", role="student")


@pytest.fixture
def other_student():
    return Actor(user_id="stu-2", role="student")


@pytest.fixture
def poc():
    return Actor(user_id="poc-1", role="campus_poc", campus="Pune")


@pytest.fixture
def tracker():
    return ReadinessTracker(empty_catalog_readiness=0)


@pytest.fixture
def catalog():
    return build_catalog()


@pytest.fixture
def repository(catalog):
    repo = InMemoryRepository()
    repo.catalogs[SCHOOL] = list(catalog.criteria)
    repo.profiles["stu-1"] = build_profile()
    repo.jobs["job-1"] = build_job()
    return repo


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(repository, notifier):
    return PlacementService(repository, notifier=notifier)
