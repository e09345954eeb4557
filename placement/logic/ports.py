"""
Collaborator Ports

Shapes of the persistence, authorization and notification collaborators the
service depends on. The SQLAlchemy adapter and the test fakes implement them.
"""

from typing import List, Optional, Protocol

from .contracts import (
    Actor,
    Application,
    CriterionDefinition,
    InterestRequest,
    JobDefinition,
    StudentProfile,
    StudentReadinessRecord,
)


class PlacementRepository(Protocol):
    """
    Persistence collaborator.

    get_* return None when nothing is stored. save_* write one record and
    raise TransientCollaboratorError on I/O failure. commit/rollback close the
    current unit of work; bulk operations commit once per item.
    """

    def get_criterion_catalog(self, school: str) -> List[CriterionDefinition]: ...

    def save_criterion_catalog(self, school: str, criteria: List[CriterionDefinition]) -> None: ...

    def get_readiness_record(self, student_id: str, school: str) -> Optional[StudentReadinessRecord]: ...

    def save_readiness_record(self, record: StudentReadinessRecord) -> None: ...

    def get_student_profile(self, student_id: str) -> Optional[StudentProfile]: ...

    def save_student_profile(self, profile: StudentProfile) -> None: ...

    def get_job(self, job_id: str) -> Optional[JobDefinition]: ...

    def get_application(self, student_id: str, job_id: str) -> Optional[Application]: ...

    def save_application(self, application: Application) -> None: ...

    def get_interest_request(self, student_id: str, job_id: str) -> Optional[InterestRequest]: ...

    def save_interest_request(self, request: InterestRequest) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class AuthorizationProvider(Protocol):
    """Resolves the caller's role from server-side state, never from the request."""

    def resolve_actor(self, user_id: str) -> Optional[Actor]: ...


class Notifier(Protocol):
    """Fire-and-forget; the service logs and ignores any exception raised here."""

    def notify(self, recipient_id: str, event: str, title: str, message: str) -> None: ...
