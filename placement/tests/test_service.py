"""
Tests for PlacementService: orchestration over in-memory collaborators.
"""

import pytest

from placement.logic.commands import (
    AddCriterion,
    AddSkill,
    ApproveJobReady,
    BulkApproveSkills,
    DecideInterest,
    DecideSkill,
    ReportCriterion,
    ReviewProfile,
    SubmitApplication,
    SubmitInterest,
    VerifyCriterion,
    WithdrawApplication,
)
from placement.logic.constants import GateOutcome
from placement.logic.contracts import Actor, InterestRequest, RequiredSkill, SkillEntry
from placement.logic.errors import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    TransientCollaboratorError,
)
from placement.logic.runner import PlacementService

from conftest import SCHOOL, RecordingNotifier, build_job

REASON = "I am close on the required skills and have a plan to close the gap within two weeks."


def _report(service, student, criteria_id):
    service.report_criterion(student, ReportCriterion(school=SCHOOL, criteria_id=criteria_id, value="done"))


def _verify(service, poc, criteria_id, decision="verified"):
    return service.verify_criterion(
        poc, VerifyCriterion(student_id="stu-1", school=SCHOOL, criteria_id=criteria_id, decision=decision),
    )


def _gap_job(repository):
    repository.jobs["job-2"] = build_job(
        job_id="job-2", required_skills=[RequiredSkill(skill_id="rust", proficiency_level=2)],
    )
    return "job-2"


# =============================================================================
# READINESS
# =============================================================================

def test_record_created_on_first_report(service, repository, student):
    assert service.get_readiness(student, SCHOOL).readiness_percentage == 0
    assert repository.records == {}

    _report(service, student, "c1")

    stored = repository.records[("stu-1", SCHOOL)]
    assert stored.get_status("c1").status == "completed"


def test_refused_report_is_not_saved(service, repository, student, poc):
    _report(service, student, "c1")
    _verify(service, poc, "c1")
    saved = repository.records[("stu-1", SCHOOL)].model_dump()

    record, result = service.report_criterion(
        student, ReportCriterion(school=SCHOOL, criteria_id="c1", value="again"),
    )
    assert result.ok is False
    assert repository.records[("stu-1", SCHOOL)].model_dump() == saved


def test_verification_notifies_student(service, notifier, student, poc):
    _report(service, student, "c1")
    _report(service, student, "c2")
    _verify(service, poc, "c1")
    _verify(service, poc, "c2", decision="rejected")

    assert notifier.sent == [("stu-1", "criterion_verified"), ("stu-1", "criterion_rejected")]


def test_job_ready_end_to_end(service, repository, notifier, student, poc):
    for criteria_id in ("c1", "c2", "c3", "c4"):
        _report(service, student, criteria_id)
        _verify(service, poc, criteria_id)

    record = service.approve_job_ready(poc, ApproveJobReady(student_id="stu-1", school=SCHOOL))
    assert record.is_job_ready is True
    assert repository.records[("stu-1", SCHOOL)].is_job_ready is True
    assert ("stu-1", "job_ready_approved") in notifier.sent

    with pytest.raises(StateConflictError):
        service.approve_job_ready(poc, ApproveJobReady(student_id="stu-1", school=SCHOOL))


def test_persistence_failure_leaves_state_unchanged(service, repository, student, poc):
    _report(service, student, "c1")
    saved = repository.records[("stu-1", SCHOOL)].model_dump()

    repository.fail_saves = True
    with pytest.raises(TransientCollaboratorError):
        _verify(service, poc, "c1")

    assert repository.records[("stu-1", SCHOOL)].model_dump() == saved


def test_notification_failure_is_not_fatal(repository, student, poc):
    service = PlacementService(repository, notifier=RecordingNotifier(fail=True))
    _report(service, student, "c1")

    record = _verify(service, poc, "c1")
    assert record.get_status("c1").status == "verified"
    assert repository.records[("stu-1", SCHOOL)].get_status("c1").status == "verified"


def test_poc_adds_criterion(service, repository, poc, student):
    catalog = service.add_criterion(poc, AddCriterion(school=SCHOOL, name="Portfolio"))
    assert len(catalog) == 5
    assert len(repository.catalogs[SCHOOL]) == 5

    with pytest.raises(AuthorizationError):
        service.add_criterion(student, AddCriterion(school=SCHOOL, name="Sneaky"))


def test_seed_default_catalog(service, repository, poc):
    catalog = service.seed_default_catalog(poc, "School of Business")
    assert len(repository.catalogs["School of Business"]) == len(catalog.criteria) == 9

    with pytest.raises(StateConflictError):
        service.seed_default_catalog(poc, SCHOOL)


# =============================================================================
# MATCH & GATE
# =============================================================================

def test_students_only_see_their_own_match(service, repository, student, other_student, poc):
    assert service.compute_match(student, "job-1").overall_percentage == 100
    assert service.compute_match(poc, "job-1", student_id="stu-1").can_apply is True

    with pytest.raises(AuthorizationError):
        service.compute_match(other_student, "job-1", student_id="stu-1")
    with pytest.raises(NotFoundError):
        service.compute_match(student, "missing")


def test_stored_readiness_gates_applying(service, repository, student, poc):
    repository.jobs["job-1"] = build_job(eligibility={"readiness_requirement": "yes"})

    decision = service.decide_eligibility(student, "job-1")
    assert decision.outcome == GateOutcome.INTEREST_REQUIRED
    assert decision.readiness_percentage == 0
    assert decision.meets_readiness is False
    with pytest.raises(StateConflictError):
        service.submit_application(student, SubmitApplication(job_id="job-1"))
    assert repository.applications == {}

    for criteria_id in ("c1", "c2", "c3", "c4"):
        _report(service, student, criteria_id)
        _verify(service, poc, criteria_id)
    assert service.decide_eligibility(student, "job-1").outcome == GateOutcome.APPLY_ALLOWED
    assert service.submit_application(student, SubmitApplication(job_id="job-1")).mode == "application"


# =============================================================================
# INTEREST & APPLICATIONS
# =============================================================================

def test_interest_flow(service, repository, notifier, student, poc):
    job_id = _gap_job(repository)
    assert service.decide_eligibility(student, job_id).outcome == GateOutcome.INTEREST_REQUIRED

    request = service.submit_interest_request(student, SubmitInterest(job_id=job_id, reason=REASON))
    assert request.status == "pending"
    assert service.decide_eligibility(student, job_id).outcome == GateOutcome.AWAITING_POC_DECISION

    with pytest.raises(StateConflictError):
        service.submit_interest_request(student, SubmitInterest(job_id=job_id, reason=REASON))

    service.decide_interest_request(
        poc, DecideInterest(student_id="stu-1", job_id=job_id, decision="rejected"),
    )
    assert ("stu-1", "interest_rejected") in notifier.sent
    assert service.decide_eligibility(student, job_id).outcome == GateOutcome.INTEREST_DENIED

    again = service.submit_interest_request(student, SubmitInterest(job_id=job_id, reason=REASON))
    assert again.status == "pending"
    assert repository.interests[("stu-1", job_id)].status == "pending"

    service.decide_interest_request(
        poc, DecideInterest(student_id="stu-1", job_id=job_id, decision="approved"),
    )
    application = service.submit_application(student, SubmitApplication(job_id=job_id))
    assert application.mode == "interest"
    assert service.decide_eligibility(student, job_id).outcome == GateOutcome.ALREADY_APPLIED


def test_decide_missing_interest_request(service, poc):
    with pytest.raises(NotFoundError):
        service.decide_interest_request(poc, DecideInterest(student_id="stu-1", job_id="job-1", decision="approved"))


def test_apply_withdraw_and_apply_again(service, repository, student):
    service.submit_application(student, SubmitApplication(job_id="job-1"))
    with pytest.raises(StateConflictError):
        service.submit_application(student, SubmitApplication(job_id="job-1"))

    withdrawn = service.withdraw_application(student, WithdrawApplication(job_id="job-1"))
    assert withdrawn.status == "withdrawn"

    again = service.submit_application(student, SubmitApplication(job_id="job-1"))
    assert again.status == "applied"
    assert len(repository.applications) == 1


def test_withdraw_without_application(service, student):
    with pytest.raises(NotFoundError):
        service.withdraw_application(student, WithdrawApplication(job_id="job-1"))


# =============================================================================
# PROFILE & SKILLS
# =============================================================================

def test_revision_request_blocks_applying(service, repository, notifier, student, poc):
    service.review_profile(
        poc, ReviewProfile(student_id="stu-1", decision="needs_revision", revision_notes="Fix campus"),
    )
    assert ("stu-1", "profile_revision_requested") in notifier.sent
    assert service.decide_eligibility(student, "job-1").outcome == GateOutcome.PROFILE_APPROVAL_REQUIRED

    service.submit_profile(student)
    service.review_profile(poc, ReviewProfile(student_id="stu-1", decision="approved"))
    assert service.decide_eligibility(student, "job-1").outcome == GateOutcome.APPLY_ALLOWED


def test_skill_approval_changes_match(service, repository, student, poc):
    repository.jobs["job-3"] = build_job(job_id="job-3", required_skills=[RequiredSkill(skill_id="sql")])
    service.add_skill(student, AddSkill(skill_id="sql", skill_name="SQL", source="catalog", self_rating=2))
    assert service.compute_match(student, "job-3").breakdown.skills.percentage == 0

    service.decide_skill(poc, DecideSkill(student_id="stu-1", skill_id="sql", decision="approved"))
    assert service.compute_match(student, "job-3").breakdown.skills.percentage == 100


def test_bulk_approve_reports_each_item(service, repository, notifier, poc):
    profile = repository.profiles["stu-1"]
    profile.skills = [
        SkillEntry(skill_id=skill_id, skill_name=skill_id.upper(), source="catalog")
        for skill_id in ("s1", "s2", "s3")
    ]
    repository.fail_profile_saves_for = {"s2"}

    results = service.bulk_approve_skills(poc, BulkApproveSkills(student_id="stu-1"))

    assert [(r.item_id, r.ok) for r in results] == [("s1", True), ("s2", False), ("s3", True)]
    stored = repository.profiles["stu-1"]
    assert stored.get_skill("s1").approval_status == "approved"
    assert stored.get_skill("s2").approval_status == "pending"
    assert stored.get_skill("s3").approval_status == "approved"
    assert repository.commits == 2
    assert repository.rollbacks == 1
    assert [e for _, e in notifier.sent] == ["skill_approved", "skill_approved"]


def test_bulk_approve_unknown_skill(service, poc):
    results = service.bulk_approve_skills(poc, BulkApproveSkills(student_id="stu-1", skill_ids=["nope"]))
    assert results[0].ok is False
    assert "not found" in results[0].error


def test_bulk_approve_requires_poc(service, student):
    with pytest.raises(AuthorizationError):
        service.bulk_approve_skills(student, BulkApproveSkills(student_id="stu-1"))


# =============================================================================
# CAMPUS SCOPE
# =============================================================================

@pytest.fixture
def remote_poc():
    return Actor(user_id="poc-2", role="campus_poc", campus="Dharamshala")


def _pending_interest(repository):
    repository.interests[("stu-1", "job-1")] = InterestRequest(student_id="stu-1", job_id="job-1", reason=REASON)


@pytest.mark.parametrize("operation", [
    lambda s, a: _verify(s, a, "c1"),
    lambda s, a: s.approve_job_ready(a, ApproveJobReady(student_id="stu-1", school=SCHOOL)),
    lambda s, a: s.review_profile(a, ReviewProfile(student_id="stu-1", decision="needs_revision", revision_notes="x")),
    lambda s, a: s.decide_skill(a, DecideSkill(student_id="stu-1", skill_id="sql", decision="approved")),
    lambda s, a: s.bulk_approve_skills(a, BulkApproveSkills(student_id="stu-1")),
    lambda s, a: s.decide_interest_request(a, DecideInterest(student_id="stu-1", job_id="job-1", decision="approved")),
    lambda s, a: s.get_readiness(a, SCHOOL, student_id="stu-1"),
    lambda s, a: s.compute_match(a, "job-1", student_id="stu-1"),
])
def test_campus_poc_cannot_act_on_other_campus(service, repository, notifier, student, remote_poc, operation):
    _report(service, student, "c1")
    service.add_skill(student, AddSkill(skill_id="sql", skill_name="SQL", source="catalog"))
    _pending_interest(repository)
    before = (
        repository.records[("stu-1", SCHOOL)].model_dump(),
        repository.profiles["stu-1"].model_dump(),
        repository.interests[("stu-1", "job-1")].model_dump(),
    )

    with pytest.raises(AuthorizationError):
        operation(service, remote_poc)

    assert before == (
        repository.records[("stu-1", SCHOOL)].model_dump(),
        repository.profiles["stu-1"].model_dump(),
        repository.interests[("stu-1", "job-1")].model_dump(),
    )
    assert notifier.sent == []


def test_campus_match_ignores_case(service, student):
    _report(service, student, "c1")
    poc = Actor(user_id="poc-3", role="campus_poc", campus=" pune ")
    assert _verify(service, poc, "c1").get_status("c1").status == "verified"


def test_coordinator_covers_every_campus(service, student):
    _report(service, student, "c1")
    coordinator = Actor(user_id="coord-1", role="coordinator", campus="Dharamshala")
    assert _verify(service, coordinator, "c1").get_status("c1").status == "verified"
