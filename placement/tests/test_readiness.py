"""
Tests for the readiness tracker: criterion state machine, percentage and job-ready approval.
"""

import pytest

from placement.logic.catalog import CriterionCatalog
from placement.logic.contracts import CriterionDefinition
from placement.logic.errors import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from placement.logic.readiness import ReadinessTracker

from conftest import SCHOOL, build_catalog


def _report(tracker, student, record, catalog, criteria_id, value="done"):
    record, result = tracker.report_criterion(student, record, catalog, criteria_id, value=value)
    assert result.ok
    return record


def _verify(tracker, poc, record, catalog, criteria_id, decision="verified", **kwargs):
    return tracker.verify_criterion(poc, record, catalog, criteria_id, decision, **kwargs)


@pytest.fixture
def record(tracker, catalog):
    return tracker.ensure_record(None, "stu-1", catalog)


def test_new_record_starts_not_started(record):
    assert [s.status for s in record.criteria_status] == ["not_started"] * 4
    assert record.readiness_percentage == 0
    assert record.is_job_ready is False


def test_half_verified_checklist_is_fifty_percent_and_not_approvable(tracker, student, poc, catalog, record):
    for criteria_id in ("c1", "c2", "c3"):
        record = _report(tracker, student, record, catalog, criteria_id)
    record = _verify(tracker, poc, record, catalog, "c1")
    record = _verify(tracker, poc, record, catalog, "c2")

    assert record.get_status("c3").status == "completed"
    assert record.get_status("c4").status == "not_started"
    assert tracker.compute_readiness_percentage(record, catalog) == 50
    assert record.readiness_percentage == 50

    with pytest.raises(StateConflictError):
        tracker.approve_job_ready(poc, record, catalog)


def test_percentage_rounds_down(tracker, student, poc):
    catalog = build_catalog(3)
    record = tracker.ensure_record(None, "stu-1", catalog)
    record = _report(tracker, student, record, catalog, "c1")
    record = _verify(tracker, poc, record, catalog, "c1")
    assert record.readiness_percentage == 33


def test_verify_requires_completed_and_leaves_record_unchanged(tracker, poc, catalog, record):
    before = record.model_dump()
    with pytest.raises(StateConflictError):
        _verify(tracker, poc, record, catalog, "c1")
    assert record.model_dump() == before


def test_rejection_before_verification_keeps_percentage_and_submission(tracker, student, poc, catalog, record):
    record, _ = tracker.report_criterion(
        student, record, catalog, "c1", value="42 problems", proof_url="https://example.com/proof",
    )
    record = _verify(tracker, poc, record, catalog, "c1", decision="rejected", verification_notes="Need 50")

    status = record.get_status("c1")
    assert status.status == "in_progress"
    assert status.verification_notes == "Need 50"
    assert status.self_reported_value == "42 problems"
    assert status.proof_url == "https://example.com/proof"
    assert record.readiness_percentage == 0


def test_unverify_then_reject_drops_one_share(tracker, student, poc, catalog, record):
    record = _report(tracker, student, record, catalog, "c1")
    record = _verify(tracker, poc, record, catalog, "c1")
    assert record.readiness_percentage == 25

    record = tracker.unverify_criterion(poc, record, catalog, "c1", notes="Proof link broken")
    assert record.get_status("c1").status == "completed"
    assert record.readiness_percentage == 0

    record = _verify(tracker, poc, record, catalog, "c1", decision="rejected")
    assert record.get_status("c1").status == "in_progress"


def test_resubmitting_verified_criterion_is_refused(tracker, student, poc, catalog, record):
    record = _report(tracker, student, record, catalog, "c1")
    record = _verify(tracker, poc, record, catalog, "c1")

    record, result = tracker.report_criterion(student, record, catalog, "c1", value="new value")
    assert result.ok is False
    assert "verified" in result.reason
    assert record.get_status("c1").status == "verified"
    assert record.get_status("c1").self_reported_value == "done"


def test_completed_criterion_can_be_resubmitted(tracker, student, catalog, record):
    record = _report(tracker, student, record, catalog, "c1", value="first")
    record = _report(tracker, student, record, catalog, "c1", value="second")
    assert record.get_status("c1").status == "completed"
    assert record.get_status("c1").self_reported_value == "second"


def test_start_criterion_moves_to_in_progress_once(tracker, student, catalog, record):
    record, result = tracker.start_criterion(student, record, catalog, "c2")
    assert result.ok
    assert record.get_status("c2").status == "in_progress"

    record, result = tracker.start_criterion(student, record, catalog, "c2")
    assert result.ok is False


def test_only_owning_student_reports(tracker, other_student, poc, catalog, record):
    with pytest.raises(AuthorizationError):
        tracker.report_criterion(other_student, record, catalog, "c1", value="x")
    with pytest.raises(AuthorizationError):
        tracker.report_criterion(poc, record, catalog, "c1", value="x")


def test_students_cannot_verify(tracker, student, catalog, record):
    record = _report(tracker, student, record, catalog, "c1")
    with pytest.raises(AuthorizationError):
        _verify(tracker, student, record, catalog, "c1")


def test_unknown_and_empty_criteria(tracker, student, catalog, record):
    with pytest.raises(NotFoundError):
        tracker.report_criterion(student, record, catalog, "missing", value="x")
    with pytest.raises(ValidationError):
        tracker.report_criterion(student, record, catalog, "  ", value="x")


def test_job_ready_approval_and_double_approval(tracker, student, poc, catalog, record):
    for criterion in catalog.active_criteria():
        record = _report(tracker, student, record, catalog, criterion.criteria_id)
        record = _verify(tracker, poc, record, catalog, criterion.criteria_id)

    record = tracker.approve_job_ready(poc, record, catalog, notes="Great work")
    assert record.is_job_ready is True
    assert record.readiness_percentage == 100
    assert record.approved_by == "poc-1"

    with pytest.raises(StateConflictError):
        tracker.approve_job_ready(poc, record, catalog)


def test_unverify_clears_job_ready(tracker, student, poc, catalog, record):
    for criterion in catalog.active_criteria():
        record = _report(tracker, student, record, catalog, criterion.criteria_id)
        record = _verify(tracker, poc, record, catalog, criterion.criteria_id)
    record = tracker.approve_job_ready(poc, record, catalog)

    record = tracker.unverify_criterion(poc, record, catalog, "c3")
    assert record.is_job_ready is False
    assert record.readiness_percentage == 75


def test_revoke_job_ready(tracker, student, poc, catalog, record):
    with pytest.raises(StateConflictError):
        tracker.revoke_job_ready(poc, record)

    for criterion in catalog.active_criteria():
        record = _report(tracker, student, record, catalog, criterion.criteria_id)
        record = _verify(tracker, poc, record, catalog, criterion.criteria_id)
    record = tracker.approve_job_ready(poc, record, catalog)
    record = tracker.revoke_job_ready(poc, record, notes="Attendance dropped")
    assert record.is_job_ready is False
    assert record.approval_notes == "Attendance dropped"


def test_poc_comment_and_rating_requirements(tracker, student, poc):
    catalog = build_catalog(1, poc_comment_required=True, poc_rating_required=True, poc_rating_scale=4)
    record = tracker.ensure_record(None, "stu-1", catalog)
    record = _report(tracker, student, record, catalog, "c1")

    with pytest.raises(ValidationError):
        _verify(tracker, poc, record, catalog, "c1", poc_rating=3)
    with pytest.raises(ValidationError):
        _verify(tracker, poc, record, catalog, "c1", poc_comment="Solid")
    with pytest.raises(ValidationError):
        _verify(tracker, poc, record, catalog, "c1", poc_comment="Solid", poc_rating=5)

    record = _verify(tracker, poc, record, catalog, "c1", poc_comment="Solid", poc_rating=3)
    status = record.get_status("c1")
    assert status.status == "verified"
    assert status.poc_comment == "Solid"
    assert status.poc_rating == 3


def test_inactive_criteria_do_not_count(tracker, student, poc):
    criteria = [
        CriterionDefinition(criteria_id="a", name="A"),
        CriterionDefinition(criteria_id="b", name="B", is_active=False),
    ]
    catalog = CriterionCatalog(SCHOOL, criteria)
    record = tracker.ensure_record(None, "stu-1", catalog)
    assert [s.criteria_id for s in record.criteria_status] == ["a"]

    record = _report(tracker, student, record, catalog, "a")
    record = _verify(tracker, poc, record, catalog, "a")
    assert record.readiness_percentage == 100


@pytest.mark.parametrize("configured", [0, 100])
def test_empty_catalog_readiness_is_configurable(configured, poc):
    tracker = ReadinessTracker(empty_catalog_readiness=configured)
    catalog = CriterionCatalog(SCHOOL, [])
    record = tracker.ensure_record(None, "stu-1", catalog)
    assert record.readiness_percentage == configured

    with pytest.raises(StateConflictError):
        tracker.approve_job_ready(poc, record, catalog)


def test_empty_catalog_readiness_rejects_other_values():
    with pytest.raises(ValueError):
        ReadinessTracker(empty_catalog_readiness=50)


def test_job_ready_implies_full_percentage(tracker, student, poc, catalog, record):
    for criterion in catalog.active_criteria():
        record = _report(tracker, student, record, catalog, criterion.criteria_id)
        record = _verify(tracker, poc, record, catalog, criterion.criteria_id)
    record = tracker.approve_job_ready(poc, record, catalog)

    # A criterion added later must not leave a stale job-ready flag behind
    grown = CriterionCatalog(SCHOOL, catalog.criteria + [CriterionDefinition(criteria_id="c5", name="New")])
    record = tracker.ensure_record(record, "stu-1", grown)
    assert record.readiness_percentage == 80
    assert record.is_job_ready is False
