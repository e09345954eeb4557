"""
Placement API Routes

Exposes the readiness tracker, match engine, eligibility gate and approval
workflow via REST API under /placement.
"""

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from db import get_session
from utils.auth_utils import decode_token
from utils.notifications import EmailNotifier
from .logic.adapter import SqlPlacementRepository
from .logic.catalog import CriterionCatalog
from .logic.commands import (
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
from .logic.contracts import Actor
from .logic.errors import PlacementError
from .logic.match_engine import MatchCache
from .logic.runner import PlacementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/placement", tags=["placement"])

# Shared across requests; entries are keyed by profile and job versions
match_cache = MatchCache()


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_actor(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_session),
) -> Actor:
    """Caller identity from the bearer token; the role always comes from the users table."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token)
    except Exception as e:
        logger.error(f"Token decode failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = data.get("sub")
    try:
        actor = SqlPlacementRepository(db).resolve_actor(str(user_id)) if user_id else None
    except PlacementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if actor is None:
        logger.error(f"User not found for id: {user_id}")
        raise HTTPException(status_code=401, detail="User not found")
    return actor


def _run(db: Session, operation: Callable[[PlacementService], Any]) -> Any:
    """Run one operation in the request's transaction and map engine errors to HTTP."""
    repository = SqlPlacementRepository(db)
    service = PlacementService(
        repository,
        notifier=EmailNotifier(repository.get_user_email),
        cache=match_cache,
    )
    try:
        result = operation(service)
        repository.commit()
        return result
    except PlacementError as e:
        repository.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)


def _catalog_out(catalog: CriterionCatalog) -> Dict[str, Any]:
    return {"school": catalog.school, "criteria": [c.model_dump() for c in catalog.criteria]}


# =============================================================================
# HEALTH
# =============================================================================

@router.get("/health", summary="Placement engine health check")
def health_check():
    return {"status": "healthy", "service": "placement"}


# =============================================================================
# CRITERION CATALOG
# =============================================================================

@router.get("/catalog/{school}", summary="Readiness criteria for a school")
def get_catalog(school: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: _catalog_out(s.get_catalog(school)))


@router.post("/catalog/{school}/seed", summary="Seed the default criteria")
def seed_catalog(school: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: _catalog_out(s.seed_default_catalog(actor, school)))


@router.post("/catalog/criteria", summary="Add a criterion")
def add_criterion(command: AddCriterion, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: _catalog_out(s.add_criterion(actor, command)))


@router.patch("/catalog/criteria", summary="Update a criterion")
def update_criterion(command: UpdateCriterion, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: _catalog_out(s.update_criterion(actor, command)))


@router.delete("/catalog/{school}/criteria/{criteria_id}", summary="Remove a criterion")
def remove_criterion(
    school: str,
    criteria_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    command = RemoveCriterion(school=school, criteria_id=criteria_id)
    return _run(db, lambda s: _catalog_out(s.remove_criterion(actor, command)))


# =============================================================================
# READINESS
# =============================================================================

@router.get("/readiness", summary="Readiness checklist state")
def get_readiness(
    school: str = Query(...),
    student_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.get_readiness(actor, school, student_id))


@router.post("/readiness/start", summary="Start working on a criterion")
def start_criterion(command: StartCriterion, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    record, result = _run(db, lambda s: s.start_criterion(actor, command))
    return {"ok": result.ok, "reason": result.reason, "record": record}


@router.post("/readiness/report", summary="Submit a criterion for review")
def report_criterion(command: ReportCriterion, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    record, result = _run(db, lambda s: s.report_criterion(actor, command))
    return {"ok": result.ok, "reason": result.reason, "record": record}


@router.post("/readiness/verify", summary="Verify or reject a completed criterion")
def verify_criterion(command: VerifyCriterion, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.verify_criterion(actor, command))


@router.post("/readiness/unverify", summary="Return a verified criterion to completed")
def unverify_criterion(
    command: UnverifyCriterion,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.unverify_criterion(actor, command))


@router.post("/readiness/job-ready", summary="Approve a student as job ready")
def approve_job_ready(command: ApproveJobReady, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.approve_job_ready(actor, command))


@router.post("/readiness/job-ready/revoke", summary="Revoke job-ready status")
def revoke_job_ready(command: RevokeJobReady, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.revoke_job_ready(actor, command))


# =============================================================================
# MATCHING & ELIGIBILITY
# =============================================================================

@router.get("/jobs/{job_id}/match", summary="Match a student against a job")
def compute_match(
    job_id: str,
    student_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.compute_match(actor, job_id, student_id))


@router.get("/jobs/{job_id}/eligibility", summary="What the student can do about a job")
def decide_eligibility(
    job_id: str,
    student_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.decide_eligibility(actor, job_id, student_id))


# =============================================================================
# INTEREST REQUESTS & APPLICATIONS
# =============================================================================

@router.post("/interest", summary="Show interest in a job")
def submit_interest(command: SubmitInterest, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.submit_interest_request(actor, command))


@router.post("/interest/decision", summary="Approve or reject an interest request")
def decide_interest(command: DecideInterest, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.decide_interest_request(actor, command))


@router.post("/applications", summary="Apply for a job")
def submit_application(
    command: SubmitApplication,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.submit_application(actor, command))


@router.post("/applications/withdraw", summary="Withdraw an application")
def withdraw_application(
    command: WithdrawApplication,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.withdraw_application(actor, command))


# =============================================================================
# PROFILE & SKILLS
# =============================================================================

@router.get("/profile", summary="Student profile")
def get_profile(
    student_id: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    return _run(db, lambda s: s.get_profile(actor, student_id))


@router.post("/profile/submit", summary="Submit profile for approval")
def submit_profile(actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.submit_profile(actor))


@router.post("/profile/review", summary="Approve a profile or request revision")
def review_profile(command: ReviewProfile, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.review_profile(actor, command))


@router.post("/skills", summary="Add a skill")
def add_skill(command: AddSkill, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.add_skill(actor, command))


@router.post("/skills/decision", summary="Approve or reject a catalog skill")
def decide_skill(command: DecideSkill, actor: Actor = Depends(get_actor), db: Session = Depends(get_session)):
    return _run(db, lambda s: s.decide_skill(actor, command))


@router.post("/skills/bulk-approve", summary="Approve pending skills one by one")
def bulk_approve_skills(
    command: BulkApproveSkills,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_session),
):
    results = _run(db, lambda s: s.bulk_approve_skills(actor, command))
    return {"results": results, "approved": sum(1 for r in results if r.ok), "total": len(results)}
