"""
Job Match Engine

Combines the dimension scores for a (student profile, job) pair into a single
MatchResult. This is a pure function: no side effects, safe to re-run, and the
result is never persisted.
"""

import math
import threading
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional, Tuple

from .constants import (
    EXCELLENT_MATCH_THRESHOLD,
    FULL_MARKS,
    GOOD_MATCH_THRESHOLD,
    MATCH_WEIGHTS,
    MAX_MISSING_SKILLS_IN_SUMMARY,
)
from .contracts import JobDefinition, MatchBreakdown, MatchResult, StudentProfile
from .dimension_scorers import score_eligibility, score_requirements, score_skills


def compute_match(
    profile: StudentProfile,
    job: JobDefinition,
    acknowledgements: Optional[Dict[str, bool]] = None,
    as_of: Optional[date] = None,
) -> MatchResult:
    """
    Score a student against a job.

    Args:
        profile: Student profile including skills
        job: Job definition with eligibility, skills and custom requirements
        acknowledgements: Custom requirement confirmations, keyed by requirement
            text. Only available at submission time.
        as_of: Reference date for tenure rules (defaults to today)

    Returns:
        MatchResult with breakdown, overall percentage and can_apply
    """
    breakdown = MatchBreakdown(
        skills=score_skills(profile, job),
        eligibility=score_eligibility(profile, job, as_of=as_of),
        requirements=score_requirements(job, acknowledgements),
    )

    # Custom requirements are tracked separately and never lower the overall
    weighted = (
        breakdown.skills.percentage * MATCH_WEIGHTS["skills"] +
        breakdown.eligibility.percentage * MATCH_WEIGHTS["eligibility"]
    )
    overall = int(math.floor(weighted + 0.5))
    if overall == FULL_MARKS and not (breakdown.skills.fully_met and breakdown.eligibility.fully_met):
        overall = FULL_MARKS - 1

    # Decided on counts, never on rounded percentages
    can_apply = (
        breakdown.eligibility.fully_met and
        breakdown.skills.fully_met and
        breakdown.requirements.fully_met
    )

    return MatchResult(
        overall_percentage=overall,
        can_apply=can_apply,
        breakdown=breakdown,
        summary=generate_summary(breakdown, overall),
    )


def generate_summary(breakdown: MatchBreakdown, overall: int) -> List[str]:
    """Human-readable lines explaining the match."""
    messages: List[str] = []

    skills = breakdown.skills
    if skills.required > 0:
        if skills.matched == skills.required:
            messages.append(f"All {skills.required} required skills matched")
        else:
            missing_details = [d for d in skills.details if d.required and not d.meets]
            shown = [
                f"{d.skill_name} (need {d.required_level_label})"
                for d in missing_details[:MAX_MISSING_SKILLS_IN_SUMMARY]
            ]
            missing = skills.required - skills.matched
            suffix = "..." if len(missing_details) > MAX_MISSING_SKILLS_IN_SUMMARY else ""
            plural = "s" if missing > 1 else ""
            messages.append(f"{missing} skill{plural} need improvement: {', '.join(shown)}{suffix}")

    failed = [d.message for d in breakdown.eligibility.details if not d.meets]
    if failed:
        messages.append(f"Eligibility gaps: {'; '.join(failed)}")
    elif breakdown.eligibility.total > 0:
        messages.append("All eligibility criteria met")

    pending = [d.requirement for d in breakdown.requirements.details if not d.meets]
    if pending:
        messages.append(f"Confirm at application: {'; '.join(pending)}")

    if overall >= EXCELLENT_MATCH_THRESHOLD:
        messages.insert(0, "Excellent match!")
    elif overall >= GOOD_MATCH_THRESHOLD:
        messages.insert(0, "Good match")
    else:
        messages.insert(0, "Some requirements not met - Consider showing interest")

    return messages


class MatchCache:
    """
    Read-through memo for match results.

    Keyed by profile and job versions, so any stored change to either one
    produces a fresh computation. Kept in process memory only and shared by
    request threads, so every access to the entries holds the lock.
    """

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._entries: "OrderedDict[Tuple, MatchResult]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def key_for(
        profile: StudentProfile,
        job: JobDefinition,
        acknowledgements: Optional[Dict[str, bool]],
        as_of: date,
    ) -> Tuple:
        acks = tuple(sorted((acknowledgements or {}).items()))
        return (profile.student_id, profile.version, job.job_id, job.version, acks, as_of)

    def get_or_compute(
        self,
        profile: StudentProfile,
        job: JobDefinition,
        acknowledgements: Optional[Dict[str, bool]] = None,
        as_of: Optional[date] = None,
    ) -> MatchResult:
        as_of = as_of or date.today()
        key = self.key_for(profile, job, acknowledgements, as_of)
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                return cached.model_copy(deep=True)

        result = compute_match(profile, job, acknowledgements, as_of=as_of)
        with self._lock:
            self._entries[key] = result
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return result.model_copy(deep=True)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
