"""
Dimension Scorers

Individual scoring functions for each match dimension (skills, eligibility,
custom requirements). Each scorer produces an integer percentage 0-100 plus a
detail list explaining every item.
All logic is deterministic - no AI/ML components.
"""

import math
from datetime import date
from typing import Dict, List, Optional

from .constants import (
    DAYS_PER_MONTH,
    FULL_MARKS,
    MODULE_HIERARCHY,
    PROFICIENCY_LABELS,
)
from .contracts import (
    EligibilityBreakdown,
    EligibilityDetail,
    JobDefinition,
    RequirementBreakdown,
    RequirementDetail,
    SkillBreakdown,
    SkillMatchDetail,
    StudentProfile,
)
from .skill_ledger import SkillLedger


def score_skills(profile: StudentProfile, job: JobDefinition) -> SkillBreakdown:
    """
    Score required skills against the student's effective proficiency.

    Only skills flagged `required` count toward the percentage; optional
    skills are still listed in the details.
    """
    if not job.required_skills:
        return SkillBreakdown(matched=0, required=0, percentage=FULL_MARKS, details=[])

    ledger = SkillLedger()
    levels = ledger.skill_levels(profile)

    details: List[SkillMatchDetail] = []
    matched = 0
    required = 0

    for req_skill in job.required_skills:
        student_level = ledger.level_for(levels, req_skill.skill_id, req_skill.skill_name)
        meets = student_level >= req_skill.proficiency_level

        if req_skill.required:
            required += 1
            if meets:
                matched += 1

        details.append(SkillMatchDetail(
            skill_id=req_skill.skill_id,
            skill_name=req_skill.skill_name or "Unknown",
            required=req_skill.required,
            required_level=req_skill.proficiency_level,
            required_level_label=PROFICIENCY_LABELS[req_skill.proficiency_level],
            student_level=student_level,
            student_level_label=PROFICIENCY_LABELS[student_level],
            meets=meets,
            gap=0 if meets else req_skill.proficiency_level - student_level,
        ))

    return SkillBreakdown(
        matched=matched,
        required=required,
        percentage=percent(matched, required),
        details=details,
    )


def score_eligibility(
    profile: StudentProfile,
    job: JobDefinition,
    as_of: Optional[date] = None,
) -> EligibilityBreakdown:
    """
    Evaluate each populated eligibility rule.

    Unset rules are vacuously satisfied and excluded from the total.
    """
    rules = job.eligibility
    details: List[EligibilityDetail] = []

    if rules.min_cgpa is not None:
        cgpa = profile.cgpa or 0.0
        meets = cgpa >= rules.min_cgpa
        details.append(EligibilityDetail(
            rule="cgpa",
            meets=meets,
            student_value=cgpa,
            job_requirement=rules.min_cgpa,
            message=f"CGPA: {cgpa} (meets {rules.min_cgpa} requirement)" if meets
            else f"CGPA: {cgpa} (requires {rules.min_cgpa})",
        ))

    if rules.schools:
        school = (profile.school or "").strip()
        meets = school.lower() in {s.strip().lower() for s in rules.schools if s}
        details.append(EligibilityDetail(
            rule="school",
            meets=meets,
            student_value=school or "Not specified",
            job_requirement=", ".join(rules.schools),
            message=f"School: {school} (eligible)" if meets
            else f"School: Requires {'/'.join(rules.schools)}",
        ))

    if rules.campuses:
        campus = (profile.campus or "").strip()
        meets = campus.lower() in {c.strip().lower() for c in rules.campuses if c}
        details.append(EligibilityDetail(
            rule="campus",
            meets=meets,
            student_value=campus or "Not specified",
            job_requirement=f"{len(rules.campuses)} campuses",
            message="Campus: Eligible" if meets else "Campus: Not in eligible list",
        ))

    if rules.min_module:
        module = profile.current_module or ""
        meets = module_meets(module, rules.min_module)
        details.append(EligibilityDetail(
            rule="module",
            meets=meets,
            student_value=module or "Not specified",
            job_requirement=rules.min_module,
            message=f"Module: {module} (meets {rules.min_module} requirement)" if meets
            else f"Module: Requires {rules.min_module} or higher",
        ))

    if rules.female_only:
        gender = (profile.gender or "").strip().lower()
        meets = gender == "female"
        details.append(EligibilityDetail(
            rule="gender",
            meets=meets,
            student_value=gender or "Not specified",
            job_requirement="Female only",
            message="Gender: Eligible (Female-only job)" if meets
            else "Gender: This job is for female candidates only",
        ))

    if rules.houses:
        house = (profile.house or "").strip()
        meets = house.lower() in {h.strip().lower() for h in rules.houses if h}
        details.append(EligibilityDetail(
            rule="house",
            meets=meets,
            student_value=house or "Not specified",
            job_requirement=", ".join(rules.houses),
            message=f"House: {house} (eligible)" if meets
            else f"House: Requires {'/'.join(rules.houses)}",
        ))

    if rules.min_attendance is not None:
        attendance = profile.attendance_percentage or 0.0
        meets = attendance >= rules.min_attendance
        details.append(EligibilityDetail(
            rule="attendance",
            meets=meets,
            student_value=attendance,
            job_requirement=rules.min_attendance,
            message=f"Attendance: {attendance}% (meets {rules.min_attendance}% requirement)" if meets
            else f"Attendance: {attendance}% (requires {rules.min_attendance}%)",
        ))

    if rules.min_months_at_org is not None:
        months = tenure_months(profile.date_of_joining, as_of or date.today())
        meets = months >= rules.min_months_at_org
        details.append(EligibilityDetail(
            rule="tenure",
            meets=meets,
            student_value=months,
            job_requirement=rules.min_months_at_org,
            message=f"Time at organisation: {months} months (meets {rules.min_months_at_org} months requirement)"
            if meets else f"Time at organisation: {months} months (requires {rules.min_months_at_org} months)",
        ))

    passed = sum(1 for d in details if d.meets)
    return EligibilityBreakdown(
        passed=passed,
        total=len(details),
        percentage=percent(passed, len(details)),
        details=details,
    )


def score_requirements(
    job: JobDefinition,
    acknowledgements: Optional[Dict[str, bool]] = None,
) -> RequirementBreakdown:
    """
    Score custom requirements against the student's confirmations.

    Confirmations are only collected at application time, so before that every
    mandatory requirement counts as unmet. Optional requirements never block.
    """
    if not job.custom_requirements:
        return RequirementBreakdown(met=0, total=0, percentage=FULL_MARKS, details=[])

    acknowledgements = acknowledgements or {}
    details: List[RequirementDetail] = []
    met = 0

    for req in job.custom_requirements:
        acknowledged = acknowledgements.get(req.requirement)
        meets = acknowledged is True or not req.is_mandatory
        if meets:
            met += 1
        details.append(RequirementDetail(
            requirement=req.requirement,
            is_mandatory=req.is_mandatory,
            acknowledged=acknowledged,
            meets=meets,
        ))

    total = len(job.custom_requirements)
    return RequirementBreakdown(met=met, total=total, percentage=percent(met, total), details=details)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def percent(part: int, whole: int) -> int:
    """
    Whole-number percentage rounded half up; an empty whole is fully met.

    Only a complete count reaches 100, so 199 of 200 reads as 99.
    """
    if whole <= 0:
        return FULL_MARKS
    value = int(math.floor(part * 100 / whole + 0.5))
    if part < whole:
        return min(value, FULL_MARKS - 1)
    return value


def module_meets(student_module: str, required_module: str) -> bool:
    """Compare modules along MODULE_HIERARCHY; unknown modules only match exactly."""
    hierarchy = [m.lower() for m in MODULE_HIERARCHY]
    student = student_module.strip().lower()
    required = required_module.strip().lower()
    if required not in hierarchy:
        return student == required
    if student not in hierarchy:
        return False
    return hierarchy.index(student) >= hierarchy.index(required)


def tenure_months(joined: Optional[date], as_of: date) -> int:
    """Whole 30-day periods between joining and `as_of`."""
    if joined is None or joined > as_of:
        return 0
    return (as_of - joined).days // DAYS_PER_MONTH
