"""
Skill Ledger

Per-student skill entries: self-rated technical/soft skills and catalog skills
that need POC approval before they count toward a match.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .constants import ApprovalStatus, SkillCategory, SkillSource, enum_value
from .contracts import Actor, SkillEntry, StudentProfile
from .errors import NotFoundError, StateConflictError, ValidationError
from .permissions import require_owner

logger = logging.getLogger(__name__)


class SkillLedger:
    """Read/write access to the skills carried on a StudentProfile."""

    def add_skill(
        self,
        actor: Actor,
        profile: StudentProfile,
        skill_id: str,
        skill_name: str = "",
        source: SkillSource = SkillSource.SELF_REPORTED,
        category: SkillCategory = SkillCategory.TECHNICAL,
        self_rating: int = 0,
    ) -> StudentProfile:
        """Add a skill to the student's own profile. Catalog skills start pending."""
        require_owner(actor, profile.student_id)
        if not skill_id or not skill_id.strip():
            raise ValidationError("skill_id is required")
        if profile.get_skill(skill_id) is not None:
            raise StateConflictError("Skill already added")

        try:
            entry = SkillEntry(
                skill_id=skill_id,
                skill_name=skill_name,
                source=source,
                category=category,
                self_rating=self_rating,
            )
        except ValueError as e:
            raise ValidationError(str(e))

        updated = profile.model_copy(deep=True)
        updated.skills.append(entry)
        updated.version += 1
        logger.info(f"Skill {skill_id} ({enum_value(source)}) added for student {profile.student_id}")
        return updated

    def set_approval(
        self,
        profile: StudentProfile,
        skill_id: str,
        status: ApprovalStatus,
        reviewer_id: str,
    ) -> StudentProfile:
        """Record a POC decision on one catalog skill."""
        entry = profile.get_skill(skill_id)
        if entry is None:
            raise NotFoundError(f"Skill '{skill_id}' not found in student profile")
        if entry.source != SkillSource.CATALOG:
            raise StateConflictError(f"Skill '{skill_id}' is self-reported and needs no approval")

        updated = profile.model_copy(deep=True)
        target = updated.get_skill(skill_id)
        target.approval_status = enum_value(status)
        target.approved_by = reviewer_id
        target.approved_at = datetime.now(timezone.utc)
        updated.version += 1
        return updated

    def pending_skills(self, profile: StudentProfile) -> List[SkillEntry]:
        return [
            s for s in profile.skills
            if s.source == SkillSource.CATALOG and s.approval_status == ApprovalStatus.PENDING
        ]

    def skill_levels(self, profile: StudentProfile) -> Tuple[Dict[str, int], Dict[str, int]]:
        """
        Effective proficiency per skill, keyed by id and by lower-cased name.

        Self-reported ratings take precedence. Approved catalog skills fill the
        gaps and count at least as Beginner; pending/rejected ones do not count.
        """
        by_id: Dict[str, int] = {}
        by_name: Dict[str, int] = {}

        for skill in profile.skills:
            if skill.source != SkillSource.SELF_REPORTED:
                continue
            by_id[skill.skill_id] = skill.self_rating
            if skill.skill_name:
                by_name[skill.skill_name.strip().lower()] = skill.self_rating

        for skill in profile.skills:
            if skill.source != SkillSource.CATALOG or skill.approval_status != ApprovalStatus.APPROVED:
                continue
            level = max(skill.self_rating, 1)
            by_id.setdefault(skill.skill_id, level)
            if skill.skill_name:
                by_name.setdefault(skill.skill_name.strip().lower(), level)

        return by_id, by_name

    def level_for(
        self,
        levels: Tuple[Dict[str, int], Dict[str, int]],
        skill_id: str,
        skill_name: Optional[str] = None,
    ) -> int:
        by_id, by_name = levels
        level = by_id.get(skill_id, 0)
        if level == 0 and skill_name:
            level = by_name.get(skill_name.strip().lower(), 0)
        return level
