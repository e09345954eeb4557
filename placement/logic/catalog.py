"""
Criterion Catalog

Ordered, per-school set of readiness criterion definitions.
Owned by coordinators/POCs; criteria_id is immutable once created.
"""

import logging
import re
import uuid
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_CRITERIA, Role
from .contracts import Actor, CriterionDefinition
from .errors import NotFoundError, StateConflictError, ValidationError
from .permissions import require_role

logger = logging.getLogger(__name__)

# Fields a coordinator may edit after creation
EDITABLE_FIELDS = (
    "name",
    "description",
    "input_type",
    "category",
    "is_mandatory",
    "poc_comment_required",
    "poc_comment_template",
    "poc_rating_required",
    "poc_rating_scale",
    "is_active",
)


def slugify_criterion_name(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")
    return slug or "criterion"


class CriterionCatalog:
    """
    A school's readiness checklist.

    Mutations return a new catalog; the instance itself is never changed, so a
    failed save leaves the previous catalog intact.
    """

    def __init__(self, school: str, criteria: Optional[List[CriterionDefinition]] = None):
        self.school = school
        self.criteria: List[CriterionDefinition] = list(criteria or [])

    @classmethod
    def with_defaults(cls, school: str) -> "CriterionCatalog":
        return cls(school, [CriterionDefinition(**item) for item in DEFAULT_CRITERIA])

    def __len__(self) -> int:
        return len(self.active_criteria())

    def get(self, criteria_id: str) -> Optional[CriterionDefinition]:
        for criterion in self.criteria:
            if criterion.criteria_id == criteria_id:
                return criterion
        return None

    def require(self, criteria_id: str) -> CriterionDefinition:
        if not criteria_id or not criteria_id.strip():
            raise ValidationError("criteria_id is required")
        criterion = self.get(criteria_id)
        if criterion is None or not criterion.is_active:
            raise NotFoundError(f"Criterion '{criteria_id}' is not defined for {self.school}")
        return criterion

    def active_criteria(self) -> List[CriterionDefinition]:
        return [c for c in self.criteria if c.is_active]

    def mandatory_criteria(self) -> List[CriterionDefinition]:
        return [c for c in self.active_criteria() if c.is_mandatory]

    def add_criterion(self, actor: Actor, data: Dict[str, Any]) -> "CriterionCatalog":
        require_role(actor, Role.CAMPUS_POC)
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Name is required")

        criteria_id = data.get("criteria_id") or f"{slugify_criterion_name(name)}_{uuid.uuid4().hex[:8]}"
        if self.get(criteria_id) is not None:
            raise StateConflictError(f"Criterion '{criteria_id}' already exists for {self.school}")

        fields = {k: v for k, v in data.items() if v is not None}
        criterion = CriterionDefinition(**{**fields, "name": name, "criteria_id": criteria_id})
        logger.info(f"Criterion {criteria_id} added to {self.school} by {actor.user_id}")
        return CriterionCatalog(self.school, self.criteria + [criterion])

    def update_criterion(self, actor: Actor, criteria_id: str, changes: Dict[str, Any]) -> "CriterionCatalog":
        require_role(actor, Role.CAMPUS_POC)
        existing = self.get(criteria_id)
        if existing is None:
            raise NotFoundError(f"Criterion '{criteria_id}' not found")
        if "criteria_id" in changes and changes["criteria_id"] != criteria_id:
            raise ValidationError("criteria_id cannot be changed")

        allowed = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        updated = CriterionDefinition(**{**existing.model_dump(), **allowed})
        logger.info(f"Criterion {criteria_id} updated in {self.school}: {sorted(allowed)}")
        return CriterionCatalog(
            self.school,
            [updated if c.criteria_id == criteria_id else c for c in self.criteria],
        )

    def remove_criterion(self, actor: Actor, criteria_id: str) -> "CriterionCatalog":
        require_role(actor, Role.CAMPUS_POC)
        if self.get(criteria_id) is None:
            raise NotFoundError(f"Criterion '{criteria_id}' not found")
        logger.info(f"Criterion {criteria_id} removed from {self.school}")
        return CriterionCatalog(self.school, [c for c in self.criteria if c.criteria_id != criteria_id])
