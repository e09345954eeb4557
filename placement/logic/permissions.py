"""
Server-side role checks used by every mutating operation.
"""

from typing import Optional

from .constants import ROLE_RANK, Role, enum_value
from .contracts import Actor
from .errors import AuthorizationError


def has_role(actor: Actor, minimum: Role) -> bool:
    rank = ROLE_RANK.get(enum_value(actor.role), -1)
    return rank >= ROLE_RANK[enum_value(minimum)]


def require_role(actor: Actor, minimum: Role) -> None:
    if not has_role(actor, minimum):
        raise AuthorizationError(f"Role '{enum_value(actor.role)}' is not allowed to perform this action")


def require_owner(actor: Actor, student_id: str) -> None:
    """The caller must be the student who owns the record."""
    if enum_value(actor.role) != Role.STUDENT.value or actor.user_id != student_id:
        raise AuthorizationError("Only the owning student can perform this action")


def require_campus_scope(actor: Actor, campus: Optional[str]) -> None:
    """
    Campus POCs may only act on students of their own campus.

    Coordinators and managers cover every campus. A student without a campus
    on record is not restricted.
    """
    if enum_value(actor.role) != Role.CAMPUS_POC.value or not campus:
        return
    if (actor.campus or "").strip().lower() != campus.strip().lower():
        raise AuthorizationError("You can only access students from your own campus")
