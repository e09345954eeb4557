"""
Engine Errors

Every error carries the HTTP status the router answers with.
"""


class PlacementError(Exception):
    """Base class for errors surfaced to the caller."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PlacementError):
    """Malformed or missing input. Never retried."""
    status_code = 400


class StateConflictError(PlacementError):
    """The record is not in a state that allows the transition."""
    status_code = 409


class NotFoundError(PlacementError):
    """Unknown criterion, job, student or skill."""
    status_code = 404


class AuthorizationError(PlacementError):
    """The caller's server-side role does not permit the operation."""
    status_code = 403


class TransientCollaboratorError(PlacementError):
    """A persistence call failed; state was left unchanged and the caller may retry."""
    status_code = 503
