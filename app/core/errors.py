"""
Domain errors raised by the lifecycle services.

Every rejected operation carries a specific, human-readable reason so the
caller can tell "already voted" apart from "not authorized" or "not found".
The HTTP layer maps each class to a status code (see app.main).
"""


class LifecycleError(Exception):
    """Base class for typed lifecycle failures."""

    code = "lifecycle_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LifecycleError):
    """Referenced report, notification or worker does not exist."""

    code = "not_found"
    status_code = 404


class ForbiddenError(LifecycleError):
    """Actor lacks the role or relationship the operation requires."""

    code = "forbidden"
    status_code = 403


class InvalidStateError(LifecycleError):
    """Transition not permitted from the current state, or a guard failed."""

    code = "invalid_state"
    status_code = 409


class ResourceUnavailableError(LifecycleError):
    """A required resource (e.g. a worker with a known location) is missing."""

    code = "resource_unavailable"
    status_code = 503


class DuplicateVoteError(InvalidStateError):
    """A vote already exists for this (report, voter) pair."""

    code = "duplicate_vote"
