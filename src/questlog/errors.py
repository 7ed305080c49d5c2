"""Failure taxonomy shared by repositories, the session guard and handlers.

Each class carries the HTTP status it maps to at the boundary. Handlers
raise or propagate these; ``middleware.error_handler`` renders them.
"""

from __future__ import annotations


class QuestlogError(Exception):
    """Base class for every expected failure."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(QuestlogError):
    """The requested entity does not exist."""

    status_code = 404
    default_detail = "Not found"


class ConflictError(QuestlogError):
    """A uniqueness rule was violated (duplicate email, repeated event)."""

    status_code = 409
    default_detail = "Conflict"


class UnauthorizedError(QuestlogError):
    """No credential, or the credential could not be verified."""

    status_code = 401
    default_detail = "Not authenticated"


class ForbiddenError(QuestlogError):
    """Valid credential, but the caller does not own the resource."""

    status_code = 403
    default_detail = "Forbidden"


class ValidationError(QuestlogError):
    """Malformed input payload."""

    status_code = 400
    default_detail = "Invalid request"


class BackendError(QuestlogError):
    """Storage or transport fault. The detail shown to clients is generic."""

    status_code = 503
    default_detail = "Storage backend unavailable"
