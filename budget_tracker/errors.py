"""
Error Taxonomy

Every failure a caller can observe maps to exactly one of these types.
The API layer turns them into status codes in a single exception handler;
nothing below the API knows about HTTP.

A resource owned by another user is reported exactly like a missing one
(NotFoundError). UnauthorizedError is reserved for missing or invalid
credentials and for list calls that ask for another user's rows.
"""

from typing import Optional


FieldErrors = dict[str, list[str]]


class BudgetTrackerError(Exception):
    """Base exception for all expected failures."""

    status_code: int = 500
    kind: str = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BudgetTrackerError):
    """Bad input shape or range. May carry field-level messages."""

    status_code = 400
    kind = "validation_error"

    def __init__(self, message: str = "Validation failed", fields: Optional[FieldErrors] = None):
        super().__init__(message)
        self.fields = fields or {}


class UnauthorizedError(BudgetTrackerError):
    """Missing/invalid credentials, or a cross-user list attempt."""

    status_code = 401
    kind = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(BudgetTrackerError):
    """Resource absent or not owned by the caller."""

    status_code = 404
    kind = "not_found"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(BudgetTrackerError):
    """Unique constraint violation (e.g. duplicate email)."""

    status_code = 409
    kind = "conflict"
