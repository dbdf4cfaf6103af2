"""Authentication package."""

from budget_tracker.services.auth.provider import (
    AuthProvider,
    CurrentUser,
    InvalidTokenError,
    TokenPayload,
)

__all__ = ["AuthProvider", "CurrentUser", "InvalidTokenError", "TokenPayload"]
