"""Services package."""

from budget_tracker.services.auth import (
    AuthProvider,
    CurrentUser,
    InvalidTokenError,
    TokenPayload,
)
from budget_tracker.services.storage import (
    BudgetPlanRepository,
    DuplicateError,
    ExpenseRepository,
    IncomeRepository,
    SqlStore,
    StorageConnectionError,
    StorageError,
    UserRepository,
)

__all__ = [
    # Auth
    "AuthProvider",
    "CurrentUser",
    "InvalidTokenError",
    "TokenPayload",
    # Storage services
    "BudgetPlanRepository",
    "DuplicateError",
    "ExpenseRepository",
    "IncomeRepository",
    "SqlStore",
    "StorageConnectionError",
    "StorageError",
    "UserRepository",
]
