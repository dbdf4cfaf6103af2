"""
Storage Services Package

Provides abstract repository interfaces and the relational implementation.
SQLite and PostgreSQL are both served by SqlStore.
"""

from budget_tracker.services.storage.interface import (
    BudgetPlanRepository,
    DuplicateError,
    ExpenseGuard,
    ExpenseRepository,
    IncomeRepository,
    PlanGuard,
    StorageConnectionError,
    StorageError,
    UserRepository,
)
from budget_tracker.services.storage.sql import (
    Base,
    SqlStore,
    create_store_engine,
)

__all__ = [
    # Interfaces
    "BudgetPlanRepository",
    "ExpenseGuard",
    "ExpenseRepository",
    "IncomeRepository",
    "PlanGuard",
    "UserRepository",
    # Exceptions
    "DuplicateError",
    "StorageConnectionError",
    "StorageError",
    # SQL implementation
    "Base",
    "SqlStore",
    "create_store_engine",
]
