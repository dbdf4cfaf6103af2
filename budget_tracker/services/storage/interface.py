"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep business logic decoupled from the SQL mechanics
2. Point the same code at SQLite locally and PostgreSQL in production
3. Test the plan manager and flows against a throwaway database

Every per-resource method takes the owner's user_id and must filter on it.
A row that exists but belongs to someone else is reported exactly like a
missing row (None / False), so callers cannot tell the two apart.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional
from uuid import UUID

from budget_tracker.models.budget import (
    BudgetPlan,
    Expense,
    ExpenseCategory,
    Income,
    User,
)


class UserRepository(ABC):
    """Account storage."""

    @abstractmethod
    async def add_user(self, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateError: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def update_user_email(self, user_id: UUID, email: str) -> Optional[User]:
        """
        Change a user's email.

        Returns:
            The updated user, None if the user doesn't exist

        Raises:
            DuplicateError: If another account already uses the email
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> bool:
        """
        Delete a user and every income, expense and plan they own.

        Returns:
            True if the user existed
        """
        pass


class IncomeRepository(ABC):
    """Income entry storage, always scoped to one owner."""

    @abstractmethod
    async def add_income(self, income: Income) -> Income:
        pass

    @abstractmethod
    async def get_income(self, income_id: UUID, user_id: UUID) -> Optional[Income]:
        pass

    @abstractmethod
    async def list_income(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Income]:
        """List the owner's income, newest first."""
        pass

    @abstractmethod
    async def update_income(
        self,
        income_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
    ) -> Optional[Income]:
        """
        Apply changes to an owned income row.

        Returns:
            The updated income, None if not found or not owned
        """
        pass

    @abstractmethod
    async def delete_income(self, income_id: UUID, user_id: UUID) -> bool:
        pass


ExpenseGuard = Callable[[Expense], None]


class ExpenseRepository(ABC):
    """Expense entry storage, always scoped to one owner."""

    @abstractmethod
    async def add_expense(self, expense: Expense) -> Expense:
        pass

    @abstractmethod
    async def get_expense(self, expense_id: UUID, user_id: UUID) -> Optional[Expense]:
        pass

    @abstractmethod
    async def list_expenses(
        self,
        user_id: UUID,
        category: Optional[ExpenseCategory] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        """List the owner's expenses, newest first, optionally by category."""
        pass

    @abstractmethod
    async def update_expense(
        self,
        expense_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        guard: Optional[ExpenseGuard] = None,
    ) -> Optional[Expense]:
        """
        Apply changes to an owned expense in one transaction.

        The guard sees the merged expense before anything is written
        and may raise to abort. A merged row that is not recurring has
        its interval and due date cleared.

        Returns:
            The updated expense, None if not found or not owned
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID, user_id: UUID) -> bool:
        pass


PlanGuard = Callable[[BudgetPlan], None]


class BudgetPlanRepository(ABC):
    """
    Budget plan storage.

    Implementations MUST run "deactivate the owner's other active plans"
    and "write the newly active plan" as one atomic unit, so that no
    reader ever observes two active plans for a user.
    """

    @abstractmethod
    async def add_plan(self, plan: BudgetPlan) -> tuple[BudgetPlan, int]:
        """
        Insert a plan. If plan.active, deactivate the owner's other
        active plans in the same transaction.

        Returns:
            (stored_plan, number_of_plans_deactivated)
        """
        pass

    @abstractmethod
    async def get_plan(self, plan_id: UUID, user_id: UUID) -> Optional[BudgetPlan]:
        pass

    @abstractmethod
    async def get_active_plan(self, user_id: UUID) -> Optional[BudgetPlan]:
        pass

    @abstractmethod
    async def list_plans(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
    ) -> list[BudgetPlan]:
        """List the owner's plans, newest first, optionally by active flag."""
        pass

    @abstractmethod
    async def update_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        guard: Optional[PlanGuard] = None,
    ) -> Optional[tuple[BudgetPlan, int]]:
        """
        Apply changes to an owned plan in one transaction.

        The guard is called with the merged plan before anything is
        written; if it raises, the transaction is rolled back and the
        exception propagates. If changes set active to True, the
        owner's other active plans are deactivated in the same
        transaction.

        Returns:
            (updated_plan, number_of_plans_deactivated), or None if
            the plan is not found or not owned
        """
        pass

    @abstractmethod
    async def delete_plan(self, plan_id: UUID, user_id: UUID) -> Optional[BudgetPlan]:
        """
        Delete an owned plan. Never activates another plan.

        Returns:
            The deleted plan, None if not found or not owned
        """
        pass

    @abstractmethod
    async def count_active_plans(self, user_id: UUID) -> int:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """A write violated a uniqueness or integrity constraint."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
