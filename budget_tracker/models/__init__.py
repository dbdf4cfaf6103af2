"""
Data Models Package

This package contains all Pydantic models used in the Budget Tracker system.
All data flowing through the system must conform to these schemas.
"""

from budget_tracker.models.budget import (
    BudgetPlan,
    BudgetPlanCreate,
    BudgetPlanUpdate,
    BudgetProgress,
    BudgetSummary,
    Credentials,
    EmailUpdate,
    Expense,
    ExpenseCategory,
    ExpenseCreate,
    ExpenseSubcategory,
    ExpenseUpdate,
    Income,
    IncomeCreate,
    IncomeUpdate,
    RecurringInterval,
    User,
    UserPublic,
    round_money,
    utcnow,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "BudgetPlan",
    "BudgetPlanCreate",
    "BudgetPlanUpdate",
    "BudgetProgress",
    "BudgetSummary",
    "Credentials",
    "EmailUpdate",
    "Expense",
    "ExpenseCategory",
    "ExpenseCreate",
    "ExpenseSubcategory",
    "ExpenseUpdate",
    "Income",
    "IncomeCreate",
    "IncomeUpdate",
    "RecurringInterval",
    "User",
    "UserPublic",
    "round_money",
    "utcnow",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
