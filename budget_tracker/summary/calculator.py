"""
Budget Summary Calculator

DESIGN DECISION: The summary is DETERMINISTIC and side-effect free.
It never touches storage, never suspends and never rounds. Callers
fetch the user's income, expenses and active plan, hand them in, and
round only when presenting the result.

Inputs are duck-typed: anything with an `amount` (and, for expenses,
a `category`) works, as does anything carrying the three percentage
attributes for the plan.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Protocol

from budget_tracker.config import AppSettings
from budget_tracker.models.budget import (
    BudgetProgress,
    BudgetSummary,
    ExpenseCategory,
)


HUNDRED = Decimal("100")
ZERO = Decimal("0")

DEFAULT_SPLIT = (Decimal("50"), Decimal("30"), Decimal("20"))


class HasAmount(Protocol):
    amount: Decimal


class CategorizedAmount(Protocol):
    amount: Decimal
    category: ExpenseCategory


class PercentageSplit(Protocol):
    needs_percentage: Decimal
    wants_percentage: Decimal
    savings_percentage: Decimal


def _sum(amounts: Iterable[Decimal]) -> Decimal:
    return sum((Decimal(a) for a in amounts), ZERO)


def default_split(settings: Optional[AppSettings] = None) -> tuple[Decimal, Decimal, Decimal]:
    """The split used when the user has no active plan."""
    if settings is None:
        return DEFAULT_SPLIT
    return (
        settings.default_needs_percentage,
        settings.default_wants_percentage,
        settings.default_savings_percentage,
    )


def compute_summary(
    incomes: Iterable[HasAmount],
    expenses: Iterable[CategorizedAmount],
    active_plan: Optional[PercentageSplit] = None,
    fallback: Optional[tuple[Decimal, Decimal, Decimal]] = None,
) -> BudgetSummary:
    """
    Derive budget vs actual figures.

    Args:
        incomes: The user's income entries
        expenses: The user's expense entries
        active_plan: The active plan, or None to use the default split
        fallback: Override for the default 50/30/20 split

    Returns:
        An unrounded BudgetSummary. Remaining values are negative
        when a category is over budget.
    """
    expenses = list(expenses)
    total_income = _sum(income.amount for income in incomes)

    if active_plan is not None:
        needs_pct = Decimal(active_plan.needs_percentage)
        wants_pct = Decimal(active_plan.wants_percentage)
        savings_pct = Decimal(active_plan.savings_percentage)
    else:
        needs_pct, wants_pct, savings_pct = fallback or DEFAULT_SPLIT

    needs_budget = total_income * needs_pct / HUNDRED
    wants_budget = total_income * wants_pct / HUNDRED
    savings_budget = total_income * savings_pct / HUNDRED

    needs_spent = _sum(e.amount for e in expenses if e.category == ExpenseCategory.NEEDS)
    wants_spent = _sum(e.amount for e in expenses if e.category == ExpenseCategory.WANTS)
    total_expenses = needs_spent + wants_spent

    return BudgetSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=total_income - total_expenses,
        needs_percentage=needs_pct,
        wants_percentage=wants_pct,
        savings_percentage=savings_pct,
        needs_budget=needs_budget,
        wants_budget=wants_budget,
        savings_budget=savings_budget,
        needs_spent=needs_spent,
        wants_spent=wants_spent,
        needs_remaining=needs_budget - needs_spent,
        wants_remaining=wants_budget - wants_spent,
        plan_id=getattr(active_plan, "id", None),
    )


def _percent_used(spent: Decimal, budget: Decimal) -> int:
    # Capped for progress bars; over_budget carries the overflow.
    if budget <= ZERO:
        return 0
    used = (spent / budget * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(min(used, HUNDRED))


def budget_progress(summary: BudgetSummary) -> list[BudgetProgress]:
    """
    Per-category rows for the dashboard.

    Savings is a target only: it has no spend, so its row always shows
    the full budget remaining.
    """
    rows = [
        ("needs", summary.needs_percentage, summary.needs_budget, summary.needs_spent),
        ("wants", summary.wants_percentage, summary.wants_budget, summary.wants_spent),
        ("savings", summary.savings_percentage, summary.savings_budget, ZERO),
    ]
    return [
        BudgetProgress(
            name=name,
            percentage=percentage,
            budget=budget,
            spent=spent,
            remaining=budget - spent,
            percent_used=_percent_used(spent, budget),
            over_budget=spent > budget,
        )
        for name, percentage, budget, spent in rows
    ]
