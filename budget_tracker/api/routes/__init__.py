"""API route modules."""

from budget_tracker.api.routes import (
    auth,
    budget_plans,
    expenses,
    health,
    income,
    summary,
    users,
)

ROUTERS = [
    health.router,
    auth.router,
    users.router,
    income.router,
    expenses.router,
    budget_plans.router,
    summary.router,
]

__all__ = ["ROUTERS"]
