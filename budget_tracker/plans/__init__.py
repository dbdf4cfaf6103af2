"""Budget plan lifecycle package."""

from budget_tracker.plans.manager import PLAN_RESOURCE, PlanActivationManager

__all__ = ["PLAN_RESOURCE", "PlanActivationManager"]
