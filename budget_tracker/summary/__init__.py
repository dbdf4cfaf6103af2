"""Budget summary package."""

from budget_tracker.models.budget import round_money
from budget_tracker.summary.calculator import (
    DEFAULT_SPLIT,
    budget_progress,
    compute_summary,
    default_split,
)

__all__ = [
    "DEFAULT_SPLIT",
    "budget_progress",
    "compute_summary",
    "default_split",
    "round_money",
]
