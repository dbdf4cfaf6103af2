"""Validation package."""

from budget_tracker.validation.validator import (
    PERCENTAGE_SUM_FIELD,
    PERCENTAGE_SUM_MESSAGE,
    ValidationResult,
    percentages_sum_to_100,
    pydantic_errors_to_fields,
    validate_budget_plan_create,
    validate_budget_plan_update,
    validate_credentials,
    validate_email_update,
    validate_expense_create,
    validate_expense_update,
    validate_income_create,
    validate_income_update,
    validate_login,
)

__all__ = [
    "PERCENTAGE_SUM_FIELD",
    "PERCENTAGE_SUM_MESSAGE",
    "ValidationResult",
    "percentages_sum_to_100",
    "pydantic_errors_to_fields",
    "validate_budget_plan_create",
    "validate_budget_plan_update",
    "validate_credentials",
    "validate_email_update",
    "validate_expense_create",
    "validate_expense_update",
    "validate_income_create",
    "validate_income_update",
    "validate_login",
]
