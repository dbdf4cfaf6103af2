"""
Typed Input Validators

DESIGN DECISION: Each entity has one validator function per operation:

    validate_<entity>_<create|update>(payload: dict) -> ValidationResult[T]

A result holds either the parsed model or field-level messages
({field: [messages]}), never both. The pydantic models do the shape
and range checks; the functions here add the rules that span fields
(percentage sum, password length from settings) and turn pydantic's
error list into the flat field map clients receive.

IMPORTANT: Validators never fix input silently. The one exception is
recurring schedule data on one-off expenses, which is cleared because
it has no meaning there.
"""

from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from budget_tracker.config import AppSettings, get_settings
from budget_tracker.errors import FieldErrors, ValidationError
from budget_tracker.models.budget import (
    BudgetPlanCreate,
    BudgetPlanUpdate,
    Credentials,
    EmailUpdate,
    ExpenseCreate,
    ExpenseUpdate,
    IncomeCreate,
    IncomeUpdate,
)


T = TypeVar("T", bound=BaseModel)

PERCENTAGE_SUM_FIELD = "percentages"
PERCENTAGE_SUM_MESSAGE = "Percentages must sum to 100"


class ValidationResult(Generic[T]):
    """Outcome of validating one payload."""

    __slots__ = ("value", "fields")

    def __init__(self, value: Optional[T] = None, fields: Optional[FieldErrors] = None):
        if (value is None) == (not fields):
            raise ValueError("ValidationResult needs exactly one of value or fields")
        self.value = value
        self.fields = fields or {}

    @property
    def is_valid(self) -> bool:
        return self.value is not None

    def unwrap(self) -> T:
        """Return the parsed model or raise the taxonomy ValidationError."""
        if self.value is None:
            raise ValidationError(fields=self.fields)
        return self.value

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(value={self.value!r})"
        return f"ValidationResult(fields={self.fields!r})"


# =============================================================================
# HELPERS
# =============================================================================

def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc]
    return ".".join(parts) if parts else "body"


def _message(error: dict) -> str:
    msg = error.get("msg", "Invalid value")
    # pydantic prefixes messages raised from our own validators
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


def pydantic_errors_to_fields(exc: PydanticValidationError) -> FieldErrors:
    """Flatten a pydantic ValidationError into {field: [messages]}."""
    fields: FieldErrors = {}
    for error in exc.errors():
        fields.setdefault(_field_name(error.get("loc", ())), []).append(_message(error))
    return fields


def _parse(model: type[T], payload: Any) -> ValidationResult[T]:
    if not isinstance(payload, dict):
        return ValidationResult(fields={"body": ["Expected a JSON object"]})
    try:
        return ValidationResult(value=model.model_validate(payload))
    except PydanticValidationError as e:
        return ValidationResult(fields=pydantic_errors_to_fields(e))


def percentages_sum_to_100(
    needs: Decimal,
    wants: Decimal,
    savings: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> bool:
    """True when the three shares add up to 100 within tolerance."""
    return abs((needs + wants + savings) - Decimal("100")) < tolerance


# =============================================================================
# INCOME
# =============================================================================

def validate_income_create(payload: Any) -> ValidationResult[IncomeCreate]:
    return _parse(IncomeCreate, payload)


def validate_income_update(payload: Any) -> ValidationResult[IncomeUpdate]:
    return _parse(IncomeUpdate, payload)


# =============================================================================
# EXPENSES
# =============================================================================

def validate_expense_create(payload: Any) -> ValidationResult[ExpenseCreate]:
    return _parse(ExpenseCreate, payload)


def validate_expense_update(payload: Any) -> ValidationResult[ExpenseUpdate]:
    """
    Shape check only. Whether the result is consistently recurring
    depends on the stored row and is checked by the expense flow.
    """
    return _parse(ExpenseUpdate, payload)


# =============================================================================
# BUDGET PLANS
# =============================================================================

def validate_budget_plan_create(
    payload: Any,
    settings: Optional[AppSettings] = None,
) -> ValidationResult[BudgetPlanCreate]:
    """Shape check plus the percentage sum rule."""
    result = _parse(BudgetPlanCreate, payload)
    if not result.is_valid:
        return result

    settings = settings or get_settings().app
    plan = result.value
    if not percentages_sum_to_100(
        plan.needs_percentage,
        plan.wants_percentage,
        plan.savings_percentage,
        settings.percentage_tolerance,
    ):
        return ValidationResult(fields={PERCENTAGE_SUM_FIELD: [PERCENTAGE_SUM_MESSAGE]})
    return result


def validate_budget_plan_update(payload: Any) -> ValidationResult[BudgetPlanUpdate]:
    """
    Shape check only. The sum rule needs the stored plan for any
    percentage not supplied, so the plan manager applies it.
    """
    return _parse(BudgetPlanUpdate, payload)


# =============================================================================
# ACCOUNTS
# =============================================================================

def validate_credentials(
    payload: Any,
    settings: Optional[AppSettings] = None,
) -> ValidationResult[Credentials]:
    result = _parse(Credentials, payload)
    if not result.is_valid:
        return result

    settings = settings or get_settings().app
    length = len(result.value.password)
    if length < settings.password_min_length:
        return ValidationResult(fields={
            "password": [f"Password must be at least {settings.password_min_length} characters"]
        })
    if length > settings.password_max_length:
        return ValidationResult(fields={
            "password": [f"Password must be at most {settings.password_max_length} characters"]
        })
    return result


def validate_email_update(payload: Any) -> ValidationResult[EmailUpdate]:
    return _parse(EmailUpdate, payload)


def validate_login(payload: Any) -> ValidationResult[Credentials]:
    """Shape check only. Wrong passwords of any length are just rejected."""
    return _parse(Credentials, payload)
