"""
Core Data Models for Budget Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and API responses
4. Keep money exact (Decimal end to end)

DESIGN DECISION: Stored entities (Income, Expense, BudgetPlan, User) are
separate from the *Create / *Update input models. Inputs never carry ids,
owners or timestamps; those are assigned by the system.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PlainSerializer,
    ValidationInfo,
    field_validator,
    model_validator,
)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the store persists."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Shift an aware datetime to UTC and drop the offset. Naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# The store keeps naive UTC, so offsets are applied before anything is saved.
UtcDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]


TWO_PLACES = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half up. Only for presentation."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


# Decimals stay Decimal in Python; JSON clients get plain numbers.
Money = Annotated[
    Decimal,
    Field(max_digits=10, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]
Percentage = Annotated[
    Decimal,
    Field(ge=0, le=100, max_digits=5, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]
# Derived figures are never rounded internally, so no decimal_places bound.
Amount = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """Top-level expense classification."""
    NEEDS = "needs"
    WANTS = "wants"


class ExpenseSubcategory(str, Enum):
    """
    Finer-grained expense tag.

    Informational only: the summary never groups by subcategory.
    """
    FOOD = "food"
    TRANSPORTATION = "transportation"
    CLOTHES = "clothes"
    TOYS = "toys"
    GADGETS = "gadgets"
    TRAVEL = "travel"
    UTILITIES = "utilities"
    RENT = "rent"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"


class RecurringInterval(str, Enum):
    """How often a recurring expense repeats."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# USERS
# =============================================================================

class User(BaseModel):
    """
    An account holder.

    password_hash is opaque to everything except the auth provider
    and is never serialized into API responses (see UserPublic).
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    email: str
    password_hash: str = Field(..., repr=False)
    created_at: datetime = Field(default_factory=utcnow)

    def public(self) -> 'UserPublic':
        return UserPublic(id=self.id, email=self.email, created_at=self.created_at)


class UserPublic(BaseModel):
    """What clients are allowed to see about a user."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    created_at: Optional[datetime] = None


class Credentials(BaseModel):
    """Signup / login body. Passwords are taken verbatim."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email', mode='before')
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class EmailUpdate(BaseModel):
    """Body for changing the account email."""
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


# =============================================================================
# INCOME
# =============================================================================

class Income(BaseModel):
    """A stored income entry, owned by exactly one user."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str
    amount: Money
    source: str
    date_received: UtcDatetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class IncomeCreate(BaseModel):
    """Fields a caller supplies to record income."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., gt=0)
    source: str = Field(..., min_length=1, max_length=200)
    date_received: Optional[UtcDatetime] = None


class IncomeUpdate(BaseModel):
    """Partial income update. Unsupplied fields keep their values."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Money] = Field(default=None, gt=0)
    source: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date_received: Optional[UtcDatetime] = None


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(BaseModel):
    """
    A stored expense entry.

    recurring_interval and next_due_date are only meaningful while
    is_recurring is true; they are stored as null otherwise.
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    name: str
    amount: Money
    category: ExpenseCategory
    subcategory: ExpenseSubcategory
    is_recurring: bool = False
    recurring_interval: Optional[RecurringInterval] = None
    next_due_date: Optional[UtcDatetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ExpenseCreate(BaseModel):
    """Fields a caller supplies to record an expense."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., gt=0)
    category: ExpenseCategory
    subcategory: ExpenseSubcategory
    is_recurring: bool = False
    recurring_interval: Optional[RecurringInterval] = Field(default=None, validate_default=True)
    next_due_date: Optional[UtcDatetime] = None

    @field_validator('recurring_interval')
    @classmethod
    def require_interval_when_recurring(
        cls, v: Optional[RecurringInterval], info: ValidationInfo
    ) -> Optional[RecurringInterval]:
        if info.data.get('is_recurring') and v is None:
            raise ValueError("Recurring expenses need a recurring interval")
        return v

    @model_validator(mode='after')
    def clear_schedule_of_one_off(self) -> 'ExpenseCreate':
        """One-off expenses never keep an interval or due date."""
        if not self.is_recurring:
            self.recurring_interval = None
            self.next_due_date = None
        return self


class ExpenseUpdate(BaseModel):
    """
    Partial expense update.

    Recurring consistency depends on the stored row, so it is
    resolved by the expense flow rather than here.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Money] = Field(default=None, gt=0)
    category: Optional[ExpenseCategory] = None
    subcategory: Optional[ExpenseSubcategory] = None
    is_recurring: Optional[bool] = None
    recurring_interval: Optional[RecurringInterval] = None
    next_due_date: Optional[UtcDatetime] = None


# =============================================================================
# BUDGET PLANS
# =============================================================================

class BudgetPlan(BaseModel):
    """
    A needs/wants/savings allocation.

    Invariants (enforced by the plan manager, not this model):
    - the three percentages sum to 100 within the configured tolerance
    - at most one plan per user is active
    """
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    needs_percentage: Percentage
    wants_percentage: Percentage
    savings_percentage: Percentage
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BudgetPlanCreate(BaseModel):
    """Fields a caller supplies to create a plan. Plans start active."""
    model_config = ConfigDict(extra="ignore")

    needs_percentage: Percentage
    wants_percentage: Percentage
    savings_percentage: Percentage
    active: bool = True


class BudgetPlanUpdate(BaseModel):
    """Partial plan update."""
    model_config = ConfigDict(extra="ignore")

    needs_percentage: Optional[Percentage] = None
    wants_percentage: Optional[Percentage] = None
    savings_percentage: Optional[Percentage] = None
    active: Optional[bool] = None

    @property
    def touches_percentages(self) -> bool:
        return any(
            value is not None
            for value in (self.needs_percentage, self.wants_percentage, self.savings_percentage)
        )


# =============================================================================
# SUMMARY MODELS (derived, never persisted)
# =============================================================================

class BudgetSummary(BaseModel):
    """
    Budget vs actual for one user.

    All figures are exact Decimals. Remaining values may be negative
    (over budget); that is a display concern, not an error.
    """

    total_income: Amount
    total_expenses: Amount
    balance: Amount

    needs_percentage: Amount
    wants_percentage: Amount
    savings_percentage: Amount

    needs_budget: Amount
    wants_budget: Amount
    savings_budget: Amount

    needs_spent: Amount
    wants_spent: Amount

    needs_remaining: Amount
    wants_remaining: Amount

    plan_id: Optional[UUID] = Field(
        default=None,
        description="Active plan used, None when the default split applied"
    )

    @property
    def uses_default_split(self) -> bool:
        return self.plan_id is None

    def rounded(self) -> 'BudgetSummary':
        """Copy with every figure rounded to cents."""
        return self.model_copy(update={
            name: round_money(getattr(self, name))
            for name, field in type(self).model_fields.items()
            if field.annotation is Decimal
        })


class BudgetProgress(BaseModel):
    """One row of the dashboard's allocation breakdown."""

    name: str
    percentage: Amount
    budget: Amount
    spent: Amount
    remaining: Amount
    percent_used: int = Field(ge=0, le=100)
    over_budget: bool
