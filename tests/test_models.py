"""
Tests for Budget Tracker

Test strategy:
1. Unit tests for individual components (models, validators, calculator)
2. Integration tests for flows and storage (SQLite in memory)
3. API tests through FastAPI's TestClient
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from budget_tracker.models.budget import (
    BudgetPlan,
    BudgetPlanUpdate,
    BudgetSummary,
    Credentials,
    Expense,
    ExpenseCategory,
    ExpenseCreate,
    ExpenseSubcategory,
    IncomeCreate,
    RecurringInterval,
    User,
    round_money,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestEntryModels:
    """Tests for income and expense models."""
    
    def test_income_create_strips_whitespace(self):
        """Test that names and sources are stripped."""
        income = IncomeCreate(name="  Salary  ", amount=Decimal("2500.00"), source=" ACME ")
        assert income.name == "Salary"
        assert income.source == "ACME"
    
    def test_income_create_normalizes_offsets(self):
        """Test that aware timestamps become naive UTC and naive ones are kept."""
        plus_five = timezone(timedelta(hours=5))
        income = IncomeCreate(
            name="Salary", amount=Decimal("10"), source="ACME",
            date_received=datetime(2024, 1, 1, 10, 0, tzinfo=plus_five),
        )
        assert income.date_received == datetime(2024, 1, 1, 5, 0)
        assert income.date_received.tzinfo is None
        
        naive = IncomeCreate(
            name="Salary", amount=Decimal("10"), source="ACME",
            date_received=datetime(2024, 1, 1, 10, 0),
        )
        assert naive.date_received == datetime(2024, 1, 1, 10, 0)
    
    def test_income_create_rejects_non_positive_amount(self):
        """Test that zero and negative amounts are rejected."""
        with pytest.raises(PydanticValidationError):
            IncomeCreate(name="Salary", amount=Decimal("0"), source="ACME")
        with pytest.raises(PydanticValidationError):
            IncomeCreate(name="Salary", amount=Decimal("-10"), source="ACME")
    
    def test_income_create_rejects_sub_cent_amount(self):
        """Test that amounts carry at most two decimal places."""
        with pytest.raises(PydanticValidationError):
            IncomeCreate(name="Salary", amount=Decimal("10.555"), source="ACME")
    
    def test_income_create_rejects_empty_source(self):
        """Test that source is required and non-empty."""
        with pytest.raises(PydanticValidationError):
            IncomeCreate(name="Salary", amount=Decimal("10"), source="   ")
    
    def test_expense_create_recurring_requires_interval(self):
        """Test that a recurring expense without an interval fails on that field."""
        with pytest.raises(PydanticValidationError) as exc_info:
            ExpenseCreate(
                name="Rent",
                amount=Decimal("900"),
                category=ExpenseCategory.NEEDS,
                subcategory=ExpenseSubcategory.RENT,
                is_recurring=True,
            )
        assert exc_info.value.errors()[0]["loc"] == ("recurring_interval",)
    
    def test_expense_create_clears_schedule_when_one_off(self):
        """Test that interval and due date are dropped for one-off expenses."""
        expense = ExpenseCreate(
            name="Concert",
            amount=Decimal("80"),
            category="wants",
            subcategory="entertainment",
            is_recurring=False,
            recurring_interval="monthly",
            next_due_date=datetime(2025, 1, 1),
        )
        assert expense.recurring_interval is None
        assert expense.next_due_date is None
    
    def test_expense_create_keeps_schedule_when_recurring(self):
        """Test that recurring expenses keep their schedule."""
        due = datetime(2025, 2, 1)
        expense = ExpenseCreate(
            name="Gym",
            amount=Decimal("40"),
            category="wants",
            subcategory="other",
            is_recurring=True,
            recurring_interval="monthly",
            next_due_date=due,
        )
        assert expense.recurring_interval == RecurringInterval.MONTHLY
        assert expense.next_due_date == due
    
    def test_expense_rejects_unknown_subcategory(self):
        """Test that subcategory must be one of the ten values."""
        with pytest.raises(PydanticValidationError):
            ExpenseCreate(name="X", amount=Decimal("1"), category="needs", subcategory="pets")
    
    def test_expense_amount_serializes_as_number(self):
        """Test that JSON output carries plain numbers, not strings."""
        expense = Expense(
            user_id=uuid4(),
            name="Groceries",
            amount=Decimal("42.50"),
            category=ExpenseCategory.NEEDS,
            subcategory=ExpenseSubcategory.FOOD,
        )
        assert expense.model_dump(mode="json")["amount"] == 42.5
        assert expense.model_dump()["amount"] == Decimal("42.50")


class TestPlanModels:
    """Tests for budget plan models."""
    
    def test_plan_defaults_to_active(self):
        """Test that plans start active."""
        plan = BudgetPlan(
            user_id=uuid4(),
            needs_percentage=Decimal("50"),
            wants_percentage=Decimal("30"),
            savings_percentage=Decimal("20"),
        )
        assert plan.active is True
    
    def test_percentage_bounds(self):
        """Test percentages must be within 0 and 100."""
        with pytest.raises(PydanticValidationError):
            BudgetPlan(
                user_id=uuid4(),
                needs_percentage=Decimal("101"),
                wants_percentage=Decimal("0"),
                savings_percentage=Decimal("0"),
            )
    
    def test_update_touches_percentages(self):
        """Test detection of percentage changes in a partial update."""
        assert BudgetPlanUpdate(active=True).touches_percentages is False
        assert BudgetPlanUpdate(wants_percentage=Decimal("25")).touches_percentages is True


class TestAccountModels:
    """Tests for user and credential models."""
    
    def test_credentials_lowercase_email(self):
        """Test that emails are normalized."""
        creds = Credentials(email="  Alice@Example.COM ", password="secret1")
        assert creds.email == "alice@example.com"
    
    def test_credentials_keep_password_verbatim(self):
        """Test that passwords are not stripped."""
        creds = Credentials(email="a@example.com", password=" secret ")
        assert creds.password == " secret "
    
    def test_credentials_reject_bad_email(self):
        """Test email format validation."""
        with pytest.raises(PydanticValidationError):
            Credentials(email="not-an-email", password="secret1")
    
    def test_public_user_hides_hash(self):
        """Test that the public view carries no password hash."""
        user = User(email="a@example.com", password_hash="$2b$hash")
        public = user.public().model_dump()
        assert "password_hash" not in public
        assert public["email"] == "a@example.com"


class TestSummaryModel:
    """Tests for the BudgetSummary model."""
    
    def test_rounded_rounds_every_figure(self):
        """Test presentation rounding."""
        third = Decimal("100") / Decimal("3")
        summary = BudgetSummary(
            total_income=third,
            total_expenses=Decimal("0"),
            balance=third,
            needs_percentage=Decimal("50"),
            wants_percentage=Decimal("30"),
            savings_percentage=Decimal("20"),
            needs_budget=third,
            wants_budget=third,
            savings_budget=third,
            needs_spent=Decimal("0"),
            wants_spent=Decimal("0"),
            needs_remaining=third,
            wants_remaining=third,
        )
        rounded = summary.rounded()
        assert rounded.total_income == Decimal("33.33")
        assert rounded.needs_remaining == Decimal("33.33")
        assert summary.total_income == third
        assert rounded.uses_default_split is True
    
    def test_round_money_half_up(self):
        """Test that halves round away from zero."""
        assert round_money(Decimal("0.125")) == Decimal("0.13")
        assert round_money(Decimal("-0.125")) == Decimal("-0.13")


class TestAuditModels:
    """Tests for audit-related models."""
    
    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.INCOME_CREATED,
            description="Income recorded",
        )
        assert event.event_type == AuditEventType.INCOME_CREATED
        assert event.severity == AuditSeverity.INFO
    
    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        user_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            user_id=user_id,
            description="Expense deleted",
            details={"amount": "12.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_deleted"
        assert log_dict["user_id"] == str(user_id)
        assert log_dict["details"]["amount"] == "12.00"
    
    def test_audit_event_builder_plan_activated(self):
        """Test AuditEventBuilder.plan_activated."""
        plan_id = uuid4()
        user_id = uuid4()
        correlation_id = uuid4()
        
        event = AuditEventBuilder.plan_activated(
            plan_id=plan_id,
            user_id=user_id,
            deactivated_count=2,
            correlation_id=correlation_id,
        )
        
        assert event.event_type == AuditEventType.PLAN_ACTIVATED
        assert event.entity_id == plan_id
        assert event.correlation_id == correlation_id
        assert event.details["deactivated_count"] == 2
    
    def test_audit_event_builder_access_denied(self):
        """Test that refused cross-user listings are warnings."""
        event = AuditEventBuilder.access_denied(
            user_id=uuid4(),
            resource="income",
            requested_user_id=uuid4(),
        )
        assert event.event_type == AuditEventType.ACCESS_DENIED
        assert event.severity == AuditSeverity.WARNING


class TestExpenseCategories:
    """Tests for expense enums."""
    
    def test_all_subcategories_exist(self):
        """Test that expected subcategories exist."""
        expected = [
            "food", "transportation", "clothes", "toys", "gadgets",
            "travel", "utilities", "rent", "entertainment", "other",
        ]
        for sub in expected:
            assert ExpenseSubcategory(sub) is not None
        assert len(ExpenseSubcategory) == len(expected)
    
    def test_category_values(self):
        """Test that only needs and wants exist."""
        assert {c.value for c in ExpenseCategory} == {"needs", "wants"}
