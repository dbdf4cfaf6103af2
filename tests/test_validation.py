"""Tests for the typed input validators."""

import pytest
from decimal import Decimal

from budget_tracker.errors import ValidationError
from budget_tracker.models.budget import IncomeCreate, RecurringInterval
from budget_tracker.validation import (
    ValidationResult,
    percentages_sum_to_100,
    validate_budget_plan_create,
    validate_budget_plan_update,
    validate_credentials,
    validate_expense_create,
    validate_expense_update,
    validate_income_create,
    validate_income_update,
    validate_login,
)


class TestValidationResult:
    """Tests for the ValidationResult container."""
    
    def test_value_result(self):
        """Test a successful result unwraps to its value."""
        value = IncomeCreate(name="Pay", amount=Decimal("1"), source="Job")
        result = ValidationResult(value=value)
        assert result.is_valid is True
        assert result.unwrap() is value
    
    def test_error_result_raises_on_unwrap(self):
        """Test that unwrapping a failed result raises with the field map."""
        result = ValidationResult(fields={"amount": ["required"]})
        assert result.is_valid is False
        with pytest.raises(ValidationError) as exc_info:
            result.unwrap()
        assert exc_info.value.fields == {"amount": ["required"]}
        assert exc_info.value.status_code == 400
    
    def test_needs_exactly_one_side(self):
        """Test that a result can't be both or neither."""
        with pytest.raises(ValueError):
            ValidationResult()


class TestPercentageSum:
    """Tests for the percentage sum rule."""
    
    def test_exact_sum(self):
        assert percentages_sum_to_100(Decimal("50"), Decimal("30"), Decimal("20"))
    
    def test_within_tolerance(self):
        """Test that a drift under one cent is accepted."""
        assert percentages_sum_to_100(Decimal("50.005"), Decimal("30"), Decimal("20"))
        assert percentages_sum_to_100(Decimal("49.991"), Decimal("30"), Decimal("20"))
    
    def test_tolerance_is_exclusive(self):
        """Test that a drift of exactly one cent is rejected."""
        assert not percentages_sum_to_100(Decimal("33.33"), Decimal("33.33"), Decimal("33.33"))
        assert not percentages_sum_to_100(Decimal("50.01"), Decimal("30"), Decimal("20"))
    
    def test_outside_tolerance(self):
        assert not percentages_sum_to_100(Decimal("33.33"), Decimal("33.33"), Decimal("33.32"))
        assert not percentages_sum_to_100(Decimal("50"), Decimal("30"), Decimal("30"))


class TestEntryValidators:
    """Tests for income and expense validators."""
    
    def test_income_create_valid(self):
        result = validate_income_create({"name": "Pay", "amount": "1500.50", "source": "Job"})
        assert result.is_valid
        assert result.value.amount == Decimal("1500.50")
    
    def test_income_create_missing_fields(self):
        """Test that every missing field is reported."""
        result = validate_income_create({"name": "Pay"})
        assert not result.is_valid
        assert set(result.fields) == {"amount", "source"}
    
    def test_income_create_rejects_non_object(self):
        """Test that lists and None are rejected as a whole."""
        assert validate_income_create([1, 2]).fields == {"body": ["Expected a JSON object"]}
        assert validate_income_create(None).fields == {"body": ["Expected a JSON object"]}
    
    def test_income_update_partial(self):
        """Test that updates accept a subset of fields."""
        result = validate_income_update({"amount": 10})
        assert result.is_valid
        assert result.value.model_dump(exclude_unset=True) == {"amount": Decimal("10")}
    
    def test_income_update_rejects_negative(self):
        result = validate_income_update({"amount": -1})
        assert "amount" in result.fields
    
    def test_expense_create_recurring_message(self):
        """Test that the recurring rule reports a readable message."""
        result = validate_expense_create({
            "name": "Rent",
            "amount": 900,
            "category": "needs",
            "subcategory": "rent",
            "is_recurring": True,
        })
        assert result.fields == {
            "recurring_interval": ["Recurring expenses need a recurring interval"]
        }
    
    def test_expense_create_bad_category(self):
        result = validate_expense_create({
            "name": "Boat",
            "amount": 900,
            "category": "luxury",
            "subcategory": "other",
        })
        assert "category" in result.fields
    
    def test_expense_update_shape_only(self):
        """Test that recurring consistency is left to the flow."""
        result = validate_expense_update({"is_recurring": True})
        assert result.is_valid
        result = validate_expense_update({"recurring_interval": "yearly"})
        assert result.value.recurring_interval == RecurringInterval.YEARLY


class TestPlanValidators:
    """Tests for budget plan validators."""
    
    def test_plan_create_valid(self, app_settings):
        result = validate_budget_plan_create(
            {"needs_percentage": 40, "wants_percentage": 40, "savings_percentage": 20},
            app_settings,
        )
        assert result.is_valid
        assert result.value.active is True
    
    def test_plan_create_bad_sum(self, app_settings):
        result = validate_budget_plan_create(
            {"needs_percentage": 40, "wants_percentage": 40, "savings_percentage": 40},
            app_settings,
        )
        assert result.fields == {"percentages": ["Percentages must sum to 100"]}
    
    def test_plan_create_out_of_range(self, app_settings):
        """Test that range errors are reported per field before the sum."""
        result = validate_budget_plan_create(
            {"needs_percentage": 120, "wants_percentage": -10, "savings_percentage": -10},
            app_settings,
        )
        assert set(result.fields) == {"needs_percentage", "wants_percentage", "savings_percentage"}
    
    def test_plan_update_leaves_sum_to_manager(self):
        result = validate_budget_plan_update({"needs_percentage": 90})
        assert result.is_valid


class TestCredentialValidators:
    """Tests for signup and login validation."""
    
    def test_password_too_short(self, app_settings):
        result = validate_credentials({"email": "a@example.com", "password": "12345"}, app_settings)
        assert result.fields == {"password": ["Password must be at least 6 characters"]}
    
    def test_password_too_long(self, app_settings):
        result = validate_credentials({"email": "a@example.com", "password": "x" * 101}, app_settings)
        assert "password" in result.fields
    
    def test_bad_email(self, app_settings):
        result = validate_credentials({"email": "nope", "password": "123456"}, app_settings)
        assert "email" in result.fields
    
    def test_login_skips_length_rules(self):
        """Test that login only checks shape."""
        assert validate_login({"email": "a@example.com", "password": "1"}).is_valid
