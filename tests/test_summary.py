"""
Tests for the budget summary calculator.

The calculator is pure, so these tests build plain models and never
touch storage.
"""

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from budget_tracker.models.budget import (
    BudgetPlan,
    Expense,
    ExpenseCategory,
    ExpenseSubcategory,
    Income,
)
from budget_tracker.summary import budget_progress, compute_summary, default_split


USER_ID = uuid4()


def income(amount: str) -> Income:
    return Income(user_id=USER_ID, name="Pay", amount=Decimal(amount), source="Job")


def expense(amount: str, category: ExpenseCategory) -> Expense:
    return Expense(
        user_id=USER_ID,
        name="Spend",
        amount=Decimal(amount),
        category=category,
        subcategory=ExpenseSubcategory.OTHER,
    )


def plan(needs: str, wants: str, savings: str) -> BudgetPlan:
    return BudgetPlan(
        user_id=USER_ID,
        needs_percentage=Decimal(needs),
        wants_percentage=Decimal(wants),
        savings_percentage=Decimal(savings),
    )


class TestComputeSummary:
    """Tests for compute_summary."""
    
    def test_active_plan_split(self):
        """Test the reference example with a 40/40/20 plan."""
        active = plan("40", "40", "20")
        summary = compute_summary(
            [income("100"), income("200")],
            [expense("50", ExpenseCategory.NEEDS), expense("30", ExpenseCategory.WANTS)],
            active,
        )
        assert summary.total_income == Decimal("300")
        assert summary.needs_budget == Decimal("120")
        assert summary.wants_budget == Decimal("120")
        assert summary.savings_budget == Decimal("60")
        assert summary.needs_spent == Decimal("50")
        assert summary.wants_spent == Decimal("30")
        assert summary.needs_remaining == Decimal("70")
        assert summary.wants_remaining == Decimal("90")
        assert summary.total_expenses == Decimal("80")
        assert summary.balance == Decimal("220")
        assert summary.plan_id == active.id
        assert summary.uses_default_split is False
    
    def test_default_split_without_plan(self):
        """Test the 50/30/20 fallback."""
        summary = compute_summary([income("1000")], [], None)
        assert summary.needs_budget == Decimal("500")
        assert summary.wants_budget == Decimal("300")
        assert summary.savings_budget == Decimal("200")
        assert summary.needs_percentage == Decimal("50")
        assert summary.plan_id is None
    
    def test_empty_inputs(self):
        """Test that no data yields zeros, not errors."""
        summary = compute_summary([], [], None)
        assert summary.total_income == Decimal("0")
        assert summary.needs_remaining == Decimal("0")
        assert summary.balance == Decimal("0")
    
    def test_over_budget_remaining_is_negative(self):
        """Test that overspending is reported, not rejected."""
        summary = compute_summary(
            [income("100")],
            [expense("80", ExpenseCategory.NEEDS)],
            plan("50", "30", "20"),
        )
        assert summary.needs_remaining == Decimal("-30")
        assert summary.balance == Decimal("20")
    
    def test_no_intermediate_rounding(self):
        """Test that budgets keep full precision until presentation."""
        summary = compute_summary(
            [income("100")],
            [],
            plan("33.33", "33.33", "33.34"),
        )
        assert summary.needs_budget == Decimal("33.33")
        assert summary.savings_budget == Decimal("33.34")
        assert (
            summary.needs_budget + summary.wants_budget + summary.savings_budget
            == summary.total_income
        )
    
    def test_odd_split_rounds_only_on_request(self):
        """Test that thirds of a cent survive until rounded()."""
        summary = compute_summary([income("0.10")], [], plan("33.33", "33.33", "33.34"))
        assert summary.needs_budget == Decimal("0.033330")
        assert summary.rounded().needs_budget == Decimal("0.03")
    
    def test_accepts_plain_records(self):
        """Test duck-typed inputs without pydantic models."""
        summary = compute_summary(
            [SimpleNamespace(amount=Decimal("200"))],
            [SimpleNamespace(amount=Decimal("20"), category=ExpenseCategory.WANTS)],
            SimpleNamespace(
                needs_percentage=Decimal("60"),
                wants_percentage=Decimal("20"),
                savings_percentage=Decimal("20"),
            ),
        )
        assert summary.wants_budget == Decimal("40")
        assert summary.wants_remaining == Decimal("20")
        assert summary.plan_id is None
    
    def test_custom_fallback(self):
        """Test overriding the default split."""
        summary = compute_summary(
            [income("100")],
            [],
            None,
            fallback=(Decimal("70"), Decimal("20"), Decimal("10")),
        )
        assert summary.needs_budget == Decimal("70")
    
    def test_default_split_from_settings(self, app_settings):
        """Test reading the fallback split from settings."""
        assert default_split(app_settings) == (Decimal("50"), Decimal("30"), Decimal("20"))
        assert default_split() == (Decimal("50"), Decimal("30"), Decimal("20"))


class TestBudgetProgress:
    """Tests for the per-category dashboard rows."""
    
    def test_rows_and_usage(self):
        """Test budget, spend and percent used per category."""
        summary = compute_summary(
            [income("1000")],
            [expense("250", ExpenseCategory.NEEDS), expense("400", ExpenseCategory.WANTS)],
            None,
        )
        rows = {row.name: row for row in budget_progress(summary)}
        
        assert set(rows) == {"needs", "wants", "savings"}
        assert rows["needs"].percent_used == 50
        assert rows["needs"].over_budget is False
        assert rows["wants"].percent_used == 100
        assert rows["wants"].over_budget is True
        assert rows["wants"].remaining == Decimal("-100")
        assert rows["savings"].spent == Decimal("0")
        assert rows["savings"].remaining == Decimal("200")
    
    def test_zero_budget_shows_zero_usage(self):
        """Test that a zero budget never divides by zero."""
        summary = compute_summary([], [expense("10", ExpenseCategory.NEEDS)], None)
        needs = budget_progress(summary)[0]
        assert needs.percent_used == 0
        assert needs.over_budget is True
