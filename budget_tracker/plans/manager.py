"""
Plan Activation Manager

Owns the two budget plan invariants:
1. needs + wants + savings == 100 (within the configured tolerance)
2. at most one active plan per user at every commit point

The percentage check runs before anything is written. Deactivating the
user's other plans and writing the newly active one always happen in
the same repository transaction; the manager never issues them as two
separate calls.

Deleting a plan never promotes another one. A user may legitimately
end up with no active plan, in which case the summary falls back to
the default split.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from budget_tracker.audit import AuditLogger
from budget_tracker.config import AppSettings, get_settings
from budget_tracker.errors import ConflictError, NotFoundError, ValidationError
from budget_tracker.models.budget import BudgetPlan, BudgetPlanUpdate
from budget_tracker.services.storage import BudgetPlanRepository, DuplicateError
from budget_tracker.validation import (
    PERCENTAGE_SUM_FIELD,
    PERCENTAGE_SUM_MESSAGE,
    percentages_sum_to_100,
)


PLAN_RESOURCE = "Budget plan"


class PlanActivationManager:
    """
    Create, update, activate and delete budget plans for one store.

    Every operation is scoped to the caller's user_id. A plan owned by
    someone else is reported as NotFoundError, the same as a missing one.
    """

    def __init__(
        self,
        repository: BudgetPlanRepository,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app

    @property
    def tolerance(self) -> Decimal:
        return self._settings.percentage_tolerance

    def _check_percentages(
        self,
        user_id: UUID,
        needs: Decimal,
        wants: Decimal,
        savings: Decimal,
        plan_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        if percentages_sum_to_100(needs, wants, savings, self.tolerance):
            return
        if self._audit_logger:
            self._audit_logger.log_plan_validation_failed(
                user_id=user_id,
                total=str(needs + wants + savings),
                plan_id=plan_id,
                correlation_id=correlation_id,
            )
        raise ValidationError(
            PERCENTAGE_SUM_MESSAGE,
            fields={PERCENTAGE_SUM_FIELD: [PERCENTAGE_SUM_MESSAGE]},
        )

    async def create_plan(
        self,
        user_id: UUID,
        needs: Decimal,
        wants: Decimal,
        savings: Decimal,
        active: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetPlan:
        """
        Create a plan.

        Raises:
            ValidationError: If the percentages don't sum to 100. Nothing is written.
            ConflictError: If a concurrent activation won the race.
        """
        self._check_percentages(user_id, needs, wants, savings, correlation_id=correlation_id)

        plan = BudgetPlan(
            user_id=user_id,
            needs_percentage=needs,
            wants_percentage=wants,
            savings_percentage=savings,
            active=active,
        )
        try:
            stored, deactivated = await self._repository.add_plan(plan)
        except DuplicateError as e:
            raise ConflictError("Another plan was activated at the same time, retry") from e

        if self._audit_logger:
            self._audit_logger.log_plan_created(
                plan_id=stored.id,
                user_id=user_id,
                split=(
                    str(stored.needs_percentage),
                    str(stored.wants_percentage),
                    str(stored.savings_percentage),
                ),
                active=stored.active,
                correlation_id=correlation_id,
            )
            if deactivated:
                self._audit_logger.log_plan_activated(
                    plan_id=stored.id,
                    user_id=user_id,
                    deactivated_count=deactivated,
                    correlation_id=correlation_id,
                )
        return stored

    async def update_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        changes: BudgetPlanUpdate,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetPlan:
        """
        Apply a partial update.

        Unsupplied fields keep their stored values. When any percentage
        is supplied, the effective triple must sum to 100.

        Raises:
            NotFoundError: If the plan doesn't exist or isn't the caller's
            ValidationError: If the effective percentages are invalid
            ConflictError: If a concurrent activation won the race
        """
        values = changes.model_dump(exclude_unset=True, exclude_none=True)

        def guard(merged: BudgetPlan) -> None:
            if changes.touches_percentages:
                self._check_percentages(
                    user_id,
                    merged.needs_percentage,
                    merged.wants_percentage,
                    merged.savings_percentage,
                    plan_id=plan_id,
                    correlation_id=correlation_id,
                )

        try:
            result = await self._repository.update_plan(plan_id, user_id, values, guard=guard)
        except DuplicateError as e:
            raise ConflictError("Another plan was activated at the same time, retry") from e
        if result is None:
            raise NotFoundError(PLAN_RESOURCE)

        plan, deactivated = result
        if self._audit_logger:
            if values.get("active") is True:
                self._audit_logger.log_plan_activated(
                    plan_id=plan.id,
                    user_id=user_id,
                    deactivated_count=deactivated,
                    correlation_id=correlation_id,
                )
            changed = sorted(name for name in values if not (name == "active" and values[name]))
            if changed:
                self._audit_logger.log_plan_updated(
                    plan_id=plan.id,
                    user_id=user_id,
                    changed_fields=changed,
                    correlation_id=correlation_id,
                )
        return plan

    async def activate_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetPlan:
        """Make a plan the active one. Activating the active plan is a no-op."""
        return await self.update_plan(
            plan_id,
            user_id,
            BudgetPlanUpdate(active=True),
            correlation_id=correlation_id,
        )

    async def delete_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a plan. No other plan is activated in its place."""
        deleted = await self._repository.delete_plan(plan_id, user_id)
        if deleted is None:
            raise NotFoundError(PLAN_RESOURCE)

        if self._audit_logger:
            self._audit_logger.log_plan_deleted(
                plan_id=plan_id,
                user_id=user_id,
                was_active=deleted.active,
                correlation_id=correlation_id,
            )

    async def get_plan(self, plan_id: UUID, user_id: UUID) -> BudgetPlan:
        plan = await self._repository.get_plan(plan_id, user_id)
        if plan is None:
            raise NotFoundError(PLAN_RESOURCE)
        return plan

    async def list_plans(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
    ) -> list[BudgetPlan]:
        return await self._repository.list_plans(user_id, active=active)

    async def get_active_plan(self, user_id: UUID) -> Optional[BudgetPlan]:
        return await self._repository.get_active_plan(user_id)
