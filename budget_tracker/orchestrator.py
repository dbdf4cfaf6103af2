"""
Main Orchestrator for Budget Tracker

This module ties together all the components and defines the
caller-scoped flows for:
1. Accounts (signup → login → token → current user → email change / delete)
2. Income and expense entries (validate → scope to owner → store)
3. Budget plans (validate → Plan Activation Manager)
4. Summary (fetch owner's data → pure calculator)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every operation is scoped to the caller's user_id
- Input is validated before anything touches storage
- Storage exceptions are translated into the error taxonomy here
- Every change is audited

Nothing in this module knows about HTTP.
"""

from typing import Any, NamedTuple, Optional
from uuid import UUID

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.config import AppSettings, get_settings
from budget_tracker.errors import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from budget_tracker.models.audit import AuditEventType
from budget_tracker.models.budget import (
    BudgetPlan,
    BudgetProgress,
    BudgetSummary,
    Expense,
    ExpenseCategory,
    Income,
    User,
)
from budget_tracker.plans import PlanActivationManager
from budget_tracker.services.auth import AuthProvider, CurrentUser, InvalidTokenError
from budget_tracker.services.storage import (
    BudgetPlanRepository,
    DuplicateError,
    ExpenseRepository,
    IncomeRepository,
    SqlStore,
    UserRepository,
)
from budget_tracker.summary import budget_progress, compute_summary, default_split
from budget_tracker.validation import (
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


INCOME_RESOURCE = "Income"
EXPENSE_RESOURCE = "Expense"

# Expense columns that may legitimately be cleared to null
NULLABLE_EXPENSE_FIELDS = {"recurring_interval", "next_due_date"}


def _require_interval_when_recurring(expense: Expense) -> None:
    """Runs against the merged row inside the store's transaction."""
    if expense.is_recurring and expense.recurring_interval is None:
        raise ValidationError(fields={
            "recurring_interval": ["Recurring expenses need a recurring interval"]
        })


def ensure_own_listing(
    caller_id: UUID,
    requested_user_id: Optional[str],
    resource: str,
    audit_logger: Optional[AuditLogger] = None,
) -> None:
    """
    Reject list calls that name another user.

    The legacy list endpoints accept a user_id filter. It may only
    ever name the caller; anything else fails before storage is read.
    """
    if requested_user_id is None or requested_user_id == "":
        return
    if requested_user_id.strip().lower() == str(caller_id):
        return

    if audit_logger:
        audit_logger.log_access_denied(
            user_id=caller_id,
            resource=resource,
            requested_user_id=_as_uuid(requested_user_id),
        )
    raise UnauthorizedError(f"You can only access your own {resource}")


def _as_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except ValueError:
        return None


class AccountFlow:
    """
    Orchestrates signup, login and account management.

    Passwords and tokens never leave the auth provider in any form
    other than an opaque hash or a signed token string.
    """

    def __init__(
        self,
        users: UserRepository,
        auth: Optional[AuthProvider] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._users = users
        self._auth = auth or AuthProvider()
        self._audit_logger = audit_logger

    async def signup(
        self,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Register a new account.

        Returns:
            (user, token)

        Raises:
            ValidationError: Bad email or password length
            ConflictError: Email already registered
        """
        correlation_id = correlation_id or create_correlation_id()
        credentials = validate_credentials(payload).unwrap()

        if await self._users.get_user_by_email(credentials.email):
            raise ConflictError("Email already registered")

        user = User(
            email=credentials.email,
            password_hash=self._auth.hash_password(credentials.password),
        )
        try:
            user = await self._users.add_user(user)
        except DuplicateError as e:
            raise ConflictError("Email already registered") from e

        if self._audit_logger:
            self._audit_logger.log_user_signed_up(user.id, user.email, correlation_id)

        return user, self._auth.issue_token(user.id, user.email)

    async def login(
        self,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Exchange credentials for a token.

        Unknown email and wrong password fail the same way.
        """
        correlation_id = correlation_id or create_correlation_id()
        credentials = validate_login(payload).unwrap()

        user = await self._users.get_user_by_email(credentials.email)
        if user is None or not self._auth.verify_password(credentials.password, user.password_hash):
            if self._audit_logger:
                self._audit_logger.log_login_failed(credentials.email, correlation_id)
            raise UnauthorizedError("Invalid email or password")

        if self._audit_logger:
            self._audit_logger.log_user_logged_in(user.id, correlation_id)

        return user, self._auth.issue_token(user.id, user.email)

    async def resolve_token(self, token: Optional[str]) -> CurrentUser:
        """
        Turn a bearer token into a verified caller identity.

        The account must still exist; tokens of deleted users are
        rejected.
        """
        try:
            payload = self._auth.verify_token(token or "")
        except InvalidTokenError as e:
            raise UnauthorizedError(str(e)) from e

        user = await self._users.get_user_by_id(payload.user_id)
        if user is None:
            raise UnauthorizedError("Account no longer exists")
        return CurrentUser(id=user.id, email=user.email)

    async def get_user(self, user_id: UUID) -> User:
        user = await self._users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def update_email(
        self,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> User:
        correlation_id = correlation_id or create_correlation_id()
        update = validate_email_update(payload).unwrap()

        try:
            user = await self._users.update_user_email(user_id, update.email)
        except DuplicateError as e:
            raise ConflictError("Email already registered") from e
        if user is None:
            raise NotFoundError("User")

        if self._audit_logger:
            self._audit_logger.log_user_email_changed(user_id, correlation_id)
        return user

    async def delete_user(
        self,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete the account and everything it owns."""
        correlation_id = correlation_id or create_correlation_id()
        if not await self._users.delete_user(user_id):
            raise NotFoundError("User")

        if self._audit_logger:
            self._audit_logger.log_user_deleted(user_id, correlation_id)


class IncomeFlow:
    """Caller-scoped income operations."""

    def __init__(
        self,
        repository: IncomeRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    def _audit(
        self,
        event_type: AuditEventType,
        income: Income,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            self._audit_logger.log_entry_changed(
                event_type=event_type,
                entity_type="income",
                entity_id=income.id,
                user_id=income.user_id,
                amount=str(income.amount),
                correlation_id=correlation_id,
            )

    async def list_income(
        self,
        user_id: UUID,
        requested_user_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Income]:
        ensure_own_listing(user_id, requested_user_id, "income", self._audit_logger)
        return await self._repository.list_income(user_id, limit=limit, offset=offset)

    async def get_income(self, income_id: UUID, user_id: UUID) -> Income:
        income = await self._repository.get_income(income_id, user_id)
        if income is None:
            raise NotFoundError(INCOME_RESOURCE)
        return income

    async def create_income(
        self,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Income:
        correlation_id = correlation_id or create_correlation_id()
        data = validate_income_create(payload).unwrap()

        income = Income(user_id=user_id, **data.model_dump(exclude_none=True))
        income = await self._repository.add_income(income)
        self._audit(AuditEventType.INCOME_CREATED, income, correlation_id)
        return income

    async def update_income(
        self,
        income_id: UUID,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Income:
        correlation_id = correlation_id or create_correlation_id()
        changes = validate_income_update(payload).unwrap()

        income = await self._repository.update_income(
            income_id,
            user_id,
            changes.model_dump(exclude_unset=True, exclude_none=True),
        )
        if income is None:
            raise NotFoundError(INCOME_RESOURCE)
        self._audit(AuditEventType.INCOME_UPDATED, income, correlation_id)
        return income

    async def delete_income(
        self,
        income_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        if not await self._repository.delete_income(income_id, user_id):
            raise NotFoundError(INCOME_RESOURCE)

        if self._audit_logger:
            self._audit_logger.log_entry_changed(
                event_type=AuditEventType.INCOME_DELETED,
                entity_type="income",
                entity_id=income_id,
                user_id=user_id,
                correlation_id=correlation_id,
            )


class ExpenseFlow:
    """
    Caller-scoped expense operations.

    Recurring schedule fields are cleared whenever the effective
    is_recurring is false, regardless of what the caller sent.
    """

    def __init__(
        self,
        repository: ExpenseRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._audit_logger = audit_logger

    def _audit(
        self,
        event_type: AuditEventType,
        expense: Expense,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            self._audit_logger.log_entry_changed(
                event_type=event_type,
                entity_type="expense",
                entity_id=expense.id,
                user_id=expense.user_id,
                amount=str(expense.amount),
                correlation_id=correlation_id,
            )

    async def list_expenses(
        self,
        user_id: UUID,
        category: Optional[ExpenseCategory] = None,
        requested_user_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        ensure_own_listing(user_id, requested_user_id, "expenses", self._audit_logger)
        return await self._repository.list_expenses(
            user_id, category=category, limit=limit, offset=offset
        )

    async def get_expense(self, expense_id: UUID, user_id: UUID) -> Expense:
        expense = await self._repository.get_expense(expense_id, user_id)
        if expense is None:
            raise NotFoundError(EXPENSE_RESOURCE)
        return expense

    async def create_expense(
        self,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        correlation_id = correlation_id or create_correlation_id()
        data = validate_expense_create(payload).unwrap()

        values = data.model_dump()
        if not values["is_recurring"]:
            values["recurring_interval"] = None
            values["next_due_date"] = None

        expense = await self._repository.add_expense(Expense(user_id=user_id, **values))
        self._audit(AuditEventType.EXPENSE_CREATED, expense, correlation_id)
        return expense

    async def update_expense(
        self,
        expense_id: UUID,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Apply a partial update.

        Raises:
            NotFoundError: Expense missing or not the caller's
            ValidationError: The result would be recurring with no interval
        """
        correlation_id = correlation_id or create_correlation_id()
        changes = validate_expense_update(payload).unwrap()

        values = {
            field: value
            for field, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_EXPENSE_FIELDS
        }

        expense = await self._repository.update_expense(
            expense_id, user_id, values, guard=_require_interval_when_recurring
        )
        if expense is None:
            raise NotFoundError(EXPENSE_RESOURCE)
        self._audit(AuditEventType.EXPENSE_UPDATED, expense, correlation_id)
        return expense

    async def delete_expense(
        self,
        expense_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        if not await self._repository.delete_expense(expense_id, user_id):
            raise NotFoundError(EXPENSE_RESOURCE)

        if self._audit_logger:
            self._audit_logger.log_entry_changed(
                event_type=AuditEventType.EXPENSE_DELETED,
                entity_type="expense",
                entity_id=expense_id,
                user_id=user_id,
                correlation_id=correlation_id,
            )


class PlanFlow:
    """
    Caller-scoped budget plan operations.

    Payload validation happens here; the invariants live in the
    PlanActivationManager.
    """

    def __init__(
        self,
        manager: PlanActivationManager,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._manager = manager
        self._audit_logger = audit_logger

    @property
    def manager(self) -> PlanActivationManager:
        return self._manager

    async def list_plans(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
        requested_user_id: Optional[str] = None,
    ) -> list[BudgetPlan]:
        ensure_own_listing(user_id, requested_user_id, "budget plans", self._audit_logger)
        return await self._manager.list_plans(user_id, active=active)

    async def get_plan(self, plan_id: UUID, user_id: UUID) -> BudgetPlan:
        return await self._manager.get_plan(plan_id, user_id)

    async def create_plan(
        self,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetPlan:
        correlation_id = correlation_id or create_correlation_id()
        data = validate_budget_plan_create(payload).unwrap()
        return await self._manager.create_plan(
            user_id,
            data.needs_percentage,
            data.wants_percentage,
            data.savings_percentage,
            active=data.active,
            correlation_id=correlation_id,
        )

    async def update_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetPlan:
        changes = validate_budget_plan_update(payload).unwrap()
        return await self._manager.update_plan(
            plan_id, user_id, changes, correlation_id=correlation_id
        )

    async def activate_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetPlan:
        return await self._manager.activate_plan(plan_id, user_id, correlation_id=correlation_id)

    async def delete_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._manager.delete_plan(plan_id, user_id, correlation_id=correlation_id)


class SummaryFlow:
    """
    Gathers one user's entries and active plan, then runs the
    pure calculator over them. Users without an active plan get
    the configured default split.
    """

    def __init__(
        self,
        income: IncomeRepository,
        expenses: ExpenseRepository,
        plans: BudgetPlanRepository,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._income = income
        self._expenses = expenses
        self._plans = plans
        self._audit_logger = audit_logger
        self._fallback = default_split(settings or get_settings().app)

    async def get_summary(
        self,
        user_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[BudgetSummary, list[BudgetProgress]]:
        correlation_id = correlation_id or create_correlation_id()

        incomes = await self._income.list_income(user_id)
        expenses = await self._expenses.list_expenses(user_id)
        active_plan = await self._plans.get_active_plan(user_id)

        summary = compute_summary(incomes, expenses, active_plan, fallback=self._fallback)

        if self._audit_logger:
            self._audit_logger.log_summary_computed(
                user_id=user_id,
                plan_id=summary.plan_id,
                income_count=len(incomes),
                expense_count=len(expenses),
                correlation_id=correlation_id,
            )
        return summary, budget_progress(summary)


class AppComponents(NamedTuple):
    store: SqlStore
    audit_logger: AuditLogger
    accounts: AccountFlow
    income: IncomeFlow
    expenses: ExpenseFlow
    plans: PlanFlow
    summary: SummaryFlow


def create_app_components(
    store: Optional[SqlStore] = None,
    auth: Optional[AuthProvider] = None,
    audit_logger: Optional[AuditLogger] = None,
    settings: Optional[AppSettings] = None,
    create_schema: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Storage to use. Defaults to a SqlStore on DATABASE_URL.
        auth: Auth provider. Defaults to one built from JWT_* settings.
        audit_logger: Defaults to a structlog-backed AuditLogger.
        settings: App settings for plan rules and the default split.
            Defaults to the environment.
        create_schema: Create missing tables on the store.

    Returns:
        AppComponents holding the store, the audit logger and every flow
    """
    store = store or SqlStore()
    if create_schema:
        store.create_schema()
    audit_logger = audit_logger or AuditLogger()
    settings = settings or get_settings().app

    manager = PlanActivationManager(store, audit_logger=audit_logger, settings=settings)

    return AppComponents(
        store=store,
        audit_logger=audit_logger,
        accounts=AccountFlow(store, auth=auth, audit_logger=audit_logger),
        income=IncomeFlow(store, audit_logger=audit_logger),
        expenses=ExpenseFlow(store, audit_logger=audit_logger),
        plans=PlanFlow(manager, audit_logger=audit_logger),
        summary=SummaryFlow(store, store, store, audit_logger=audit_logger, settings=settings),
    )
