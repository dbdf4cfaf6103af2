"""
SQLAlchemy Storage Implementation

DESIGN DECISION: A relational database is the only authoritative store.
SQLite is the zero-setup default; PostgreSQL is used in production by
pointing DATABASE_URL at it. The same code serves both.

TRANSACTIONS:
- Every repository call is one unit of work: one Session, one transaction,
  committed on success and rolled back on any exception.
- Plan writes first lock the owning users row (SELECT ... FOR UPDATE), so
  concurrent plan writes for one user are serialized on PostgreSQL. SQLite
  gets the same effect from BEGIN IMMEDIATE.
- A partial unique index allows at most one active plan per user, so even
  a buggy caller cannot commit two.

The repository interface is async. SQLAlchemy's sync Session runs in a
worker thread per call so the event loop is never blocked.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
    create_engine,
    delete,
    event,
    func,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from budget_tracker.config import get_settings
from budget_tracker.models.budget import (
    BudgetPlan,
    Expense,
    ExpenseCategory,
    ExpenseSubcategory,
    Income,
    RecurringInterval,
    User,
    utcnow,
)
from budget_tracker.services.storage.interface import (
    BudgetPlanRepository,
    DuplicateError,
    ExpenseGuard,
    ExpenseRepository,
    IncomeRepository,
    PlanGuard,
    StorageConnectionError,
    StorageError,
    UserRepository,
)


T = TypeVar("T")

INCOME_MUTABLE_FIELDS = {"name", "amount", "source", "date_received"}
EXPENSE_MUTABLE_FIELDS = {
    "name",
    "amount",
    "category",
    "subcategory",
    "is_recurring",
    "recurring_interval",
    "next_due_date",
}
PLAN_MUTABLE_FIELDS = {
    "needs_percentage",
    "wants_percentage",
    "savings_percentage",
    "active",
}


# =============================================================================
# TABLES
# =============================================================================

class Base(DeclarativeBase):
    pass


def _enum_column(enum_cls: type) -> SAEnum:
    """Store enum values as plain strings, portable across backends."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class IncomeRow(Base):
    __tablename__ = "income"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(200))
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    source: Mapped[str] = mapped_column(String(200))
    date_received: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ExpenseRow(Base):
    __tablename__ = "expenses"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(200))
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    category: Mapped[ExpenseCategory] = mapped_column(_enum_column(ExpenseCategory))
    subcategory: Mapped[ExpenseSubcategory] = mapped_column(_enum_column(ExpenseSubcategory))
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    recurring_interval: Mapped[Optional[RecurringInterval]] = mapped_column(
        _enum_column(RecurringInterval), nullable=True
    )
    next_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class BudgetPlanRow(Base):
    __tablename__ = "budget_plans"
    __table_args__ = (
        # At most one active plan per user, checked by the database itself.
        Index(
            "uq_budget_plans_one_active_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("active = 1"),
            postgresql_where=text("active"),
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    needs_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    wants_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    savings_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2))
    active: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# =============================================================================
# ENGINE
# =============================================================================

def create_store_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the given URL.

    In-memory SQLite shares one connection (StaticPool) so every
    session sees the same database.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo, pool_pre_ping=True)

    options: dict[str, Any] = {}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 15},
        **options,
    )
    _configure_sqlite(engine)
    return engine


def _configure_sqlite(engine: Engine) -> None:
    """Enforce foreign keys and take the write lock at BEGIN."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself instead of pysqlite.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _apply_changes(row: Base, changes: dict[str, Any], allowed: set[str]) -> list[str]:
    """Copy allowed keys onto a row. Returns the names actually set."""
    applied = []
    for field, value in changes.items():
        if field in allowed:
            setattr(row, field, value)
            applied.append(field)
    return applied


# =============================================================================
# STORE
# =============================================================================

class SqlStore(UserRepository, IncomeRepository, ExpenseRepository, BudgetPlanRepository):
    """
    Relational implementation of every repository interface.

    One instance owns one engine and one session factory; it holds
    no other state.
    """

    def __init__(self, engine: Optional[Engine] = None):
        if engine is None:
            db_settings = get_settings().database
            engine = create_store_engine(db_settings.url, db_settings.echo)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "SqlStore":
        return cls(create_store_engine(url, echo))

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create any missing tables and indexes."""
        Base.metadata.create_all(self._engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    # -------------------------------------------------------------------------
    # Unit of work
    # -------------------------------------------------------------------------

    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        reraise=True,
    )
    def _run_sync(self, work: Callable[[Session], T]) -> T:
        """Run work in one transaction; transient lock errors are retried."""
        try:
            with self._session_factory.begin() as session:
                return work(session)
        except IntegrityError as e:
            raise DuplicateError(str(e.orig)) from e

    async def _run(self, work: Callable[[Session], T]) -> T:
        try:
            return await asyncio.to_thread(self._run_sync, work)
        except OperationalError as e:
            raise StorageConnectionError(f"Database unavailable: {e.orig}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Database error: {e}") from e

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def add_user(self, user: User) -> User:
        def work(session: Session) -> User:
            row = UserRow(**user.model_dump())
            session.add(row)
            session.flush()
            return User.model_validate(row)

        return await self._run(work)

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        def work(session: Session) -> Optional[User]:
            row = session.get(UserRow, user_id)
            return User.model_validate(row) if row else None

        return await self._run(work)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        def work(session: Session) -> Optional[User]:
            row = session.execute(
                select(UserRow).where(func.lower(UserRow.email) == email.lower())
            ).scalar_one_or_none()
            return User.model_validate(row) if row else None

        return await self._run(work)

    async def update_user_email(self, user_id: UUID, email: str) -> Optional[User]:
        def work(session: Session) -> Optional[User]:
            row = session.get(UserRow, user_id)
            if row is None:
                return None
            row.email = email
            session.flush()
            return User.model_validate(row)

        return await self._run(work)

    async def delete_user(self, user_id: UUID) -> bool:
        def work(session: Session) -> bool:
            row = session.get(UserRow, user_id, with_for_update=True)
            if row is None:
                return False
            # Explicit deletes so SQLite without FK cascades behaves the same.
            for table in (IncomeRow, ExpenseRow, BudgetPlanRow):
                session.execute(delete(table).where(table.user_id == user_id))
            session.delete(row)
            return True

        return await self._run(work)

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    @staticmethod
    def _owned_income(session: Session, income_id: UUID, user_id: UUID) -> Optional[IncomeRow]:
        return session.execute(
            select(IncomeRow).where(IncomeRow.id == income_id, IncomeRow.user_id == user_id)
        ).scalar_one_or_none()

    async def add_income(self, income: Income) -> Income:
        def work(session: Session) -> Income:
            row = IncomeRow(**income.model_dump())
            session.add(row)
            session.flush()
            return Income.model_validate(row)

        return await self._run(work)

    async def get_income(self, income_id: UUID, user_id: UUID) -> Optional[Income]:
        def work(session: Session) -> Optional[Income]:
            row = self._owned_income(session, income_id, user_id)
            return Income.model_validate(row) if row else None

        return await self._run(work)

    async def list_income(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Income]:
        def work(session: Session) -> list[Income]:
            stmt = (
                select(IncomeRow)
                .where(IncomeRow.user_id == user_id)
                .order_by(IncomeRow.created_at.desc())
                .offset(offset)
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            return [Income.model_validate(row) for row in session.execute(stmt).scalars()]

        return await self._run(work)

    async def update_income(
        self,
        income_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
    ) -> Optional[Income]:
        def work(session: Session) -> Optional[Income]:
            row = self._owned_income(session, income_id, user_id)
            if row is None:
                return None
            _apply_changes(row, changes, INCOME_MUTABLE_FIELDS)
            row.updated_at = utcnow()
            session.flush()
            return Income.model_validate(row)

        return await self._run(work)

    async def delete_income(self, income_id: UUID, user_id: UUID) -> bool:
        def work(session: Session) -> bool:
            result = session.execute(
                delete(IncomeRow).where(IncomeRow.id == income_id, IncomeRow.user_id == user_id)
            )
            return result.rowcount > 0

        return await self._run(work)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    @staticmethod
    def _owned_expense(
        session: Session,
        expense_id: UUID,
        user_id: UUID,
        for_update: bool = False,
    ) -> Optional[ExpenseRow]:
        stmt = select(ExpenseRow).where(ExpenseRow.id == expense_id, ExpenseRow.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    async def add_expense(self, expense: Expense) -> Expense:
        def work(session: Session) -> Expense:
            row = ExpenseRow(**expense.model_dump())
            session.add(row)
            session.flush()
            return Expense.model_validate(row)

        return await self._run(work)

    async def get_expense(self, expense_id: UUID, user_id: UUID) -> Optional[Expense]:
        def work(session: Session) -> Optional[Expense]:
            row = self._owned_expense(session, expense_id, user_id)
            return Expense.model_validate(row) if row else None

        return await self._run(work)

    async def list_expenses(
        self,
        user_id: UUID,
        category: Optional[ExpenseCategory] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Expense]:
        def work(session: Session) -> list[Expense]:
            stmt = select(ExpenseRow).where(ExpenseRow.user_id == user_id)
            if category is not None:
                stmt = stmt.where(ExpenseRow.category == category)
            stmt = stmt.order_by(ExpenseRow.created_at.desc()).offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            return [Expense.model_validate(row) for row in session.execute(stmt).scalars()]

        return await self._run(work)

    async def update_expense(
        self,
        expense_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        guard: Optional[ExpenseGuard] = None,
    ) -> Optional[Expense]:
        def work(session: Session) -> Optional[Expense]:
            row = self._owned_expense(session, expense_id, user_id, for_update=True)
            if row is None:
                return None

            allowed = {k: v for k, v in changes.items() if k in EXPENSE_MUTABLE_FIELDS}
            if guard is not None:
                guard(Expense.model_validate(row).model_copy(update=allowed))

            _apply_changes(row, allowed, EXPENSE_MUTABLE_FIELDS)
            if not row.is_recurring:
                row.recurring_interval = None
                row.next_due_date = None
            row.updated_at = utcnow()
            session.flush()
            return Expense.model_validate(row)

        return await self._run(work)

    async def delete_expense(self, expense_id: UUID, user_id: UUID) -> bool:
        def work(session: Session) -> bool:
            result = session.execute(
                delete(ExpenseRow).where(ExpenseRow.id == expense_id, ExpenseRow.user_id == user_id)
            )
            return result.rowcount > 0

        return await self._run(work)

    # -------------------------------------------------------------------------
    # Budget plans
    # -------------------------------------------------------------------------

    @staticmethod
    def _lock_owner(session: Session, user_id: UUID) -> None:
        """Serialize plan writes per user for the rest of the transaction."""
        session.execute(
            select(UserRow.id).where(UserRow.id == user_id).with_for_update()
        ).scalar_one_or_none()

    @staticmethod
    def _deactivate_others(session: Session, user_id: UUID, keep_id: Optional[UUID] = None) -> int:
        """
        Deactivate the user's active plans except keep_id.

        Must run before the newly active row is flushed, or the partial
        unique index would reject the flush.
        """
        stmt = update(BudgetPlanRow).where(
            BudgetPlanRow.user_id == user_id,
            BudgetPlanRow.active.is_(True),
        )
        if keep_id is not None:
            stmt = stmt.where(BudgetPlanRow.id != keep_id)
        result = session.execute(
            stmt.values(active=False, updated_at=utcnow()),
            execution_options={"synchronize_session": False},
        )
        return result.rowcount

    @staticmethod
    def _owned_plan(session: Session, plan_id: UUID, user_id: UUID) -> Optional[BudgetPlanRow]:
        return session.execute(
            select(BudgetPlanRow).where(
                BudgetPlanRow.id == plan_id,
                BudgetPlanRow.user_id == user_id,
            )
        ).scalar_one_or_none()

    async def add_plan(self, plan: BudgetPlan) -> tuple[BudgetPlan, int]:
        def work(session: Session) -> tuple[BudgetPlan, int]:
            self._lock_owner(session, plan.user_id)
            deactivated = 0
            if plan.active:
                deactivated = self._deactivate_others(session, plan.user_id)
            row = BudgetPlanRow(**plan.model_dump())
            session.add(row)
            session.flush()
            return BudgetPlan.model_validate(row), deactivated

        return await self._run(work)

    async def get_plan(self, plan_id: UUID, user_id: UUID) -> Optional[BudgetPlan]:
        def work(session: Session) -> Optional[BudgetPlan]:
            row = self._owned_plan(session, plan_id, user_id)
            return BudgetPlan.model_validate(row) if row else None

        return await self._run(work)

    async def get_active_plan(self, user_id: UUID) -> Optional[BudgetPlan]:
        def work(session: Session) -> Optional[BudgetPlan]:
            row = session.execute(
                select(BudgetPlanRow)
                .where(BudgetPlanRow.user_id == user_id, BudgetPlanRow.active.is_(True))
                .order_by(BudgetPlanRow.updated_at.desc())
            ).scalars().first()
            return BudgetPlan.model_validate(row) if row else None

        return await self._run(work)

    async def list_plans(
        self,
        user_id: UUID,
        active: Optional[bool] = None,
    ) -> list[BudgetPlan]:
        def work(session: Session) -> list[BudgetPlan]:
            stmt = select(BudgetPlanRow).where(BudgetPlanRow.user_id == user_id)
            if active is not None:
                stmt = stmt.where(BudgetPlanRow.active.is_(active))
            stmt = stmt.order_by(BudgetPlanRow.created_at.desc())
            return [BudgetPlan.model_validate(row) for row in session.execute(stmt).scalars()]

        return await self._run(work)

    async def update_plan(
        self,
        plan_id: UUID,
        user_id: UUID,
        changes: dict[str, Any],
        guard: Optional[PlanGuard] = None,
    ) -> Optional[tuple[BudgetPlan, int]]:
        def work(session: Session) -> Optional[tuple[BudgetPlan, int]]:
            self._lock_owner(session, user_id)
            row = self._owned_plan(session, plan_id, user_id)
            if row is None:
                return None

            allowed = {k: v for k, v in changes.items() if k in PLAN_MUTABLE_FIELDS}
            if guard is not None:
                merged = BudgetPlan.model_validate(row).model_copy(update=allowed)
                guard(merged)

            deactivated = 0
            if allowed.get("active") is True:
                deactivated = self._deactivate_others(session, user_id, keep_id=plan_id)

            _apply_changes(row, allowed, PLAN_MUTABLE_FIELDS)
            row.updated_at = utcnow()
            session.flush()
            return BudgetPlan.model_validate(row), deactivated

        return await self._run(work)

    async def delete_plan(self, plan_id: UUID, user_id: UUID) -> Optional[BudgetPlan]:
        def work(session: Session) -> Optional[BudgetPlan]:
            self._lock_owner(session, user_id)
            row = self._owned_plan(session, plan_id, user_id)
            if row is None:
                return None
            plan = BudgetPlan.model_validate(row)
            session.delete(row)
            return plan

        return await self._run(work)

    async def count_active_plans(self, user_id: UUID) -> int:
        def work(session: Session) -> int:
            return session.execute(
                select(func.count())
                .select_from(BudgetPlanRow)
                .where(BudgetPlanRow.user_id == user_id, BudgetPlanRow.active.is_(True))
            ).scalar_one()

        return await self._run(work)
