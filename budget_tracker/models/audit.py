"""
Audit Models for Budget Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every change to a user's money data
2. Debugging information when things go wrong
3. A record of refused cross-user access

DESIGN DECISION: Audit events are emitted as structured log records only.
The relational store holds user data and nothing else.
"""

from typing import Any, Optional
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budget_tracker.models.budget import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    USER_SIGNED_UP = "user_signed_up"
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"
    USER_EMAIL_CHANGED = "user_email_changed"
    USER_DELETED = "user_deleted"

    # Income / expenses
    INCOME_CREATED = "income_created"
    INCOME_UPDATED = "income_updated"
    INCOME_DELETED = "income_deleted"
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Plans
    PLAN_CREATED = "plan_created"
    PLAN_UPDATED = "plan_updated"
    PLAN_ACTIVATED = "plan_activated"
    PLAN_DELETED = "plan_deleted"
    PLAN_VALIDATION_FAILED = "plan_validation_failed"

    # Reads
    SUMMARY_COMPUTED = "summary_computed"

    # Security / system
    ACCESS_DENIED = "access_denied"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who did it
    user_id: Optional[UUID] = Field(
        default=None,
        description="Acting user, None for anonymous calls"
    )

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'income', 'expense', 'budget_plan')"
    )
    entity_id: Optional[UUID] = None

    # Correlation - for tracking related events of one request
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": str(self.user_id) if self.user_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.plan_activated(plan_id, user_id, 2, correlation_id)
        event = AuditEventBuilder.access_denied(user_id, "income", correlation_id)
    """

    @staticmethod
    def user_signed_up(user_id: UUID, email: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Account created: {email}",
            details={"email": email},
        )

    @staticmethod
    def user_logged_in(user_id: UUID, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="User logged in",
        )

    @staticmethod
    def login_failed(email: str, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            correlation_id=correlation_id,
            description="Login failed: invalid email or password",
            details={"email": email},
        )

    @staticmethod
    def user_email_changed(user_id: UUID, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_EMAIL_CHANGED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Account email changed",
        )

    @staticmethod
    def user_deleted(user_id: UUID, correlation_id: Optional[UUID] = None) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_DELETED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Account deleted with all owned records",
        )

    @staticmethod
    def entry_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: UUID,
        user_id: UUID,
        amount: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        """Income and expense create/update/delete share one shape."""
        action = event_type.value.split("_", 1)[1]
        details = {"amount": amount} if amount is not None else {}
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} {action}",
            details=details,
        )

    @staticmethod
    def plan_created(
        plan_id: UUID,
        user_id: UUID,
        split: tuple[str, str, str],
        active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        needs, wants, savings = split
        return AuditEvent(
            event_type=AuditEventType.PLAN_CREATED,
            user_id=user_id,
            entity_type="budget_plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"Budget plan created: {needs}/{wants}/{savings}",
            details={
                "needs_percentage": needs,
                "wants_percentage": wants,
                "savings_percentage": savings,
                "active": active,
            },
        )

    @staticmethod
    def plan_updated(
        plan_id: UUID,
        user_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_UPDATED,
            user_id=user_id,
            entity_type="budget_plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description="Budget plan updated",
            details={"changed_fields": changed_fields},
        )

    @staticmethod
    def plan_activated(
        plan_id: UUID,
        user_id: UUID,
        deactivated_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_ACTIVATED,
            user_id=user_id,
            entity_type="budget_plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"Budget plan activated, {deactivated_count} other plan(s) deactivated",
            details={"deactivated_count": deactivated_count},
        )

    @staticmethod
    def plan_deleted(
        plan_id: UUID,
        user_id: UUID,
        was_active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_DELETED,
            user_id=user_id,
            entity_type="budget_plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description="Budget plan deleted" + (" (user now has no active plan)" if was_active else ""),
            details={"was_active": was_active},
        )

    @staticmethod
    def plan_validation_failed(
        user_id: UUID,
        total: str,
        plan_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="budget_plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"Plan percentages sum to {total}, not 100",
            details={"total": total},
        )

    @staticmethod
    def summary_computed(
        user_id: UUID,
        plan_id: Optional[UUID],
        income_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUMMARY_COMPUTED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="summary",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"Summary computed from {income_count} income and {expense_count} expense rows",
            details={
                "income_count": income_count,
                "expense_count": expense_count,
                "default_split": plan_id is None,
            },
        )

    @staticmethod
    def access_denied(
        user_id: UUID,
        resource: str,
        requested_user_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=resource,
            correlation_id=correlation_id,
            description=f"Cross-user listing of {resource} refused",
            details={"requested_user_id": str(requested_user_id) if requested_user_id else None},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_code=error_type,
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
