"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every change to a user's money data
2. Debugging capability
3. Visibility into refused cross-user access

The audit logger:
- Writes structured JSON records through structlog
- Never raises (a logging failure must not fail a request)
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure stdlib logging and structlog for JSON output."""
    logging.basicConfig(format="%(message)s", level=level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Each event becomes one "audit_event" log record whose level
    follows the event severity.
    """

    def __init__(self, logger_name: str = "budget_tracker.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error(
                "audit logging failed for %s: %s", event.event_id, e
            )

    def log_user_signed_up(self, user_id: UUID, email: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.user_signed_up(user_id, email, correlation_id))

    def log_user_logged_in(self, user_id: UUID, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.user_logged_in(user_id, correlation_id))

    def log_login_failed(self, email: str, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.login_failed(email, correlation_id))

    def log_user_email_changed(self, user_id: UUID, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.user_email_changed(user_id, correlation_id))

    def log_user_deleted(self, user_id: UUID, correlation_id: Optional[UUID] = None) -> None:
        self.log(AuditEventBuilder.user_deleted(user_id, correlation_id))

    def log_entry_changed(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: UUID,
        user_id: UUID,
        amount: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an income or expense create/update/delete."""
        self.log(AuditEventBuilder.entry_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_plan_created(
        self,
        plan_id: UUID,
        user_id: UUID,
        split: tuple[str, str, str],
        active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.plan_created(plan_id, user_id, split, active, correlation_id))

    def log_plan_updated(
        self,
        plan_id: UUID,
        user_id: UUID,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.plan_updated(plan_id, user_id, changed_fields, correlation_id))

    def log_plan_activated(
        self,
        plan_id: UUID,
        user_id: UUID,
        deactivated_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.plan_activated(plan_id, user_id, deactivated_count, correlation_id))

    def log_plan_deleted(
        self,
        plan_id: UUID,
        user_id: UUID,
        was_active: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.plan_deleted(plan_id, user_id, was_active, correlation_id))

    def log_plan_validation_failed(
        self,
        user_id: UUID,
        total: str,
        plan_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.plan_validation_failed(user_id, total, plan_id, correlation_id))

    def log_summary_computed(
        self,
        user_id: UUID,
        plan_id: Optional[UUID],
        income_count: int,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.summary_computed(
            user_id, plan_id, income_count, expense_count, correlation_id
        ))

    def log_access_denied(
        self,
        user_id: UUID,
        resource: str,
        requested_user_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.access_denied(user_id, resource, requested_user_id, correlation_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a request and pass it through
    all subsequent operations.
    """
    return uuid4()
