"""
Audit Logger

DESIGN DECISION: Every write and every store failure is logged as a
typed audit event. This provides:
1. Traceability of who created which rows
2. The detail behind the generic "Server error" clients receive
3. A record of partial writes that need manual cleanup in the sheet

The audit logger never raises: a logging problem must not turn a
successful write into a failed request.
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_ledger.models.audit import AuditEvent, AuditEventBuilder


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure stdlib logging and structlog for the process.

    JSON lines in production; a readable console renderer when
    `json_logs` is False (debug mode).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Emits AuditEvents to the structured log at a level matching their
    severity.
    """

    def __init__(self, logger=None):
        self._logger = logger or structlog.get_logger("household_ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be emitted.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def log_store_connected(self, title: str, sheets: list[str]) -> None:
        self.log(AuditEventBuilder.store_connected(title=title, sheets=sheets))

    def log_store_connection_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.store_connection_failed(error_message))

    def log_user_created(
        self,
        user_id: int,
        email: str,
        correlation_id: UUID,
    ) -> None:
        """Log user creation."""
        self.log(AuditEventBuilder.user_created(
            user_id=user_id,
            email=email,
            correlation_id=correlation_id,
        ))

    def log_user_rejected(self, reason: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.user_rejected(reason, correlation_id))

    def log_expense_created(
        self,
        expense_id: int,
        product_name: str,
        amount: str,
        consumer_ids: list[int],
        correlation_id: UUID,
    ) -> None:
        """Log expense creation."""
        self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            product_name=product_name,
            amount=amount,
            consumer_ids=consumer_ids,
            correlation_id=correlation_id,
        ))

    def log_expense_rejected(
        self,
        reason: str,
        issues: list[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.expense_rejected(reason, issues, correlation_id))

    def log_expense_partial_write(
        self,
        expense_id: int,
        consumer_row_ids: list[int],
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log consumer rows left behind by a failed expense append."""
        self.log(AuditEventBuilder.expense_partial_write(
            expense_id=expense_id,
            consumer_row_ids=consumer_row_ids,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_integrity_error(
        self,
        operation: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.integrity_error(
            operation=operation,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of an operation and pass it through
    every event the operation logs.
    """
    return uuid4()
