"""
Audit Models for Household Ledger

Every write to the ledger and every failure talking to the row store is
recorded as an audit event. This provides:
1. Traceability of who created which expense or user
2. Debugging information when the spreadsheet misbehaves
3. A record of partial writes that need manual cleanup

DESIGN DECISION: Audit events are emitted to the structured log only.
The spreadsheet stays limited to the three ledger tables.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_CONNECTED = "store_connected"
    STORE_CONNECTION_FAILED = "store_connection_failed"

    # Users
    USER_CREATED = "user_created"
    USER_REJECTED = "user_rejected"

    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_REJECTED = "expense_rejected"
    EXPENSE_PARTIAL_WRITE = "expense_partial_write"

    # Failures
    STORAGE_ERROR = "storage_error"
    INTEGRITY_ERROR = "integrity_error"
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
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what row is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Table the entity lives in (e.g. 'users', 'expenses')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Row id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one operation"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, amount, ...)
        event = AuditEventBuilder.storage_error("fetch_all", str(exc))
    """

    @staticmethod
    def store_connected(title: str, sheets: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CONNECTED,
            description=f"Connected to row store: {title}",
            details={"sheets": sheets},
        )

    @staticmethod
    def store_connection_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CONNECTION_FAILED,
            severity=AuditSeverity.CRITICAL,
            description="Could not connect to row store",
            error_message=error_message,
        )

    @staticmethod
    def user_created(user_id: int, email: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CREATED,
            entity_type="users",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"User created: {email}",
        )

    @staticmethod
    def user_rejected(reason: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="users",
            correlation_id=correlation_id,
            description="User creation rejected",
            details={"reason": reason},
        )

    @staticmethod
    def expense_created(
        expense_id: int,
        product_name: str,
        amount: str,
        consumer_ids: list[int],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expenses",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense created: {product_name[:200]} - {amount}",
            details={
                "amount": amount,
                "consumers": consumer_ids,
            },
        )

    @staticmethod
    def expense_rejected(
        reason: str,
        issues: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expenses",
            correlation_id=correlation_id,
            description=f"Expense rejected: {reason}",
            details={"issues": issues},
        )

    @staticmethod
    def expense_partial_write(
        expense_id: int,
        consumer_row_ids: list[int],
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_PARTIAL_WRITE,
            severity=AuditSeverity.ERROR,
            entity_type="expenses",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Consumer rows written but expense row failed",
            error_message=error_message,
            details={"orphan_consumer_rows": consumer_row_ids},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Row store failure during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def integrity_error(
        operation: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTEGRITY_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Inconsistent ledger data during {operation}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
