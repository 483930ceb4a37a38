"""
Data Models Package

This package contains all Pydantic models used in the Household Ledger.
Every row read from or written to the row store passes through these schemas.
"""

from household_ledger.models.ledger import (
    TABLE_COLUMNS,
    Balance,
    ConsumerRecord,
    CreatedExpense,
    ExpenseRecord,
    ExpenseView,
    NewExpense,
    NewUser,
    PersonRef,
    RowFormatError,
    Settlement,
    StoreInfo,
    Table,
    UserPublic,
    UserRecord,
    ValidationIssue,
    timestamp_now,
)
from household_ledger.models.results import ErrorKind, LedgerError, Outcome
from household_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "TABLE_COLUMNS",
    "Balance",
    "ConsumerRecord",
    "CreatedExpense",
    "ExpenseRecord",
    "ExpenseView",
    "NewExpense",
    "NewUser",
    "PersonRef",
    "RowFormatError",
    "Settlement",
    "StoreInfo",
    "Table",
    "UserPublic",
    "UserRecord",
    "ValidationIssue",
    "timestamp_now",
    # Results
    "ErrorKind",
    "LedgerError",
    "Outcome",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
