"""
Main Orchestrator for Household Ledger

This module ties the row store, validation, accounting and audit logging
together into the operations the HTTP layer exposes:
1. Users (list, find by email, create)
2. Expenses (list, create, balance, settlement plan)

DESIGN DECISION: Flows never raise to their caller for expected failures.
Each operation returns an Outcome; storage and integrity problems are
audited here and reported as error kinds the API maps to status codes.

Every operation reads fresh snapshots of the tables it needs. Nothing is
cached between calls.
"""

import asyncio
from typing import Any, Callable, NamedTuple, Optional

from household_ledger.accounting import (
    LedgerIntegrityError,
    build_expense_views,
    compute_balances,
    index_by_id,
    settlement_plan,
)
from household_ledger.audit import AuditLogger, create_correlation_id
from household_ledger.config import Settings
from household_ledger.models.ledger import (
    ConsumerRecord,
    CreatedExpense,
    ExpenseRecord,
    RowFormatError,
    Table,
    UserRecord,
    timestamp_now,
)
from household_ledger.models.results import ErrorKind, Outcome
from household_ledger.services.security import hash_password, verify_password
from household_ledger.services.storage import (
    GoogleSheetsRowStore,
    IdAllocator,
    InMemoryRowStore,
    Row,
    RowStoreInterface,
    StorageError,
)
from household_ledger.validation import ExpenseValidator, UserValidator, summarize


USERS = Table.USERS.value
EXPENSES = Table.EXPENSES.value
EXPENSE_CONSUMERS = Table.EXPENSE_CONSUMERS.value


def _parse(rows: list[Row], model: Callable[[Row], Any]) -> list:
    return [model(row) for row in rows]


class _LedgerFlow:
    """Shared plumbing: snapshots and failure handling."""

    def __init__(
        self,
        store: RowStoreInterface,
        allocator: IdAllocator,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._allocator = allocator
        self._audit_logger = audit_logger or AuditLogger()

    async def _snapshot(self, *tables: str) -> list[list[Row]]:
        """Fetch several tables concurrently."""
        return list(await asyncio.gather(
            *(self._store.fetch_all(table) for table in tables)
        ))

    async def _load_ledger(
        self,
    ) -> tuple[list[UserRecord], list[ExpenseRecord], list[ConsumerRecord]]:
        users, expenses, consumers = await self._snapshot(
            USERS, EXPENSES, EXPENSE_CONSUMERS
        )
        return (
            _parse(users, UserRecord.from_row),
            _parse(expenses, ExpenseRecord.from_row),
            _parse(consumers, ConsumerRecord.from_row),
        )

    def _failure(self, operation: str, error: Exception, correlation_id) -> Outcome:
        """Audit an expected failure and turn it into an Outcome."""
        if isinstance(error, StorageError):
            self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )
            return Outcome.failure(ErrorKind.STORAGE, str(error), operation=operation)

        details = getattr(error, "details", {}) or {}
        if isinstance(error, RowFormatError):
            details = {"table": error.table, "column": error.column}
        self._audit_logger.log_integrity_error(
            operation=operation,
            error_message=str(error),
            details=details,
            correlation_id=correlation_id,
        )
        return Outcome.failure(ErrorKind.INTEGRITY, str(error), **details)


class UserFlow(_LedgerFlow):
    """User operations."""

    def __init__(
        self,
        store: RowStoreInterface,
        allocator: IdAllocator,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[UserValidator] = None,
        password_hash_rounds: int = 12,
    ):
        super().__init__(store, allocator, audit_logger)
        self._validator = validator or UserValidator()
        self._password_hash_rounds = password_hash_rounds

    async def _users(self) -> list[UserRecord]:
        users = _parse(await self._store.fetch_all(USERS), UserRecord.from_row)
        index_by_id(users, USERS)
        return users

    async def list_users(self) -> Outcome:
        """All users, without passwords. No filtering, no pagination."""
        correlation_id = create_correlation_id()
        try:
            users = await self._users()
        except (StorageError, RowFormatError, LedgerIntegrityError) as e:
            return self._failure("list_users", e, correlation_id)
        return Outcome.success([user.public() for user in users])

    async def find_user_by_email(self, email: str) -> Outcome:
        """
        The stored record for `email`, or a None value when absent.

        The record carries the password hash: never return it to a client.
        """
        correlation_id = create_correlation_id()
        try:
            users = await self._users()
        except (StorageError, RowFormatError, LedgerIntegrityError) as e:
            return self._failure("find_user_by_email", e, correlation_id)
        match = next((user for user in users if user.email == email), None)
        return Outcome.success(match)

    async def verify_credentials(self, email: str, password: str) -> Outcome:
        """The public user when `password` matches, otherwise a None value."""
        found = await self.find_user_by_email(email)
        if not found.ok or found.value is None:
            return found
        user: UserRecord = found.value
        matches = await asyncio.to_thread(verify_password, password, user.password)
        return Outcome.success(user.public() if matches else None)

    async def create_user(self, payload: Any) -> Outcome:
        """
        Validate, reject duplicate emails, assign an id and append.

        Returns the created user without the password.
        """
        correlation_id = create_correlation_id()

        new_user, issues = self._validator.validate_schema(payload)
        if issues:
            message = summarize(issues)
            self._audit_logger.log_user_rejected(message, correlation_id)
            return Outcome.failure(
                ErrorKind.VALIDATION,
                message,
                issues=[issue.model_dump() for issue in issues],
            )

        password_hash = await asyncio.to_thread(
            hash_password, new_user.password, self._password_hash_rounds
        )

        try:
            async with self._allocator.serialized(USERS):
                users = await self._users()
                email_key = new_user.email.casefold()
                if any(user.email.casefold() == email_key for user in users):
                    self._audit_logger.log_user_rejected(
                        "duplicate email", correlation_id
                    )
                    return Outcome.failure(
                        ErrorKind.CONFLICT,
                        "Email already registered",
                        email=new_user.email,
                    )

                [user_id] = self._allocator.issue(USERS, (u.id for u in users))
                record = UserRecord(
                    id=user_id,
                    name=new_user.name,
                    email=new_user.email,
                    password=password_hash,
                    created_at=timestamp_now(),
                )
                await self._store.append(USERS, record.to_row())
        except (StorageError, RowFormatError, LedgerIntegrityError) as e:
            return self._failure("create_user", e, correlation_id)

        self._audit_logger.log_user_created(record.id, record.email, correlation_id)
        return Outcome.success(record.public())


class ExpenseFlow(_LedgerFlow):
    """Expense operations and balances."""

    def __init__(
        self,
        store: RowStoreInterface,
        allocator: IdAllocator,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ExpenseValidator] = None,
    ):
        super().__init__(store, allocator, audit_logger)
        self._validator = validator or ExpenseValidator()

    async def list_expenses(self) -> Outcome:
        """Every expense joined with payer, consumers and per-person share."""
        correlation_id = create_correlation_id()
        try:
            users, expenses, consumers = await self._load_ledger()
            views = build_expense_views(users, expenses, consumers)
        except (StorageError, RowFormatError, LedgerIntegrityError) as e:
            return self._failure("list_expenses", e, correlation_id)
        return Outcome.success(views)

    async def calculate_balance(self) -> Outcome:
        """paid / owe / balance per user, rounded to cents."""
        correlation_id = create_correlation_id()
        try:
            users, expenses, consumers = await self._load_ledger()
            balances = compute_balances(users, expenses, consumers)
        except (StorageError, RowFormatError, LedgerIntegrityError) as e:
            return self._failure("calculate_balance", e, correlation_id)
        return Outcome.success(balances)

    async def settlement_plan(self) -> Outcome:
        """Transfers that would settle every outstanding balance."""
        balances = await self.calculate_balance()
        if not balances.ok:
            return balances
        return Outcome.success(settlement_plan(balances.value))

    async def create_expense(self, payload: Any) -> Outcome:
        """
        Validate and append an expense with its consumer rows.

        Write order: consumer rows first (one batch), then the expense
        row. If the expense append fails the consumer rows are orphans
        that no listing or balance ever joins; they are audited so they
        can be removed by hand.
        """
        correlation_id = create_correlation_id()

        expense, issues = self._validator.validate_schema(payload)
        if issues:
            return self._rejected(issues, correlation_id)

        try:
            async with self._allocator.serialized(EXPENSES, EXPENSE_CONSUMERS):
                users, expenses, consumers = await self._load_ledger()

                issues = self._validator.validate_references(
                    expense, {user.id for user in users}
                )
                if issues:
                    return self._rejected(issues, correlation_id)

                # Never reuse an id that orphan consumer rows still point at
                [expense_id] = self._allocator.issue(
                    EXPENSES,
                    (e.id for e in expenses),
                    floor=max((c.expense_id for c in consumers), default=0),
                )
                consumer_ids = self._allocator.issue(
                    EXPENSE_CONSUMERS,
                    (c.id for c in consumers),
                    count=len(expense.consumers),
                )

                created_at = timestamp_now()
                record = ExpenseRecord(
                    id=expense_id,
                    product_name=expense.product_name,
                    quantity=expense.quantity,
                    paid_by=expense.paid_by,
                    amount=expense.amount,
                    expense_date=expense.expense_date,
                    note=expense.note,
                    created_at=created_at,
                )
                consumer_rows = [
                    ConsumerRecord(
                        id=row_id,
                        expense_id=expense_id,
                        user_id=user_id,
                        created_at=created_at,
                    ).to_row()
                    for row_id, user_id in zip(consumer_ids, expense.consumers)
                ]

                await self._store.append_rows(EXPENSE_CONSUMERS, consumer_rows)
                try:
                    await self._store.append(EXPENSES, record.to_row())
                except StorageError as e:
                    self._audit_logger.log_expense_partial_write(
                        expense_id=expense_id,
                        consumer_row_ids=consumer_ids,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                    raise
        except (StorageError, RowFormatError) as e:
            return self._failure("create_expense", e, correlation_id)

        self._audit_logger.log_expense_created(
            expense_id=record.id,
            product_name=record.product_name,
            amount=str(record.amount),
            consumer_ids=list(expense.consumers),
            correlation_id=correlation_id,
        )
        return Outcome.success(CreatedExpense(
            id=record.id,
            product_name=record.product_name,
            quantity=record.quantity,
            paid_by=record.paid_by,
            amount=float(record.amount),
            expense_date=record.expense_date,
            note=record.note,
            consumers=list(expense.consumers),
            created_at=record.created_at,
        ))

    def _rejected(self, issues, correlation_id) -> Outcome:
        message = summarize(issues)
        self._audit_logger.log_expense_rejected(
            message, [issue.message for issue in issues], correlation_id
        )
        return Outcome.failure(
            ErrorKind.VALIDATION,
            message,
            issues=[issue.model_dump() for issue in issues],
        )


class AppComponents(NamedTuple):
    store: RowStoreInterface
    user_flow: UserFlow
    expense_flow: ExpenseFlow
    audit_logger: AuditLogger


def build_store(settings: Settings) -> RowStoreInterface:
    """Construct (but do not connect) the configured row store."""
    if settings.app.storage_backend == "memory":
        return InMemoryRowStore()
    return GoogleSheetsRowStore(settings.google_sheets)


def create_app_components(
    settings: Settings,
    store: Optional[RowStoreInterface] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Application settings
        store: Row store to use. Built from settings when omitted.
        audit_logger: Shared audit logger

    Returns:
        AppComponents sharing one store and one id allocator
    """
    if store is None:
        store = build_store(settings)
    audit_logger = audit_logger or AuditLogger()
    allocator = IdAllocator()

    user_flow = UserFlow(
        store,
        allocator,
        audit_logger=audit_logger,
        password_hash_rounds=settings.app.password_hash_rounds,
    )
    expense_flow = ExpenseFlow(store, allocator, audit_logger=audit_logger)

    return AppComponents(
        store=store,
        user_flow=user_flow,
        expense_flow=expense_flow,
        audit_logger=audit_logger,
    )
