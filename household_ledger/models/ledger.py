"""
Core Data Models for Household Ledger

These models define the schemas for every row stored in the spreadsheet
and every payload returned over HTTP. They are designed to:
1. Parse sheet rows (where every cell is a string) into typed records
2. Serialize records back into rows, keyed by column name
3. Keep stored secrets (password hashes) out of public views

DESIGN DECISION: Money is handled as Decimal internally and only
converted to float at the HTTP boundary, where JSON needs a number.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")

ROW_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Largest amount a single expense may carry; keeps cent rounding within
# the default Decimal precision
MAX_AMOUNT = Decimal("1000000000000")


# =============================================================================
# TABLE LAYOUT - column order used when a sheet is created
# =============================================================================

class Table(str, Enum):
    """Logical tables of the row store."""
    USERS = "users"
    EXPENSES = "expenses"
    EXPENSE_CONSUMERS = "expense_consumers"


TABLE_COLUMNS: dict[str, list[str]] = {
    Table.USERS.value: ["id", "name", "email", "password", "created_at"],
    Table.EXPENSES.value: [
        "id",
        "product_name",
        "quantity",
        "paid_by",
        "amount",
        "expense_date",
        "note",
        "created_at",
    ],
    Table.EXPENSE_CONSUMERS.value: ["id", "expense_id", "user_id", "created_at"],
}


class RowFormatError(ValueError):
    """A stored row has a cell that cannot be parsed."""

    def __init__(self, table: str, column: str, value: object):
        self.table = table
        self.column = column
        self.value = value
        super().__init__(
            f"Malformed value {value!r} in column '{column}' of table '{table}'"
        )


def timestamp_now() -> str:
    """Current UTC time in the row timestamp format."""
    return datetime.now(timezone.utc).strftime(ROW_TIMESTAMP_FORMAT)


def _cell(
    row: dict[str, str],
    table: str,
    column: str,
    cast: Callable[[str], T],
    default: Optional[T] = None,
) -> T:
    raw = row.get(column, "")
    raw = raw.strip() if isinstance(raw, str) else raw
    if raw in ("", None):
        if default is not None:
            return default
        raise RowFormatError(table, column, raw)
    try:
        return cast(raw)
    except (ValueError, TypeError, ArithmeticError):
        raise RowFormatError(table, column, raw)


def _as_int(raw: str) -> int:
    # Sheets may render whole numbers as "3.0"
    value = Decimal(str(raw))
    if value != value.to_integral_value():
        raise ValueError(f"not an integer: {raw}")
    return int(value)


def _as_decimal(raw: str) -> Decimal:
    value = Decimal(str(raw))
    if not value.is_finite():
        raise ValueError(f"not a finite number: {raw}")
    if abs(value) > MAX_AMOUNT:
        raise ValueError(f"out of range: {raw}")
    return value


# =============================================================================
# STORED RECORDS - one per table row
# =============================================================================

class UserPublic(BaseModel):
    """A user as exposed over HTTP (never carries the password)."""

    id: int
    name: str
    email: str
    created_at: str


class UserRecord(BaseModel):
    """
    A user row as stored.

    `password` holds the bcrypt hash. Callers must use `public()` before
    returning a user to a client.
    """

    id: int
    name: str
    email: str
    password: str = Field(default="", repr=False)
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, str]) -> "UserRecord":
        table = Table.USERS.value
        return cls(
            id=_cell(row, table, "id", _as_int),
            name=row.get("name", ""),
            email=row.get("email", ""),
            password=row.get("password", ""),
            created_at=row.get("created_at", ""),
        )

    def to_row(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "created_at": self.created_at,
        }

    def public(self) -> UserPublic:
        return UserPublic(
            id=self.id,
            name=self.name,
            email=self.email,
            created_at=self.created_at,
        )


class ExpenseRecord(BaseModel):
    """An expense row as stored."""

    id: int
    product_name: str
    quantity: int = 1
    paid_by: int
    amount: Decimal
    expense_date: str
    note: str = ""
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, str]) -> "ExpenseRecord":
        table = Table.EXPENSES.value
        return cls(
            id=_cell(row, table, "id", _as_int),
            product_name=row.get("product_name", ""),
            quantity=_cell(row, table, "quantity", _as_int, default=1),
            paid_by=_cell(row, table, "paid_by", _as_int),
            amount=_cell(row, table, "amount", _as_decimal),
            expense_date=row.get("expense_date", ""),
            note=row.get("note", "") or "",
            created_at=row.get("created_at", ""),
        )

    def to_row(self) -> dict[str, object]:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "paid_by": self.paid_by,
            "amount": str(self.amount),
            "expense_date": self.expense_date,
            "note": self.note,
            "created_at": self.created_at,
        }


class ConsumerRecord(BaseModel):
    """One (expense, consumer) pair."""

    id: int
    expense_id: int
    user_id: int
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, str]) -> "ConsumerRecord":
        table = Table.EXPENSE_CONSUMERS.value
        return cls(
            id=_cell(row, table, "id", _as_int),
            expense_id=_cell(row, table, "expense_id", _as_int),
            user_id=_cell(row, table, "user_id", _as_int),
            created_at=row.get("created_at", ""),
        )

    def to_row(self) -> dict[str, object]:
        return {
            "id": self.id,
            "expense_id": self.expense_id,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }


# =============================================================================
# INPUTS - validated payloads for create operations
# =============================================================================

class NewUser(BaseModel):
    """Validated input for user creation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, repr=False)


class NewExpense(BaseModel):
    """Validated input for expense creation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    product_name: str = Field(..., min_length=1, max_length=500)
    quantity: int = Field(default=1, ge=1)
    paid_by: int = Field(..., gt=0)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, decimal_places=2)
    expense_date: str
    note: str = ""
    consumers: list[int] = Field(..., min_length=1)


class ValidationIssue(BaseModel):
    """A single problem found in a create payload."""

    field: str
    issue_type: str  # missing, invalid_value, unknown_reference, duplicate
    message: str


# =============================================================================
# VIEWS - what the HTTP layer returns
# =============================================================================

class PersonRef(BaseModel):
    """A user reference inside an expense view."""

    id: int
    name: str


class ExpenseView(BaseModel):
    """An expense joined with its payer and consumer group."""

    id: int
    product_name: str
    quantity: int
    amount: float
    expense_date: str
    note: str
    paid_by: PersonRef
    consumers: list[PersonRef]
    amount_per_person: float
    created_at: str


class CreatedExpense(BaseModel):
    """Echo of a freshly created expense."""

    id: int
    product_name: str
    quantity: int
    paid_by: int
    amount: float
    expense_date: str
    note: str
    consumers: list[int]
    created_at: str


class Balance(BaseModel):
    """A user's net position. Positive `balance` means others owe them."""

    id: int
    name: str
    paid: float
    owe: float
    balance: float


class Settlement(BaseModel):
    """One transfer that settles part of the outstanding balances."""

    from_id: int
    from_name: str
    to_id: int
    to_name: str
    amount: float


class StoreInfo(BaseModel):
    """Result of probing the row store connection."""

    success: bool
    title: Optional[str] = None
    sheet_count: Optional[int] = None
    sheets: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
