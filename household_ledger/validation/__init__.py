"""Input validation package."""

from household_ledger.validation.validator import (
    MISSING_FIELDS_MESSAGE,
    ExpenseValidator,
    UserValidator,
    summarize,
)

__all__ = [
    "MISSING_FIELDS_MESSAGE",
    "ExpenseValidator",
    "UserValidator",
    "summarize",
]
