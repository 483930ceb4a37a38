"""Expense splitting and balance computation."""

from household_ledger.accounting.splitter import (
    LedgerIntegrityError,
    build_expense_views,
    compute_balances,
    index_by_id,
    per_person_share,
    qround,
    settlement_plan,
    simplify_debts,
)

__all__ = [
    "LedgerIntegrityError",
    "build_expense_views",
    "compute_balances",
    "index_by_id",
    "per_person_share",
    "qround",
    "settlement_plan",
    "simplify_debts",
]
