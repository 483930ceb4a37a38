"""
Expense splitting and balance arithmetic.

Everything here is pure: it takes table snapshots already parsed into
records and returns views. Amounts stay Decimal until the view models
are built.

A reference to a user that does not exist, or an expense without any
consumer rows, is an integrity error. Both listing and balancing refuse
to produce numbers from a ledger in that state.
"""

from collections import deque
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence, TypeVar

from household_ledger.models.ledger import (
    Balance,
    ConsumerRecord,
    ExpenseRecord,
    ExpenseView,
    PersonRef,
    Settlement,
    UserRecord,
)


CENTS = Decimal("0.01")
ZERO = Decimal("0")

R = TypeVar("R", UserRecord, ExpenseRecord, ConsumerRecord)


class LedgerIntegrityError(Exception):
    """Stored rows contradict each other."""

    def __init__(self, message: str, **details):
        self.details = details
        super().__init__(message)


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def index_by_id(records: Iterable[R], table: str) -> dict[int, R]:
    """Map id -> record, refusing tables with duplicate ids."""
    index: dict[int, R] = {}
    for record in records:
        if record.id in index:
            raise LedgerIntegrityError(
                f"Duplicate id {record.id} in table '{table}'",
                table=table,
                id=record.id,
            )
        index[record.id] = record
    return index


def group_consumers(
    consumers: Iterable[ConsumerRecord],
) -> dict[int, list[ConsumerRecord]]:
    """Consumer rows per expense id, in append order."""
    groups: dict[int, list[ConsumerRecord]] = {}
    for consumer in index_by_id(consumers, "expense_consumers").values():
        groups.setdefault(consumer.expense_id, []).append(consumer)
    return groups


def per_person_share(amount: Decimal, consumer_count: int) -> Decimal:
    """Even split of `amount` over `consumer_count` people (unrounded)."""
    if consumer_count < 1:
        raise LedgerIntegrityError("Cannot split an expense without consumers")
    return amount / consumer_count


def _resolve_user(
    users: dict[int, UserRecord],
    user_id: int,
    expense: ExpenseRecord,
    role: str,
) -> UserRecord:
    user = users.get(user_id)
    if user is None:
        raise LedgerIntegrityError(
            f"Expense {expense.id} references unknown {role} user {user_id}",
            expense_id=expense.id,
            user_id=user_id,
            role=role,
        )
    return user


def _consumer_group(
    groups: dict[int, list[ConsumerRecord]],
    expense: ExpenseRecord,
) -> list[ConsumerRecord]:
    group = groups.get(expense.id, [])
    if not group:
        raise LedgerIntegrityError(
            f"Expense {expense.id} has no consumers",
            expense_id=expense.id,
        )
    return group


def build_expense_views(
    users: Sequence[UserRecord],
    expenses: Sequence[ExpenseRecord],
    consumers: Sequence[ConsumerRecord],
) -> list[ExpenseView]:
    """Join every expense with its payer and consumer group."""
    users_by_id = index_by_id(users, "users")
    index_by_id(expenses, "expenses")
    groups = group_consumers(consumers)

    views = []
    for expense in expenses:
        payer = _resolve_user(users_by_id, expense.paid_by, expense, "payer")
        group = _consumer_group(groups, expense)
        people = [
            _resolve_user(users_by_id, row.user_id, expense, "consumer")
            for row in group
        ]
        views.append(ExpenseView(
            id=expense.id,
            product_name=expense.product_name,
            quantity=expense.quantity,
            amount=float(expense.amount),
            expense_date=expense.expense_date,
            note=expense.note,
            paid_by=PersonRef(id=payer.id, name=payer.name),
            consumers=[PersonRef(id=p.id, name=p.name) for p in people],
            amount_per_person=float(per_person_share(expense.amount, len(group))),
            created_at=expense.created_at,
        ))
    return views


def compute_balances(
    users: Sequence[UserRecord],
    expenses: Sequence[ExpenseRecord],
    consumers: Sequence[ConsumerRecord],
) -> list[Balance]:
    """
    Net position of every user, in user-table order.

    paid    = sum of amounts of expenses the user paid for
    owe     = sum of the user's even share of every expense they consumed
    balance = paid - owe

    Shares are accumulated unrounded; all three figures are rounded
    half-up to cents at the end.
    """
    users_by_id = index_by_id(users, "users")
    index_by_id(expenses, "expenses")
    groups = group_consumers(consumers)

    paid = {uid: ZERO for uid in users_by_id}
    owe = {uid: ZERO for uid in users_by_id}

    for expense in expenses:
        payer = _resolve_user(users_by_id, expense.paid_by, expense, "payer")
        paid[payer.id] += expense.amount

        group = _consumer_group(groups, expense)
        share = per_person_share(expense.amount, len(group))
        for row in group:
            consumer = _resolve_user(users_by_id, row.user_id, expense, "consumer")
            owe[consumer.id] += share

    return [
        Balance(
            id=user.id,
            name=user.name,
            paid=float(qround(paid[user.id])),
            owe=float(qround(owe[user.id])),
            balance=float(qround(paid[user.id] - owe[user.id])),
        )
        for user in users_by_id.values()
    ]


def simplify_debts(net_map: dict[int, Decimal]) -> list[tuple[int, int, Decimal]]:
    """
    Greedy settlement: largest debtor pays largest creditor until clear.

    Returns (from_id, to_id, amount) transfers.
    """
    creditors = []
    debtors = []

    for uid, bal in net_map.items():
        if bal > 0:
            creditors.append([uid, bal])
        elif bal < 0:
            debtors.append([uid, -bal])

    creditors.sort(key=lambda x: (-x[1], x[0]))
    debtors.sort(key=lambda x: (-x[1], x[0]))

    creditors = deque(creditors)
    debtors = deque(debtors)

    transfers: list[tuple[int, int, Decimal]] = []

    while creditors and debtors:
        cred_id, cred_amt = creditors[0]
        debt_id, debt_amt = debtors[0]

        pay_amt = qround(min(cred_amt, debt_amt))
        if pay_amt > ZERO:
            transfers.append((debt_id, cred_id, pay_amt))

        new_cred = qround(cred_amt - pay_amt)
        new_debt = qround(debt_amt - pay_amt)

        creditors.popleft()
        debtors.popleft()

        if new_cred > ZERO:
            creditors.appendleft([cred_id, new_cred])
        if new_debt > ZERO:
            debtors.appendleft([debt_id, new_debt])
    return transfers


def settlement_plan(balances: Sequence[Balance]) -> list[Settlement]:
    """Transfers that bring every balance in `balances` to zero."""
    names = {b.id: b.name for b in balances}
    net = {b.id: qround(Decimal(str(b.balance))) for b in balances}
    # drop sub-cent noise left by rounding
    net = {uid: amt for uid, amt in net.items() if abs(amt) >= CENTS}

    return [
        Settlement(
            from_id=f,
            from_name=names[f],
            to_id=t,
            to_name=names[t],
            amount=float(a),
        )
        for f, t, a in simplify_debts(net)
    ]
