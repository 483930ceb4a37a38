"""
Integration tests for the user and expense flows.

Flows run against the seeded InMemoryRowStore from conftest
(users 1 "A" and 2 "B").
"""

import asyncio
from unittest.mock import AsyncMock

from household_ledger.models.results import ErrorKind
from household_ledger.services.security import verify_password
from household_ledger.services.storage import StorageError


def milk(**overrides):
    payload = {
        "product_name": "Milk",
        "paid_by": 1,
        "amount": 10,
        "expense_date": "2024-03-01",
        "consumers": [1, 2],
    }
    payload.update(overrides)
    return payload


class TestUserFlow:
    """Tests for user operations."""

    def test_list_users_hides_passwords(self, components):
        outcome = asyncio.run(components.user_flow.list_users())
        assert outcome.ok
        assert [u.name for u in outcome.value] == ["A", "B"]
        assert all("password" not in u.model_dump() for u in outcome.value)

    def test_find_user_by_email(self, components):
        """Test lookup is exact and returns None when absent."""
        flow = components.user_flow
        found = asyncio.run(flow.find_user_by_email("b@example.com"))
        assert found.value.id == 2
        missing = asyncio.run(flow.find_user_by_email("nobody@example.com"))
        assert missing.ok
        assert missing.value is None

    def test_create_user_hashes_password(self, components, store):
        """Test the stored password is a bcrypt hash, not the input."""
        outcome = asyncio.run(components.user_flow.create_user({
            "name": "C",
            "email": "c@example.com",
            "password": "hunter2",
        }))
        assert outcome.ok
        assert outcome.value.id == 3

        stored = asyncio.run(store.fetch_all("users"))[-1]
        assert stored["password"] != "hunter2"
        assert verify_password("hunter2", stored["password"])

    def test_verify_credentials(self, components):
        flow = components.user_flow
        asyncio.run(flow.create_user({
            "name": "C",
            "email": "c@example.com",
            "password": "hunter2",
        }))
        assert asyncio.run(flow.verify_credentials("c@example.com", "hunter2")).value.id == 3
        assert asyncio.run(flow.verify_credentials("c@example.com", "wrong")).value is None

    def test_duplicate_email_rejected(self, components, store):
        """Test emails are unique regardless of case."""
        outcome = asyncio.run(components.user_flow.create_user({
            "name": "A again",
            "email": "A@Example.com",
            "password": "pw",
        }))
        assert outcome.error.kind == ErrorKind.CONFLICT
        assert len(asyncio.run(store.fetch_all("users"))) == 2

    def test_duplicate_user_ids_are_an_integrity_error(self, components, store):
        """Test a users table with a repeated id is refused by every user operation."""
        store.seed("users", [{"id": 1, "name": "Dup", "email": "dup@example.com"}])
        flow = components.user_flow

        assert asyncio.run(flow.list_users()).error.kind == ErrorKind.INTEGRITY
        found = asyncio.run(flow.find_user_by_email("a@example.com"))
        assert found.error.kind == ErrorKind.INTEGRITY
        created = asyncio.run(flow.create_user({
            "name": "C",
            "email": "c@example.com",
            "password": "pw",
        }))
        assert created.error.kind == ErrorKind.INTEGRITY
        assert store.append_calls == 0

    def test_invalid_user_rejected(self, components, store):
        outcome = asyncio.run(components.user_flow.create_user({"name": "C"}))
        assert outcome.error.kind == ErrorKind.VALIDATION
        assert store.append_calls == 0


class TestExpenseFlow:
    """Tests for expense creation, listing and balances."""

    def test_create_then_list(self, components):
        """Test a created expense lists with its per-person share."""
        flow = components.expense_flow
        created = asyncio.run(flow.create_expense(milk()))
        assert created.ok
        assert created.value.id == 1
        assert created.value.consumers == [1, 2]

        listed = asyncio.run(flow.list_expenses())
        [view] = listed.value
        assert view.amount_per_person == 5
        assert [c.id for c in view.consumers] == [1, 2]

    def test_consumer_rows_get_sequential_ids(self, components, store):
        """Test consumer rows are appended in one batch with consecutive ids."""
        flow = components.expense_flow
        asyncio.run(flow.create_expense(milk(consumers=[1])))
        asyncio.run(flow.create_expense(milk(consumers=[1, 2])))

        rows = asyncio.run(store.fetch_all("expense_consumers"))
        assert [r["id"] for r in rows] == ["1", "2", "3"]
        assert [r["expense_id"] for r in rows] == ["1", "2", "2"]

    def test_validation_failure_appends_nothing(self, components, store):
        """Test rejected payloads never touch the store."""
        flow = components.expense_flow
        for payload in (milk(consumers=[]), milk(amount=None), milk(paid_by=None)):
            outcome = asyncio.run(flow.create_expense(payload))
            assert outcome.error.kind == ErrorKind.VALIDATION
            assert outcome.error.message == "Missing required fields"
        assert store.append_calls == 0

    def test_unknown_user_rejected(self, components, store):
        outcome = asyncio.run(components.expense_flow.create_expense(milk(consumers=[1, 9])))
        assert outcome.error.kind == ErrorKind.VALIDATION
        assert store.append_calls == 0

    def test_concurrent_creates_get_distinct_ids(self, components, store):
        """Test overlapping creates never share an expense or consumer id."""
        flow = components.expense_flow

        async def scenario():
            return await asyncio.gather(*(flow.create_expense(milk()) for _ in range(5)))

        outcomes = asyncio.run(scenario())
        assert sorted(o.value.id for o in outcomes) == [1, 2, 3, 4, 5]

        consumer_ids = [r["id"] for r in asyncio.run(store.fetch_all("expense_consumers"))]
        assert len(consumer_ids) == len(set(consumer_ids)) == 10

    def test_orphan_consumer_rows_are_not_adopted(self, components, store):
        """Test new expenses skip ids that orphan consumer rows point at."""
        store.seed("expense_consumers", [
            {"id": 1, "expense_id": 4, "user_id": 1, "created_at": ""},
        ])
        created = asyncio.run(components.expense_flow.create_expense(milk()))
        assert created.value.id == 5

        balances = asyncio.run(components.expense_flow.calculate_balance())
        assert [b.balance for b in balances.value] == [5, -5]

    def test_balance_scenario(self, components):
        """Test A pays 30 shared with B."""
        flow = components.expense_flow
        asyncio.run(flow.create_expense(milk(amount=30)))
        outcome = asyncio.run(flow.calculate_balance())
        a, b = outcome.value
        assert (a.paid, a.owe, a.balance) == (30, 15, 15)
        assert (b.paid, b.owe, b.balance) == (0, 15, -15)

        plan = asyncio.run(flow.settlement_plan())
        assert [(s.from_id, s.to_id, s.amount) for s in plan.value] == [(2, 1, 15)]

    def test_integrity_error_on_unknown_payer(self, components, store):
        """Test a stored expense with an unknown payer fails loudly."""
        store.seed("expenses", [{
            "id": 1,
            "product_name": "Bread",
            "quantity": 1,
            "paid_by": 99,
            "amount": "4",
            "expense_date": "2024-03-01",
        }])
        store.seed("expense_consumers", [{"id": 1, "expense_id": 1, "user_id": 1}])
        outcome = asyncio.run(components.expense_flow.calculate_balance())
        assert outcome.error.kind == ErrorKind.INTEGRITY
        assert outcome.error.details["user_id"] == 99

    def test_malformed_row_is_an_integrity_error(self, components, store):
        store.seed("expenses", [{
            "id": 1,
            "product_name": "Bread",
            "paid_by": 1,
            "amount": "four",
            "expense_date": "2024-03-01",
        }])
        outcome = asyncio.run(components.expense_flow.list_expenses())
        assert outcome.error.kind == ErrorKind.INTEGRITY

    def test_storage_failure(self, components, store):
        """Test store failures become storage errors."""
        store.fetch_all = AsyncMock(side_effect=StorageError("quota exceeded"))
        outcome = asyncio.run(components.expense_flow.list_expenses())
        assert outcome.error.kind == ErrorKind.STORAGE

    def test_expense_append_failure_reports_storage_error(self, components, store):
        """Test a failed expense append after consumer rows is reported."""
        original = store.append_rows

        async def flaky(table, rows):
            if table == "expenses":
                raise StorageError("write failed")
            return await original(table, rows)

        store.append_rows = flaky
        outcome = asyncio.run(components.expense_flow.create_expense(milk()))
        assert outcome.error.kind == ErrorKind.STORAGE

        assert len(asyncio.run(store.fetch_all("expense_consumers"))) == 2
        assert asyncio.run(store.fetch_all("expenses")) == []
        assert asyncio.run(components.expense_flow.list_expenses()).value == []
