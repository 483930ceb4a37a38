"""
Tests for two-stage input validation.
"""

from decimal import Decimal

import pytest

from household_ledger.validation import (
    MISSING_FIELDS_MESSAGE,
    ExpenseValidator,
    UserValidator,
    summarize,
)


def expense_payload(**overrides):
    payload = {
        "product_name": "Milk",
        "paid_by": 1,
        "amount": 10,
        "expense_date": "2024-03-01",
        "consumers": [1, 2],
    }
    payload.update(overrides)
    return payload


class TestExpenseSchema:
    """Stage 1: presence and types."""

    @pytest.fixture
    def validator(self):
        return ExpenseValidator()

    def test_valid_payload(self, validator):
        """Test defaults are filled for quantity and note."""
        expense, issues = validator.validate_schema(expense_payload())
        assert issues == []
        assert expense.quantity == 1
        assert expense.note == ""
        assert expense.amount == Decimal("10")

    @pytest.mark.parametrize("field", ["product_name", "paid_by", "amount", "expense_date"])
    def test_missing_required_field(self, validator, field):
        """Test each required field is reported missing."""
        payload = expense_payload()
        del payload[field]
        expense, issues = validator.validate_schema(payload)
        assert expense is None
        assert summarize(issues) == MISSING_FIELDS_MESSAGE

    def test_empty_consumers(self, validator):
        """Test an empty consumer list counts as missing."""
        _, issues = validator.validate_schema(expense_payload(consumers=[]))
        assert summarize(issues) == MISSING_FIELDS_MESSAGE

    def test_zero_amount_counts_as_missing(self, validator):
        _, issues = validator.validate_schema(expense_payload(amount=0))
        assert summarize(issues) == MISSING_FIELDS_MESSAGE

    def test_non_object_body(self, validator):
        expense, issues = validator.validate_schema(["Milk"])
        assert expense is None
        assert summarize(issues) == MISSING_FIELDS_MESSAGE

    def test_negative_amount(self, validator):
        """Test a negative amount is invalid, not missing."""
        _, issues = validator.validate_schema(expense_payload(amount=-5))
        assert issues
        assert summarize(issues) != MISSING_FIELDS_MESSAGE
        assert issues[0].field == "amount"

    def test_non_numeric_amount(self, validator):
        _, issues = validator.validate_schema(expense_payload(amount="ten"))
        assert issues[0].issue_type == "invalid_value"

    def test_amount_out_of_range(self, validator):
        """Test amounts too large to round to cents are rejected."""
        expense, issues = validator.validate_schema(expense_payload(amount="1e26"))
        assert expense is None
        assert issues[0].field == "amount"

    def test_amount_below_a_cent(self, validator):
        _, issues = validator.validate_schema(expense_payload(amount="10.999"))
        assert issues[0].field == "amount"

    def test_consumers_must_be_a_list(self, validator):
        _, issues = validator.validate_schema(expense_payload(consumers="1,2"))
        assert issues[0].field == "consumers"

    def test_malformed_date(self, validator):
        """Test dates must be ISO formatted."""
        _, issues = validator.validate_schema(expense_payload(expense_date="01/03/2024"))
        assert issues[0].field == "expense_date"

    def test_numeric_strings_are_coerced(self, validator):
        """Test ids and amounts sent as strings are accepted."""
        expense, issues = validator.validate_schema(
            expense_payload(paid_by="1", amount="12.50", consumers=["1", "2"], quantity="3")
        )
        assert issues == []
        assert expense.paid_by == 1
        assert expense.consumers == [1, 2]
        assert expense.quantity == 3


class TestExpenseReferences:
    """Stage 2: references to existing users."""

    def _expense(self, **overrides):
        expense, issues = ExpenseValidator().validate_schema(expense_payload(**overrides))
        assert issues == []
        return expense

    def test_known_users(self):
        issues = ExpenseValidator().validate_references(self._expense(), {1, 2})
        assert issues == []

    def test_unknown_payer(self):
        issues = ExpenseValidator().validate_references(self._expense(paid_by=9), {1, 2})
        assert [i.field for i in issues] == ["paid_by"]

    def test_unknown_consumers(self):
        """Test every unknown consumer id is named."""
        issues = ExpenseValidator().validate_references(
            self._expense(consumers=[1, 8, 9]), {1, 2}
        )
        assert issues[0].issue_type == "unknown_reference"
        assert "8, 9" in issues[0].message

    def test_duplicate_consumers(self):
        issues = ExpenseValidator().validate_references(
            self._expense(consumers=[1, 1]), {1, 2}
        )
        assert [i.issue_type for i in issues] == ["duplicate"]


class TestUserSchema:
    """Tests for user creation payloads."""

    def test_valid_user(self):
        user, issues = UserValidator().validate_schema({
            "name": " Asha ",
            "email": "asha@example.com",
            "password": "pw",
        })
        assert issues == []
        assert user.name == "Asha"

    def test_missing_password(self):
        user, issues = UserValidator().validate_schema({
            "name": "Asha",
            "email": "asha@example.com",
        })
        assert user is None
        assert summarize(issues) == MISSING_FIELDS_MESSAGE

    def test_invalid_email(self):
        _, issues = UserValidator().validate_schema({
            "name": "Asha",
            "email": "asha.example.com",
            "password": "pw",
        })
        assert issues[0].field == "email"
