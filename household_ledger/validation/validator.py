"""
Two-Stage Validation for ledger writes

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Type coercion (ids, amounts, dates)
- Runs before touching the row store

STAGE 2 - REFERENCE VALIDATION:
- Payer and consumers must be existing users
- A consumer may appear only once per expense
- Needs the current users snapshot

IMPORTANT: Validation NEVER silently fixes issues. A payload with any
issue is rejected as a whole and nothing is appended.
"""

from datetime import date
from typing import Any, Optional

from pydantic import ValidationError

from household_ledger.models.ledger import NewExpense, NewUser, ValidationIssue


MISSING_FIELDS_MESSAGE = "Missing required fields"

EXPENSE_REQUIRED_FIELDS = ("product_name", "paid_by", "amount", "expense_date")
USER_REQUIRED_FIELDS = ("name", "email", "password")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "payload"
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_value",
            message=f"Invalid {field}: {item['msg']}",
        ))
    return issues


def summarize(issues: list[ValidationIssue]) -> str:
    """One message for a list of issues, as shown to the client."""
    if any(issue.issue_type == "missing" for issue in issues):
        return MISSING_FIELDS_MESSAGE
    return issues[0].message if issues else ""


class ExpenseValidator:
    """Validates expense creation payloads."""

    def validate_schema(
        self,
        payload: Any,
    ) -> tuple[Optional[NewExpense], list[ValidationIssue]]:
        """
        Stage 1: presence and types.

        Returns: (expense, issues). `expense` is None when there are issues.
        """
        if not isinstance(payload, dict):
            return None, [ValidationIssue(
                field="payload",
                issue_type="missing",
                message="Request body must be a JSON object",
            )]

        issues = [
            ValidationIssue(
                field=name,
                issue_type="missing",
                message=f"{name} is required",
            )
            for name in EXPENSE_REQUIRED_FIELDS
            if _is_blank(payload.get(name))
        ]

        consumers = payload.get("consumers")
        if consumers is None or consumers == []:
            issues.append(ValidationIssue(
                field="consumers",
                issue_type="missing",
                message="At least one consumer is required",
            ))
        elif not isinstance(consumers, list):
            issues.append(ValidationIssue(
                field="consumers",
                issue_type="invalid_value",
                message="consumers must be a list of user ids",
            ))

        if issues:
            return None, issues

        quantity = payload.get("quantity")
        note = payload.get("note")
        try:
            expense = NewExpense(
                product_name=payload["product_name"],
                quantity=quantity if quantity else 1,
                paid_by=payload["paid_by"],
                amount=payload["amount"],
                expense_date=payload["expense_date"],
                note=note if note else "",
                consumers=consumers,
            )
        except ValidationError as e:
            return None, _issues_from_pydantic(e)

        try:
            parsed_date = date.fromisoformat(expense.expense_date)
        except ValueError:
            return None, [ValidationIssue(
                field="expense_date",
                issue_type="invalid_value",
                message="expense_date must be an ISO date (YYYY-MM-DD)",
            )]

        return expense.model_copy(update={"expense_date": parsed_date.isoformat()}), []

    def validate_references(
        self,
        expense: NewExpense,
        known_user_ids: set[int],
    ) -> list[ValidationIssue]:
        """
        Stage 2: every referenced user exists, no consumer twice.
        """
        issues = []

        if expense.paid_by not in known_user_ids:
            issues.append(ValidationIssue(
                field="paid_by",
                issue_type="unknown_reference",
                message=f"Unknown user id: {expense.paid_by}",
            ))

        unknown = sorted({uid for uid in expense.consumers if uid not in known_user_ids})
        if unknown:
            issues.append(ValidationIssue(
                field="consumers",
                issue_type="unknown_reference",
                message=f"Unknown user id(s): {', '.join(map(str, unknown))}",
            ))

        if len(set(expense.consumers)) != len(expense.consumers):
            issues.append(ValidationIssue(
                field="consumers",
                issue_type="duplicate",
                message="A consumer can only be listed once per expense",
            ))

        return issues


class UserValidator:
    """Validates user creation payloads."""

    def validate_schema(
        self,
        payload: Any,
    ) -> tuple[Optional[NewUser], list[ValidationIssue]]:
        if not isinstance(payload, dict):
            return None, [ValidationIssue(
                field="payload",
                issue_type="missing",
                message="Request body must be a JSON object",
            )]

        issues = [
            ValidationIssue(
                field=name,
                issue_type="missing",
                message=f"{name} is required",
            )
            for name in USER_REQUIRED_FIELDS
            if _is_blank(payload.get(name))
        ]
        if issues:
            return None, issues

        try:
            user = NewUser(
                name=payload["name"],
                email=payload["email"],
                password=payload["password"],
            )
        except ValidationError as e:
            return None, _issues_from_pydantic(e)

        local, _, domain = user.email.partition("@")
        if not local or not domain:
            return None, [ValidationIssue(
                field="email",
                issue_type="invalid_value",
                message="Invalid email address",
            )]

        return user, []
