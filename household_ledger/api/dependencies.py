from fastapi import Request

from household_ledger.orchestrator import AppComponents, ExpenseFlow, UserFlow
from household_ledger.services.storage import RowStoreInterface


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


def get_user_flow(request: Request) -> UserFlow:
    return get_components(request).user_flow


def get_expense_flow(request: Request) -> ExpenseFlow:
    return get_components(request).expense_flow


def get_store(request: Request) -> RowStoreInterface:
    return get_components(request).store
