from typing import Any

from fastapi import APIRouter, Body, Depends, status

from household_ledger.api.dependencies import get_expense_flow
from household_ledger.api.errors import outcome_response
from household_ledger.orchestrator import ExpenseFlow

router = APIRouter()


@router.get("")
async def list_expenses(flow: ExpenseFlow = Depends(get_expense_flow)):
    return outcome_response(await flow.list_expenses())


# The body is taken raw so that field checks happen in the flow and answer 400
@router.post("")
async def create_expense(
    payload: Any = Body(None),
    flow: ExpenseFlow = Depends(get_expense_flow),
):
    outcome = await flow.create_expense(payload)
    return outcome_response(
        outcome,
        status_code=status.HTTP_201_CREATED,
        wrap=lambda expense: {
            "message": "Expense created successfully",
            "expense": expense,
        },
    )


@router.get("/balance")
async def balance(flow: ExpenseFlow = Depends(get_expense_flow)):
    return outcome_response(await flow.calculate_balance())


@router.get("/settlements")
async def settlements(flow: ExpenseFlow = Depends(get_expense_flow)):
    return outcome_response(await flow.settlement_plan())
