from typing import Any

from fastapi import APIRouter, Body, Depends, status

from household_ledger.api.dependencies import get_user_flow
from household_ledger.api.errors import outcome_response
from household_ledger.orchestrator import UserFlow

router = APIRouter()


@router.get("")
async def list_users(flow: UserFlow = Depends(get_user_flow)):
    return outcome_response(await flow.list_users())


@router.post("")
async def create_user(
    payload: Any = Body(None),
    flow: UserFlow = Depends(get_user_flow),
):
    outcome = await flow.create_user(payload)
    return outcome_response(
        outcome,
        status_code=status.HTTP_201_CREATED,
        wrap=lambda user: {"message": "User created successfully", "user": user},
    )
