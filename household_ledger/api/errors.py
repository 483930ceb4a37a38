"""
Outcome to HTTP response mapping.

Every route answers through `outcome_response`, so the status code for
each error kind is decided here and nowhere else. Server-side failures
never leak their detail: the client gets "Server error", the log gets
the rest.
"""

from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from household_ledger.audit import get_logger
from household_ledger.models.results import ErrorKind, Outcome


SERVER_ERROR_MESSAGE = "Server error"

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTEGRITY: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

logger = get_logger(__name__)


def server_error() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": SERVER_ERROR_MESSAGE},
    )


def outcome_response(
    outcome: Outcome,
    status_code: int = status.HTTP_200_OK,
    wrap: Any = None,
) -> JSONResponse:
    """
    Turn an Outcome into a JSON response.

    Args:
        outcome: Result of a flow operation
        status_code: Status to use on success
        wrap: Optional callable building the success body from the value

    Returns:
        The value (or `wrap(value)`) on success, `{"message": ...}` on error
    """
    if outcome.ok:
        body = wrap(outcome.value) if wrap is not None else outcome.value
        return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

    error = outcome.error
    code = STATUS_BY_KIND.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= 500:
        logger.error(
            "request_failed",
            kind=error.kind.value,
            error=error.message,
            details=jsonable_encoder(error.details),
        )
        return server_error()
    return JSONResponse(status_code=code, content={"message": error.message})
