"""
FastAPI application factory.

The row store is built and connected exactly once, in the lifespan, and
shared with every request through `app.state.components`. A store that
cannot connect stops the application from starting.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from household_ledger.api.errors import server_error
from household_ledger.api.routes import expenses, system, users
from household_ledger.audit import AuditLogger, configure_logging, get_logger
from household_ledger.config import Settings, get_settings
from household_ledger.orchestrator import create_app_components
from household_ledger.services.storage import RowStoreInterface, StorageError
from household_ledger.validation import MISSING_FIELDS_MESSAGE


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RowStoreInterface] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        store: Row store to inject instead of the configured backend

    Returns:
        FastAPI app; components are created when its lifespan starts
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, json_logs=not app_settings.debug_mode)
    audit_logger = AuditLogger()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        components = create_app_components(
            settings, store=store, audit_logger=audit_logger
        )
        try:
            info = await components.store.connect()
        except StorageError as e:
            audit_logger.log_store_connection_failed(str(e))
            raise
        audit_logger.log_store_connected(info.title or "", info.sheets)
        app.state.components = components
        yield
        logger.info("shutdown")

    app = FastAPI(title="Household Ledger API", lifespan=lifespan)

    # Unreadable bodies (e.g. malformed JSON) answer like any other bad payload
    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        logger.warning(
            "request_rejected",
            path=request.url.path,
            errors=[error.get("type") for error in exc.errors()],
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": MISSING_FIELDS_MESSAGE},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        audit_logger.log_error(
            error_type=type(exc).__name__,
            error_message=str(exc),
            details={"method": request.method, "path": request.url.path},
        )
        return server_error()

    @app.get("/")
    async def root():
        return {"message": "Household Ledger API is running!"}

    prefix = app_settings.api_prefix.rstrip("/")
    app.include_router(system.router, prefix=f"{prefix}/system", tags=["system"])
    app.include_router(users.router, prefix=f"{prefix}/users", tags=["users"])
    app.include_router(expenses.router, prefix=f"{prefix}/expenses", tags=["expenses"])

    return app
