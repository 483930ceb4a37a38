"""
Entry point for the Household Ledger API.

Run with:
    uvicorn app.main:app
or:
    python -m app.main
"""

import uvicorn

from household_ledger.api import create_app
from household_ledger.audit import get_logger
from household_ledger.config import get_settings, validate_all_settings


app = create_app()


if __name__ == "__main__":
    checks = validate_all_settings()
    errors = {name: msg for name, msg in checks.items() if name.endswith("_error")}
    if errors:
        get_logger(__name__).error("invalid_configuration", **errors)
        raise SystemExit(1)

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().app.debug_mode,
    )
