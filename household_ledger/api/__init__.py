"""HTTP API package."""

from household_ledger.api.app import create_app

__all__ = ["create_app"]
