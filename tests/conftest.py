"""
Shared fixtures.

Every test runs against an InMemoryRowStore or fake worksheets.
No network calls are made.
"""

import pytest
from fastapi.testclient import TestClient

from household_ledger.api import create_app
from household_ledger.config import Settings
from household_ledger.orchestrator import create_app_components
from household_ledger.services.storage import InMemoryRowStore


SEED_USERS = [
    {
        "id": 1,
        "name": "A",
        "email": "a@example.com",
        "password": "not-a-hash",
        "created_at": "2024-01-01 09:00:00",
    },
    {
        "id": 2,
        "name": "B",
        "email": "b@example.com",
        "password": "not-a-hash",
        "created_at": "2024-01-01 09:05:00",
    },
]


@pytest.fixture
def settings(monkeypatch):
    """Memory backend, cheap password hashing."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    monkeypatch.setenv("DEBUG_MODE", "true")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return Settings()


@pytest.fixture
def store():
    store = InMemoryRowStore()
    store.seed("users", SEED_USERS)
    return store


@pytest.fixture
def components(settings, store):
    return create_app_components(settings, store=store)


@pytest.fixture
def app(settings, store):
    return create_app(settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
