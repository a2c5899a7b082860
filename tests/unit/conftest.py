"""
Global fixtures for all unit tests.

- Environment variable isolation (no real MongoDB URI leaks into tests)
- In-memory document store with a deterministic clock
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from docstore import InMemoryDocumentStore, Model, Repository


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.
    """
    monkeypatch.delenv("MONGODB_URI", raising=False)
    monkeypatch.delenv("MONGODB_DATABASE", raising=False)
    monkeypatch.delenv("DOCSTORE_BACKEND", raising=False)


@pytest.fixture
def clock():
    """Clock advancing one second per call, starting 2025-01-01 UTC."""
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    ticks = itertools.count()
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


class User(Model):
    """Record used across repository tests."""
    name: str
    status: Optional[str] = None
    age: Optional[int] = None
    tags: List[str] = []


@pytest.fixture
def users(store):
    return Repository(store, "users", User)


@pytest.fixture
def raw_users(store):
    """Repository returning plain dicts."""
    return Repository(store, "users")


@pytest.fixture
def user_model():
    return User
