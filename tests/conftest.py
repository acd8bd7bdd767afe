"""Pytest configuration and fixtures."""

import pytest

from account_ledger.directory import InMemoryUserDirectory
from account_ledger.engine import LedgerEngine
from account_ledger.store import InMemoryAccountStore

from tests.helpers import FakeClock


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryAccountStore:
    """Create a fresh store for each test."""
    return InMemoryAccountStore()


@pytest.fixture
def directory() -> InMemoryUserDirectory:
    """Directory knowing users 1 and 2."""
    return InMemoryUserDirectory({1, 2})


@pytest.fixture
def engine(store: InMemoryAccountStore, directory: InMemoryUserDirectory, clock: FakeClock) -> LedgerEngine:
    return LedgerEngine(store, directory, clock=clock)
