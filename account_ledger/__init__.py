"""Account ledger engine: balances, transfers and reporting over a pluggable store."""

from account_ledger.config import LedgerConfig
from account_ledger.directory import InMemoryUserDirectory, UserDirectory
from account_ledger.engine import LedgerEngine, build_engine
from account_ledger.exceptions import (
    ConflictError,
    InsufficientFundsError,
    LedgerError,
    NotFoundError,
    ReferentialIntegrityError,
    StoreError,
    ValidationError,
)
from account_ledger.models import Account, AccountPatch, AccountSummary, AccountType, TransferResult
from account_ledger.store import AccountStore, InMemoryAccountStore, PostgresAccountStore

__version__ = "0.1.0"

__all__ = [
    "Account",
    "AccountPatch",
    "AccountStore",
    "AccountSummary",
    "AccountType",
    "ConflictError",
    "InMemoryAccountStore",
    "InMemoryUserDirectory",
    "InsufficientFundsError",
    "LedgerConfig",
    "LedgerEngine",
    "LedgerError",
    "NotFoundError",
    "PostgresAccountStore",
    "ReferentialIntegrityError",
    "StoreError",
    "TransferResult",
    "UserDirectory",
    "ValidationError",
    "build_engine",
]
