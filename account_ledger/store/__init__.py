"""Account stores: the persistence contract and its backends."""

from account_ledger.store.base import AccountStore, StoreTransaction
from account_ledger.store.memory import InMemoryAccountStore
from account_ledger.store.postgres import PostgresAccountStore

__all__ = ["AccountStore", "InMemoryAccountStore", "PostgresAccountStore", "StoreTransaction"]
