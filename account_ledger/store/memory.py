"""In-memory account store with per-account locking."""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from account_ledger.exceptions import ConfigurationError, ConflictError
from account_ledger.models import Account, AccountType
from account_ledger.store.base import AccountStore, StoreTransaction

logger = logging.getLogger(__name__)

ROW_LOCK_STRIPES = 64


class InMemoryAccountStore(AccountStore):
    """Thread-safe in-memory store.

    Two levels of locking:

    - ``_lock`` guards the maps and the id sequence. Every read or write
      of the maps happens under it, so each call sees a consistent
      snapshot and a multi-account commit is published in one step.
    - a fixed set of ``threading.Lock`` stripes; account ``n`` maps to
      stripe ``n % stripes``. A ``transaction`` block holds the stripes of
      its accounts, taken in ascending stripe order, so the lock set stays
      the same size however many ids are looked up.
    """

    def __init__(self, stripes: int = ROW_LOCK_STRIPES) -> None:
        if stripes < 1:
            raise ConfigurationError("Row lock stripes must be at least 1")
        self._lock = threading.RLock()
        self._accounts: dict[int, Account] = {}
        self._by_number: dict[str, int] = {}
        self._last_id = 0
        self._row_locks = [threading.Lock() for _ in range(stripes)]

    def put(self, account: Account) -> Account:
        """Insert or replace an account by id."""
        if account.account_id is not None:
            with self.transaction(account.account_id) as tx:
                tx.accounts[account.account_id] = account.copy()
            return account.copy()

        with self._lock:
            if account.account_number in self._by_number:
                raise ConflictError(
                    f"Account with number {account.account_number} already exists"
                )
            stored = account.copy()
            self._last_id += 1
            stored.account_id = self._last_id
            self._write(stored)
            return stored.copy()

    def get(self, account_id: int) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return account.copy() if account else None

    def get_by_number(self, account_number: str) -> Account | None:
        with self._lock:
            account_id = self._by_number.get(account_number)
            if account_id is None:
                return None
            return self._accounts[account_id].copy()

    def list_all(self) -> list[Account]:
        return self._select(lambda a: True)

    def list_by_user(self, user_id: int) -> list[Account]:
        return self._select(lambda a: a.user_id == user_id)

    def list_by_type(self, account_type: AccountType) -> list[Account]:
        return self._select(lambda a: a.account_type == account_type)

    def list_by_user_and_type(self, user_id: int, account_type: AccountType) -> list[Account]:
        return self._select(lambda a: a.user_id == user_id and a.account_type == account_type)

    def exists_by_number(self, account_number: str) -> bool:
        with self._lock:
            return account_number in self._by_number

    def delete(self, account_id: int) -> bool:
        with self.transaction(account_id) as tx:
            if tx.get(account_id) is None:
                return False
            tx.delete(account_id)
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._accounts)

    def count_by_user(self, user_id: int) -> int:
        with self._lock:
            return sum(1 for a in self._accounts.values() if a.user_id == user_id)

    @contextmanager
    def transaction(self, *account_ids: int) -> Iterator[StoreTransaction]:
        """Lock accounts in ascending id order and commit changes atomically."""
        ordered = sorted(set(account_ids))
        acquired: list[threading.Lock] = []
        try:
            for row_lock in self._row_locks_for(ordered):
                row_lock.acquire()
                acquired.append(row_lock)

            with self._lock:
                tx = StoreTransaction(
                    accounts={
                        aid: self._accounts[aid].copy()
                        for aid in ordered
                        if aid in self._accounts
                    }
                )

            yield tx

            self._commit(tx)
        finally:
            for row_lock in reversed(acquired):
                row_lock.release()

    def _commit(self, tx: StoreTransaction) -> None:
        with self._lock:
            writes = tx.pending_writes()
            locked_ids = {a.account_id for a in writes} | tx.deleted

            # Numbers held by accounts outside this transaction stay reserved.
            reserved = {
                number: owner
                for number, owner in self._by_number.items()
                if owner not in locked_ids
            }
            for account in writes:
                if account.account_number in reserved:
                    raise ConflictError(
                        f"Account with number {account.account_number} already exists"
                    )
                reserved[account.account_number] = account.account_id

            for account_id in tx.deleted:
                self._remove(account_id)
            for account in writes:
                self._write(account.copy())

    def _write(self, account: Account) -> None:
        """Store a record and keep the number index in sync. Caller holds ``_lock``."""
        previous = self._accounts.get(account.account_id)
        if previous is not None and self._by_number.get(previous.account_number) == account.account_id:
            del self._by_number[previous.account_number]
        self._accounts[account.account_id] = account
        self._by_number[account.account_number] = account.account_id
        self._last_id = max(self._last_id, account.account_id)

    def _remove(self, account_id: int) -> bool:
        """Drop a record. Caller holds ``_lock``."""
        account = self._accounts.pop(account_id, None)
        if account is None:
            return False
        if self._by_number.get(account.account_number) == account_id:
            del self._by_number[account.account_number]
        logger.debug("Removed account %d from memory store", account_id)
        return True

    def _row_locks_for(self, account_ids: list[int]) -> list[threading.Lock]:
        stripes = sorted({aid % len(self._row_locks) for aid in account_ids})
        return [self._row_locks[stripe] for stripe in stripes]

    def _select(self, predicate: Callable[[Account], bool]) -> list[Account]:
        with self._lock:
            return [
                self._accounts[aid].copy()
                for aid in sorted(self._accounts)
                if predicate(self._accounts[aid])
            ]
