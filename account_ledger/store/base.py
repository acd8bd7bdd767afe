"""Account store contract shared by all backends."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass, field

from account_ledger.models import Account, AccountType


@dataclass
class StoreTransaction:
    """Working copies of locked accounts inside ``AccountStore.transaction``.

    Changes made to the copies are written back when the ``with`` block
    exits cleanly and discarded if it raises.
    """

    accounts: dict[int, Account] = field(default_factory=dict)
    deleted: set[int] = field(default_factory=set)

    def get(self, account_id: int) -> Account | None:
        if account_id in self.deleted:
            return None
        return self.accounts.get(account_id)

    def delete(self, account_id: int) -> None:
        self.deleted.add(account_id)

    def pending_writes(self) -> list[Account]:
        """Accounts to write back, ascending by id."""
        return [
            self.accounts[aid] for aid in sorted(self.accounts) if aid not in self.deleted
        ]


class AccountStore(ABC):
    """Uniquely keyed storage of Account records.

    Implementations return copies, so callers never hold a reference to
    stored state. Every method is safe to call from several threads.
    """

    @abstractmethod
    def put(self, account: Account) -> Account:
        """Insert or replace an account by id.

        Assigns the next sequence value when ``account_id`` is unset.

        Raises
        ------
        ConflictError
            If the account number belongs to a different account.
        """

    @abstractmethod
    def get(self, account_id: int) -> Account | None:
        """Get an account by id."""

    @abstractmethod
    def get_by_number(self, account_number: str) -> Account | None:
        """Get an account by its account number."""

    @abstractmethod
    def list_all(self) -> list[Account]:
        """List every account."""

    @abstractmethod
    def list_by_user(self, user_id: int) -> list[Account]:
        """List a user's accounts."""

    @abstractmethod
    def list_by_type(self, account_type: AccountType) -> list[Account]:
        """List accounts of one type."""

    @abstractmethod
    def list_by_user_and_type(self, user_id: int, account_type: AccountType) -> list[Account]:
        """List a user's accounts of one type."""

    @abstractmethod
    def exists_by_number(self, account_number: str) -> bool:
        """Check whether an account number is taken."""

    @abstractmethod
    def delete(self, account_id: int) -> bool:
        """Delete an account; False if it does not exist."""

    @abstractmethod
    def count(self) -> int:
        """Count all accounts."""

    @abstractmethod
    def count_by_user(self, user_id: int) -> int:
        """Count a user's accounts."""

    @abstractmethod
    def transaction(self, *account_ids: int) -> AbstractContextManager[StoreTransaction]:
        """Lock accounts in ascending id order for an atomic read-modify-write.

        Parameters
        ----------
        *account_ids : int
            Accounts to lock. Ids that do not exist are absent from the
            yielded ``StoreTransaction``.

        Returns
        -------
        AbstractContextManager[StoreTransaction]
            Context manager committing every change in one step on clean
            exit.

        Raises
        ------
        ConflictError
            On commit, if an updated account number collides with
            another account.
        """
