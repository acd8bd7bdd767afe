"""Read-only aggregation over the account store."""

from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal

from account_ledger.exceptions import ValidationError
from account_ledger.models import (
    ZERO,
    Account,
    AccountSummary,
    AccountType,
    to_money,
)
from account_ledger.store import AccountStore


class AccountQueries:
    """Balance reports, orderings and activity windows.

    Each method reads one snapshot from the store and never mutates it.

    Parameters
    ----------
    store : AccountStore
        Source of account records.
    clock : Callable[[], datetime]
        Supplies "now" for the recency and inactivity windows.
    """

    def __init__(self, store: AccountStore, clock: Callable[[], datetime] = datetime.now) -> None:
        self.store = store
        self.clock = clock

    def total_balance(self, user_id: int, account_type: AccountType | None = None) -> Decimal:
        """Sum of a user's balances, optionally for one account type; 0.00 if none."""
        if account_type is None:
            accounts = self.store.list_by_user(user_id)
        else:
            accounts = self.store.list_by_user_and_type(user_id, account_type)
        return sum((a.balance for a in accounts), ZERO)

    def accounts_ordered_by_balance(self, user_id: int) -> list[Account]:
        """A user's accounts, highest balance first, ties by id."""
        accounts = self.store.list_by_user(user_id)
        # sorted() is stable and the store lists by ascending id
        return sorted(accounts, key=lambda a: a.balance, reverse=True)

    def low_balance(self, threshold: Decimal | int | str) -> list[Account]:
        """Non credit-card accounts with a balance below ``threshold``."""
        limit = to_money(threshold)
        return [
            a
            for a in self.store.list_all()
            if a.account_type != AccountType.CREDIT_CARD and a.balance < limit
        ]

    def recent(self, days: int, now: datetime | None = None) -> list[Account]:
        """Accounts created within the last ``days`` days."""
        cutoff = self._cutoff(days, now)
        return [a for a in self.store.list_all() if a.created_at >= cutoff]

    def inactive(self, days: int, now: datetime | None = None) -> list[Account]:
        """Accounts not updated within the last ``days`` days."""
        cutoff = self._cutoff(days, now)
        return [a for a in self.store.list_all() if a.updated_at < cutoff]

    def summary(self, user_id: int) -> AccountSummary:
        """Count, sum, average, max and min of a user's balances.

        A user without accounts gets a zeroed summary.
        """
        balances = [a.balance for a in self.store.list_by_user(user_id)]
        if not balances:
            return AccountSummary()

        total = sum(balances, ZERO)
        return AccountSummary(
            total_accounts=len(balances),
            total_balance=total,
            average_balance=to_money(total / len(balances)),
            max_balance=max(balances),
            min_balance=min(balances),
        )

    def list_by_currency(self, user_id: int, currency: str) -> list[Account]:
        return [a for a in self.store.list_by_user(user_id) if a.currency == currency]

    def balance_above(self, amount: Decimal | int | str) -> list[Account]:
        floor = to_money(amount)
        return [a for a in self.store.list_all() if a.balance > floor]

    def balance_between(
        self, min_balance: Decimal | int | str, max_balance: Decimal | int | str
    ) -> list[Account]:
        """Accounts with ``min_balance <= balance <= max_balance``."""
        low, high = to_money(min_balance), to_money(max_balance)
        if low > high:
            raise ValidationError(f"Invalid balance range: {low} > {high}")
        return [a for a in self.store.list_all() if low <= a.balance <= high]

    def count_by_type(self) -> dict[AccountType, int]:
        counts = Counter(a.account_type for a in self.store.list_all())
        return {account_type: counts[account_type] for account_type in AccountType}

    def _cutoff(self, days: int, now: datetime | None) -> datetime:
        if days < 0:
            raise ValidationError(f"days must be non-negative, got {days}")
        return (now or self.clock()) - timedelta(days=days)
