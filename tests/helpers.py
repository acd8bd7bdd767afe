"""Shared test helpers."""

from datetime import datetime, timedelta
from decimal import Decimal

from account_ledger.models import Account, AccountType


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_account(
    number: str = "CHK-1",
    account_type: AccountType = AccountType.CHECKING,
    user_id: int = 1,
    balance: str | None = None,
    name: str = "Checking",
) -> Account:
    """Build an unsaved account."""
    return Account(
        account_name=name,
        account_number=number,
        account_type=account_type,
        user_id=user_id,
        balance=Decimal(balance) if balance is not None else None,
    )
