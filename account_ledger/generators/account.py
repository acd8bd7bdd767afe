"""Random account generator for load and benchmark runs."""

import random
from decimal import Decimal
from typing import Iterator

from faker import Faker

from account_ledger.models import Account, AccountType, to_money


class AccountGenerator:
    """Generate synthetic, not yet persisted accounts.

    Faker supplies names and digits and a private ``random.Random``
    drives type and balance choices, so one seed reproduces a whole run.

    Account mix:
    - CHECKING: most common (~50%)
    - SAVINGS: ~25%
    - CREDIT_CARD: ~15%, carries a negative balance
    - INVESTMENT: ~10%
    """

    ACCOUNT_TYPES = list(AccountType)
    ACCOUNT_TYPE_WEIGHTS = [0.50, 0.25, 0.15, 0.10]

    NUMBER_PREFIXES = {
        AccountType.CHECKING: "CHK",
        AccountType.SAVINGS: "SAV",
        AccountType.CREDIT_CARD: "CC",
        AccountType.INVESTMENT: "INV",
    }

    NAME_SUFFIXES = {
        AccountType.CHECKING: ["Checking", "Everyday Checking", "Joint Checking"],
        AccountType.SAVINGS: ["Savings", "Emergency Fund", "Vacation Fund"],
        AccountType.CREDIT_CARD: ["Credit Card", "Rewards Card"],
        AccountType.INVESTMENT: ["Brokerage", "Retirement Portfolio"],
    }

    # (low, high) balance ranges per type
    BALANCE_RANGES = {
        AccountType.CHECKING: (0, 8_000),
        AccountType.SAVINGS: (500, 40_000),
        AccountType.CREDIT_CARD: (-5_000, 0),
        AccountType.INVESTMENT: (1_000, 150_000),
    }

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        self.rng = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)
        self._issued: set[str] = set()

    def generate(self, user_id: int, account_type: AccountType | None = None) -> Account:
        """Generate a single account for a user.

        Parameters
        ----------
        user_id : int
            Owning user.
        account_type : AccountType | None
            Fixed type; drawn from the weighted mix when omitted.

        Returns
        -------
        Account
            Account without id or timestamps; pass it to
            ``LedgerEngine.create_account``.
        """
        if account_type is None:
            account_type = self.rng.choices(
                self.ACCOUNT_TYPES, weights=self.ACCOUNT_TYPE_WEIGHTS, k=1
            )[0]

        low, high = self.BALANCE_RANGES[account_type]
        balance = to_money(Decimal(str(round(self.rng.uniform(low, high), 2))))

        return Account(
            account_name=f"{self.fake.company()} {self.rng.choice(self.NAME_SUFFIXES[account_type])}",
            account_number=self._account_number(account_type),
            account_type=account_type,
            user_id=user_id,
            balance=balance,
        )

    def generate_for_user(self, user_id: int, count: int) -> Iterator[Account]:
        """Generate ``count`` accounts for one user."""
        for _ in range(count):
            yield self.generate(user_id)

    def _account_number(self, account_type: AccountType) -> str:
        prefix = self.NUMBER_PREFIXES[account_type]
        while True:
            number = f"{prefix}-{self.fake.bothify('########')}"
            if number not in self._issued:
                self._issued.add(number)
                return number
