"""Account model and money helpers."""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from account_ledger.exceptions import ValidationError
from account_ledger.models.enums import AccountType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_CURRENCY = "USD"


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Convert a value to a 2-decimal ``Decimal``.

    Parameters
    ----------
    value : Decimal | int | float | str
        Amount to convert. Floats go through ``str()`` so ``0.1`` stays
        ``0.10`` instead of its binary expansion.

    Returns
    -------
    Decimal
        Amount quantized to cents (half-up).

    Raises
    ------
    ValidationError
        If the value is not a finite number or has too many digits to
        hold at cent precision.
    """
    if isinstance(value, bool) or not isinstance(value, (Decimal, int, float, str)):
        raise ValidationError(f"Invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        # more digits than the decimal context can hold at two places
        raise ValidationError(f"Amount out of range: {value!r}") from exc


@dataclass
class Account:
    """Financial account owned by a user.

    ``account_id`` is assigned by the store on first ``put`` and never
    changes afterwards. ``balance`` moves only through :meth:`credit`,
    :meth:`debit` or :meth:`set_balance`.
    """

    account_name: str
    account_number: str
    account_type: AccountType | None
    user_id: int | None
    balance: Decimal | None = None
    currency: str | None = None
    account_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def credit(self, amount: Decimal, at: datetime) -> bool:
        """Add ``amount`` to the balance; non-positive amounts are ignored."""
        if amount <= 0:
            return False
        self.balance = self.balance + amount
        self.updated_at = at
        return True

    def debit(self, amount: Decimal, at: datetime) -> bool:
        """Subtract ``amount`` if positive and covered by the balance."""
        if amount <= 0 or self.balance < amount:
            return False
        self.balance = self.balance - amount
        self.updated_at = at
        return True

    def set_balance(self, new_balance: Decimal, at: datetime) -> None:
        self.balance = new_balance
        self.updated_at = at

    def copy(self) -> "Account":
        return replace(self)


@dataclass
class AccountPatch:
    """Metadata changes for an existing account; ``None`` keeps the value.

    A blank ``currency`` also keeps the current value, matching account
    creation where a blank currency means "use the default".
    """

    account_name: str | None = None
    account_number: str | None = None
    account_type: AccountType | None = None
    currency: str | None = None


@dataclass
class AccountSummary:
    """Balance statistics for one user's accounts."""

    total_accounts: int = 0
    total_balance: Decimal = ZERO
    average_balance: Decimal = ZERO
    max_balance: Decimal = ZERO
    min_balance: Decimal = ZERO


@dataclass
class TransferResult:
    """Outcome of a transfer: both accounts after the move."""

    source: Account
    destination: Account
    amount: Decimal
