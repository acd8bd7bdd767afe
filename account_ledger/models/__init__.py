"""Domain models for the account ledger."""

from account_ledger.models.account import (
    CENT,
    DEFAULT_CURRENCY,
    ZERO,
    Account,
    AccountPatch,
    AccountSummary,
    TransferResult,
    to_money,
)
from account_ledger.models.event import (
    ACCOUNT_BALANCE_REPLACED,
    ACCOUNT_CREATED,
    ACCOUNT_CREDITED,
    ACCOUNT_DEBITED,
    ACCOUNT_DELETED,
    ACCOUNT_UPDATED,
    Event,
)
from account_ledger.models.enums import AccountType

__all__ = [
    "ACCOUNT_BALANCE_REPLACED",
    "ACCOUNT_CREATED",
    "ACCOUNT_CREDITED",
    "ACCOUNT_DEBITED",
    "ACCOUNT_DELETED",
    "ACCOUNT_UPDATED",
    "CENT",
    "DEFAULT_CURRENCY",
    "ZERO",
    "Account",
    "AccountPatch",
    "AccountSummary",
    "AccountType",
    "Event",
    "TransferResult",
    "to_money",
]
