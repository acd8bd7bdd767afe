"""Ledger engine: the single mutation surface for account balances."""

import logging
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from account_ledger.config import LedgerConfig, QueryDefaults
from account_ledger.directory import UserDirectory
from account_ledger.exceptions import (
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from account_ledger.models import (
    ACCOUNT_BALANCE_REPLACED,
    ACCOUNT_CREATED,
    ACCOUNT_CREDITED,
    ACCOUNT_DEBITED,
    ACCOUNT_DELETED,
    ACCOUNT_UPDATED,
    DEFAULT_CURRENCY,
    ZERO,
    Account,
    AccountPatch,
    AccountSummary,
    AccountType,
    Event,
    TransferResult,
    to_money,
)
from account_ledger.queries import AccountQueries
from account_ledger.sinks import EventSink, KafkaSink
from account_ledger.store import AccountStore, InMemoryAccountStore, PostgresAccountStore

logger = logging.getLogger(__name__)

EVENT_SOURCE = "account-ledger"

Amount = Decimal | int | float | str


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value


def _coerce_type(value: Any) -> AccountType:
    if value is None:
        raise ValidationError("Account type is required")
    try:
        return AccountType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown account type: {value!r}") from exc


def _currency(value: str | None) -> str | None:
    """Currency code, or None when unset or blank."""
    if value is None or not value.strip():
        return None
    return value.strip()


def _positive(amount: Amount, operation: str) -> Decimal:
    value = to_money(amount)
    if value <= 0:
        raise ValidationError(f"{operation} amount must be positive")
    return value


class LedgerEngine:
    """Business rules around account balances.

    Every mutation runs inside ``store.transaction`` so the balance check
    and the write it guards are one critical section. Transfers lock
    both accounts in ascending id order.

    Parameters
    ----------
    store : AccountStore
        Explicitly constructed store; the engine keeps no global state.
    directory : UserDirectory
        Answers whether an owning user exists.
    events : EventSink | None
        Receives an ``Event`` after each committed mutation.
    clock : Callable[[], datetime]
        Timestamp source for ``created_at``/``updated_at``.
    query_defaults : QueryDefaults | None
        Defaults for ``low_balance``, ``recent`` and ``inactive``.
    default_currency : str
        Currency applied when an account is created without one.
    """

    def __init__(
        self,
        store: AccountStore,
        directory: UserDirectory,
        events: EventSink | None = None,
        clock: Callable[[], datetime] = datetime.now,
        query_defaults: QueryDefaults | None = None,
        default_currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self.store = store
        self.directory = directory
        self.events = events
        self.clock = clock
        self.query_defaults = query_defaults or QueryDefaults()
        self.default_currency = default_currency
        self.queries = AccountQueries(store, clock)

    # Creation and lookup

    def create_account(self, account: Account) -> Account:
        """Validate and persist a new account.

        Raises
        ------
        ValidationError
            If name, number, type or user id is missing.
        ReferentialIntegrityError
            If the owning user does not exist.
        ConflictError
            If the account number is already taken.
        """
        _require_text(account.account_name, "Account name")
        _require_text(account.account_number, "Account number")
        account_type = _coerce_type(account.account_type)
        if account.user_id is None:
            raise ValidationError("User ID is required")

        if not self.directory.user_exists(account.user_id):
            raise ReferentialIntegrityError(f"User not found with id: {account.user_id}")

        now = self.clock()
        stored = self.store.put(
            replace(
                account,
                account_id=None,
                account_type=account_type,
                balance=ZERO if account.balance is None else to_money(account.balance),
                currency=_currency(account.currency) or self.default_currency,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(
            "Created %s account %d (%s) for user %s",
            stored.account_type.value,
            stored.account_id,
            stored.account_number,
            stored.user_id,
            extra={"account_id": stored.account_id, "user_id": stored.user_id},
        )
        self._publish(ACCOUNT_CREATED, stored)
        return stored

    def find_account(self, account_id: int) -> Account | None:
        return self.store.get(account_id)

    def get_account(self, account_id: int) -> Account:
        account = self.store.get(account_id)
        if account is None:
            raise NotFoundError(f"Account not found with id: {account_id}")
        return account

    def get_account_by_number(self, account_number: str) -> Account:
        account = self.store.get_by_number(account_number)
        if account is None:
            raise NotFoundError(f"Account not found with number: {account_number}")
        return account

    def list_accounts(self) -> list[Account]:
        return self.store.list_all()

    def list_accounts_by_user(self, user_id: int) -> list[Account]:
        return self.store.list_by_user(user_id)

    def list_accounts_by_type(self, account_type: AccountType) -> list[Account]:
        return self.store.list_by_type(_coerce_type(account_type))

    def list_accounts_by_user_and_type(self, user_id: int, account_type: AccountType) -> list[Account]:
        return self.store.list_by_user_and_type(user_id, _coerce_type(account_type))

    def count_accounts(self) -> int:
        return self.store.count()

    def count_accounts_by_user(self, user_id: int) -> int:
        return self.store.count_by_user(user_id)

    # Mutations

    def update_account(self, account_id: int, patch: AccountPatch) -> Account:
        """Apply metadata changes; the balance is never touched here.

        Raises
        ------
        NotFoundError
            If the account does not exist.
        ConflictError
            If the new account number belongs to another account.
        """
        if patch.account_name is not None:
            _require_text(patch.account_name, "Account name")
        if patch.account_number is not None:
            _require_text(patch.account_number, "Account number")
        new_type = _coerce_type(patch.account_type) if patch.account_type is not None else None
        new_currency = _currency(patch.currency)

        with self.store.transaction(account_id) as tx:
            account = self._locked(tx.get(account_id), account_id)
            if patch.account_name is not None:
                account.account_name = patch.account_name
            if patch.account_number is not None:
                account.account_number = patch.account_number
            if new_type is not None:
                account.account_type = new_type
            if new_currency is not None:
                account.currency = new_currency
            account.updated_at = self.clock()

        logger.info("Updated account %d", account_id)
        self._publish(ACCOUNT_UPDATED, account)
        return account.copy()

    def replace_balance(self, account_id: int, new_balance: Amount) -> Account:
        """Overwrite the balance without sign or magnitude checks."""
        balance = to_money(new_balance)
        with self.store.transaction(account_id) as tx:
            account = self._locked(tx.get(account_id), account_id)
            previous = account.balance
            account.set_balance(balance, self.clock())

        logger.info("Replaced balance of account %d: %s -> %s", account_id, previous, balance)
        self._publish(ACCOUNT_BALANCE_REPLACED, account, previous_balance=previous)
        return account.copy()

    def credit(self, account_id: int, amount: Amount) -> Account:
        """Add funds. A non-positive amount is a no-op returning the account."""
        value = to_money(amount)
        with self.store.transaction(account_id) as tx:
            account = self._locked(tx.get(account_id), account_id)
            applied = account.credit(value, self.clock())

        if not applied:
            logger.debug("Ignored non-positive credit of %s to account %d", value, account_id)
            return account.copy()

        logger.info(
            "Credited %s to account %d (balance %s)", value, account_id, account.balance,
            extra={"account_id": account_id, "user_id": account.user_id},
        )
        self._publish(ACCOUNT_CREDITED, account, amount=value)
        return account.copy()

    def debit(self, account_id: int, amount: Amount) -> Account:
        """Withdraw funds.

        Raises
        ------
        ValidationError
            If ``amount`` is not positive.
        NotFoundError
            If the account does not exist.
        InsufficientFundsError
            If the balance is lower than ``amount``; nothing changes.
        """
        value = _positive(amount, "Debit")
        with self.store.transaction(account_id) as tx:
            account = self._locked(tx.get(account_id), account_id)
            if not account.debit(value, self.clock()):
                logger.warning(
                    "Debit of %s rejected for account %d: balance %s",
                    value,
                    account_id,
                    account.balance,
                )
                raise InsufficientFundsError("Insufficient balance for debit operation")

        logger.info(
            "Debited %s from account %d (balance %s)", value, account_id, account.balance,
            extra={"account_id": account_id, "user_id": account.user_id},
        )
        self._publish(ACCOUNT_DEBITED, account, amount=value)
        return account.copy()

    def transfer(self, from_account_id: int, to_account_id: int, amount: Amount) -> TransferResult:
        """Move funds between two accounts in one store transaction.

        Either both balances change or neither does. A transfer from an
        account to itself debits and credits the same record: the balance
        must still cover ``amount``, and only ``updated_at`` moves.

        Raises
        ------
        ValidationError
            If ``amount`` is not positive.
        NotFoundError
            If either account does not exist.
        InsufficientFundsError
            If the source balance is lower than ``amount``.
        """
        value = _positive(amount, "Transfer")

        with self.store.transaction(from_account_id, to_account_id) as tx:
            source = tx.get(from_account_id)
            if source is None:
                raise NotFoundError(f"Source account not found with id: {from_account_id}")
            destination = tx.get(to_account_id)
            if destination is None:
                raise NotFoundError(f"Destination account not found with id: {to_account_id}")

            now = self.clock()
            if not source.debit(value, now):
                logger.warning(
                    "Transfer of %s from account %d to %d rejected: balance %s",
                    value,
                    from_account_id,
                    to_account_id,
                    source.balance,
                )
                raise InsufficientFundsError("Insufficient balance in source account")
            destination.credit(value, now)

        transfer_id = str(uuid.uuid4())
        logger.info(
            "Transferred %s from account %d to %d (transfer %s)",
            value,
            from_account_id,
            to_account_id,
            transfer_id,
            extra={"account_id": from_account_id, "transfer_id": transfer_id},
        )
        self._publish(
            ACCOUNT_DEBITED, source, amount=value, transfer_id=transfer_id,
            counterparty_id=to_account_id,
        )
        self._publish(
            ACCOUNT_CREDITED, destination, amount=value, transfer_id=transfer_id,
            counterparty_id=from_account_id,
        )
        return TransferResult(source=source.copy(), destination=destination.copy(), amount=value)

    def delete_account(self, account_id: int) -> bool:
        """Remove a zero-balance account.

        Returns
        -------
        bool
            False if the account does not exist, True once removed.

        Raises
        ------
        ConflictError
            If the balance is not zero.
        """
        with self.store.transaction(account_id) as tx:
            account = tx.get(account_id)
            if account is None:
                return False
            if account.balance != 0:
                logger.warning(
                    "Refused to delete account %d with balance %s", account_id, account.balance
                )
                raise ConflictError("Cannot delete account with non-zero balance")
            tx.delete(account_id)

        logger.info("Deleted account %d", account_id, extra={"account_id": account_id})
        self._publish(ACCOUNT_DELETED, account)
        return True

    # Queries

    def total_balance(self, user_id: int, account_type: AccountType | None = None) -> Decimal:
        if account_type is not None:
            account_type = _coerce_type(account_type)
        return self.queries.total_balance(user_id, account_type)

    def accounts_ordered_by_balance(self, user_id: int) -> list[Account]:
        return self.queries.accounts_ordered_by_balance(user_id)

    def low_balance(self, threshold: Amount | None = None) -> list[Account]:
        if threshold is None:
            threshold = self.query_defaults.low_balance_threshold
        return self.queries.low_balance(threshold)

    def recent(self, days: int | None = None, now: datetime | None = None) -> list[Account]:
        if days is None:
            days = self.query_defaults.recent_days
        return self.queries.recent(days, now)

    def inactive(self, days: int | None = None, now: datetime | None = None) -> list[Account]:
        if days is None:
            days = self.query_defaults.inactive_days
        return self.queries.inactive(days, now)

    def summary(self, user_id: int) -> AccountSummary:
        return self.queries.summary(user_id)

    def list_by_currency(self, user_id: int, currency: str) -> list[Account]:
        return self.queries.list_by_currency(user_id, currency)

    def balance_above(self, amount: Amount) -> list[Account]:
        return self.queries.balance_above(amount)

    def balance_between(self, min_balance: Amount, max_balance: Amount) -> list[Account]:
        return self.queries.balance_between(min_balance, max_balance)

    def count_by_type(self) -> dict[AccountType, int]:
        return self.queries.count_by_type()

    # Internals

    @staticmethod
    def _locked(account: Account | None, account_id: int) -> Account:
        if account is None:
            raise NotFoundError(f"Account not found with id: {account_id}")
        return account

    def _publish(self, event_type: str, account: Account, **details: Any) -> None:
        if self.events is None:
            return
        self.events.send(Event.for_account(event_type, account, self.clock(), EVENT_SOURCE, **details))


def build_engine(
    config: LedgerConfig,
    directory: UserDirectory,
    clock: Callable[[], datetime] = datetime.now,
) -> LedgerEngine:
    """Wire a store and optional Kafka sink into a ``LedgerEngine``.

    The Postgres backend gets its schema created on first use.
    """
    if config.store_backend == "postgres":
        store: AccountStore = PostgresAccountStore(config.postgres.connection_string)
        store.ensure_schema()
    else:
        store = InMemoryAccountStore()

    events = None
    if config.events.enabled:
        events = KafkaSink(config.kafka, config.events.accounts_topic)

    logger.info(
        "Ledger engine ready: store=%s, events=%s",
        config.store_backend,
        config.events.accounts_topic if events else "disabled",
    )
    return LedgerEngine(
        store,
        directory,
        events=events,
        clock=clock,
        query_defaults=config.queries,
        default_currency=config.default_currency,
    )
