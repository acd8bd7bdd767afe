"""PostgreSQL-backed account store."""

import functools
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg import errors
from psycopg.rows import dict_row

from account_ledger.exceptions import ConflictError, StoreError
from account_ledger.models import Account, AccountType
from account_ledger.store.base import AccountStore, StoreTransaction

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    id BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
    account_name VARCHAR(100) NOT NULL,
    account_number VARCHAR(50) NOT NULL UNIQUE,
    account_type VARCHAR(20) NOT NULL,
    balance NUMERIC(15, 2) NOT NULL DEFAULT 0,
    currency VARCHAR(3) NOT NULL DEFAULT 'USD',
    user_id BIGINT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_accounts_user_id ON accounts (user_id);
"""

COLUMNS = (
    "id, account_name, account_number, account_type, balance, currency, "
    "user_id, created_at, updated_at"
)

INSERT_SQL = """
INSERT INTO accounts (account_name, account_number, account_type, balance,
                      currency, user_id, created_at, updated_at)
VALUES (%(account_name)s, %(account_number)s, %(account_type)s, %(balance)s,
        %(currency)s, %(user_id)s, %(created_at)s, %(updated_at)s)
RETURNING id
"""

INSERT_WITH_ID_SQL = """
INSERT INTO accounts (id, account_name, account_number, account_type, balance,
                      currency, user_id, created_at, updated_at)
VALUES (%(id)s, %(account_name)s, %(account_number)s, %(account_type)s, %(balance)s,
        %(currency)s, %(user_id)s, %(created_at)s, %(updated_at)s)
"""

UPDATE_SQL = """
UPDATE accounts
SET account_name = %(account_name)s,
    account_number = %(account_number)s,
    account_type = %(account_type)s,
    balance = %(balance)s,
    currency = %(currency)s,
    user_id = %(user_id)s,
    created_at = %(created_at)s,
    updated_at = %(updated_at)s
WHERE id = %(id)s
"""

# Keeps the identity sequence ahead of explicitly inserted ids.
ADVANCE_SEQUENCE_SQL = """
SELECT setval(
    pg_get_serial_sequence('accounts', 'id'),
    GREATEST(%s, COALESCE(pg_sequence_last_value(pg_get_serial_sequence('accounts', 'id')::regclass), 0))
)
"""


def row_to_account(row: dict[str, Any]) -> Account:
    """Convert a ``dict_row`` result to an Account."""
    return Account(
        account_id=row["id"],
        account_name=row["account_name"],
        account_number=row["account_number"],
        account_type=AccountType(row["account_type"]),
        balance=row["balance"],
        currency=row["currency"],
        user_id=row["user_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def account_params(account: Account) -> dict[str, Any]:
    """Query parameters for an Account."""
    return {
        "id": account.account_id,
        "account_name": account.account_name,
        "account_number": account.account_number,
        "account_type": account.account_type.value,
        "balance": account.balance,
        "currency": account.currency,
        "user_id": account.user_id,
        "created_at": account.created_at,
        "updated_at": account.updated_at,
    }


class PostgresAccountStore(AccountStore):
    """Account store over a single ``accounts`` table.

    Every public call runs in its own connection and transaction.
    ``transaction`` holds ``FOR UPDATE`` row locks taken in ascending id
    order and writes all changes before the database transaction
    commits.

    Parameters
    ----------
    conninfo : str | None
        libpq connection string (see ``PostgresConfig.connection_string``).
    connect : Callable[[], psycopg.Connection] | None
        Connection factory; overrides ``conninfo``. Connections must use
        ``dict_row``.
    """

    def __init__(
        self,
        conninfo: str | None = None,
        connect: Callable[[], psycopg.Connection] | None = None,
    ) -> None:
        if connect is None:
            connect = functools.partial(psycopg.connect, conninfo or "", row_factory=dict_row)
        self._connect = connect

    def ensure_schema(self) -> None:
        """Create the accounts table and indexes if missing."""
        with self._cursor() as cur:
            cur.execute(SCHEMA_SQL)
        logger.info("Ensured accounts schema")

    def put(self, account: Account) -> Account:
        stored = account.copy()
        with self._cursor() as cur:
            if stored.account_id is None:
                cur.execute(INSERT_SQL, account_params(stored))
                stored.account_id = cur.fetchone()["id"]
            else:
                self._upsert(cur, stored)
        return stored

    def get(self, account_id: int) -> Account | None:
        return self._fetch_one(f"SELECT {COLUMNS} FROM accounts WHERE id = %s", (account_id,))

    def get_by_number(self, account_number: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {COLUMNS} FROM accounts WHERE account_number = %s", (account_number,)
        )

    def list_all(self) -> list[Account]:
        return self._fetch_all(f"SELECT {COLUMNS} FROM accounts ORDER BY id", ())

    def list_by_user(self, user_id: int) -> list[Account]:
        return self._fetch_all(
            f"SELECT {COLUMNS} FROM accounts WHERE user_id = %s ORDER BY id", (user_id,)
        )

    def list_by_type(self, account_type: AccountType) -> list[Account]:
        return self._fetch_all(
            f"SELECT {COLUMNS} FROM accounts WHERE account_type = %s ORDER BY id",
            (account_type.value,),
        )

    def list_by_user_and_type(self, user_id: int, account_type: AccountType) -> list[Account]:
        return self._fetch_all(
            f"SELECT {COLUMNS} FROM accounts WHERE user_id = %s AND account_type = %s ORDER BY id",
            (user_id, account_type.value),
        )

    def exists_by_number(self, account_number: str) -> bool:
        with self._cursor() as cur:
            cur.execute(
                "SELECT EXISTS (SELECT 1 FROM accounts WHERE account_number = %s) AS found",
                (account_number,),
            )
            return bool(cur.fetchone()["found"])

    def delete(self, account_id: int) -> bool:
        with self._cursor() as cur:
            cur.execute("DELETE FROM accounts WHERE id = %s", (account_id,))
            return cur.rowcount > 0

    def count(self) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM accounts")
            return cur.fetchone()["n"]

    def count_by_user(self, user_id: int) -> int:
        with self._cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM accounts WHERE user_id = %s", (user_id,))
            return cur.fetchone()["n"]

    @contextmanager
    def transaction(self, *account_ids: int) -> Iterator[StoreTransaction]:
        """Lock rows in ascending id order and commit changes atomically."""
        ordered = sorted(set(account_ids))
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {COLUMNS} FROM accounts WHERE id = ANY(%s) ORDER BY id FOR UPDATE",
                (ordered,),
            )
            tx = StoreTransaction(
                accounts={row["id"]: row_to_account(row) for row in cur.fetchall()}
            )

            yield tx

            for account_id in sorted(tx.deleted):
                cur.execute("DELETE FROM accounts WHERE id = %s", (account_id,))
            for account in tx.pending_writes():
                self._upsert(cur, account)

    def _upsert(self, cur: psycopg.Cursor, account: Account) -> None:
        params = account_params(account)
        cur.execute(UPDATE_SQL, params)
        if cur.rowcount == 0:
            cur.execute(INSERT_WITH_ID_SQL, params)
            cur.execute(ADVANCE_SEQUENCE_SQL, (account.account_id,))

    def _fetch_one(self, query: str, params: tuple) -> Account | None:
        with self._cursor() as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return row_to_account(row) if row else None

    def _fetch_all(self, query: str, params: tuple) -> list[Account]:
        with self._cursor() as cur:
            cur.execute(query, params)
            return [row_to_account(row) for row in cur.fetchall()]

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor]:
        """Cursor inside one committed-on-success database transaction."""
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    yield cur
        except errors.UniqueViolation as exc:
            raise ConflictError("Account with this account number already exists") from exc
        except psycopg.Error as exc:
            logger.exception("PostgreSQL account store failure")
            raise StoreError() from exc
