"""Tests for PostgresAccountStore using mocks (no actual database)."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import psycopg
from psycopg.rows import dict_row
import pytest

from account_ledger.directory import InMemoryUserDirectory
from account_ledger.engine import LedgerEngine
from account_ledger.exceptions import ConflictError, InsufficientFundsError, StoreError
from account_ledger.models import AccountType
from account_ledger.store.postgres import SCHEMA_SQL, PostgresAccountStore, row_to_account

from tests.helpers import FakeClock, make_account

T0 = datetime(2024, 1, 1, 9, 0, 0)


def _row(account_id: int, number: str, balance: str = "0.00", user_id: int = 1) -> dict:
    return {
        "id": account_id,
        "account_name": "Checking",
        "account_number": number,
        "account_type": "CHECKING",
        "balance": Decimal(balance),
        "currency": "USD",
        "user_id": user_id,
        "created_at": T0,
        "updated_at": T0,
    }


def _statements(cursor: MagicMock) -> list[str]:
    return [" ".join(c.args[0].split()) for c in cursor.execute.call_args_list]


@pytest.fixture
def cursor() -> MagicMock:
    cur = MagicMock()
    cur.rowcount = 1
    return cur


@pytest.fixture
def connection(cursor: MagicMock) -> MagicMock:
    conn = MagicMock()
    conn.__enter__.return_value = conn
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


@pytest.fixture
def pg_store(connection: MagicMock) -> PostgresAccountStore:
    return PostgresAccountStore(connect=lambda: connection)


class TestRowMapping:
    def test_row_to_account(self) -> None:
        account = row_to_account(_row(3, "CHK-3", "12.50"))

        assert account.account_id == 3
        assert account.account_type is AccountType.CHECKING
        assert account.balance == Decimal("12.50")


class TestPostgresStoreWrites:
    """Tests for put/delete/schema."""

    def test_ensure_schema(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        pg_store.ensure_schema()
        cursor.execute.assert_called_once_with(SCHEMA_SQL)

    def test_put_new_account_uses_identity(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        cursor.fetchone.return_value = {"id": 7}
        account = make_account("CHK-7", balance="0.00")

        stored = pg_store.put(account)

        assert stored.account_id == 7
        assert account.account_id is None
        assert _statements(cursor)[0].startswith("INSERT INTO accounts (account_name")
        params = cursor.execute.call_args.args[1]
        assert params["account_type"] == "CHECKING"
        assert params["account_number"] == "CHK-7"

    def test_put_existing_account_updates(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        account = make_account("CHK-7", balance="5.00")
        account.account_id = 7

        pg_store.put(account)

        statements = _statements(cursor)
        assert len(statements) == 1
        assert statements[0].startswith("UPDATE accounts")

    def test_put_unknown_id_inserts_and_advances_sequence(
        self, pg_store: PostgresAccountStore, cursor: MagicMock
    ) -> None:
        cursor.rowcount = 0
        account = make_account("CHK-40")
        account.account_id = 40

        pg_store.put(account)

        statements = _statements(cursor)
        assert statements[1].startswith("INSERT INTO accounts (id,")
        assert "setval" in statements[2]
        assert cursor.execute.call_args.args[1] == (40,)

    def test_unique_violation_becomes_conflict(
        self, pg_store: PostgresAccountStore, cursor: MagicMock
    ) -> None:
        cursor.execute.side_effect = psycopg.errors.UniqueViolation("duplicate key")

        with pytest.raises(ConflictError) as excinfo:
            pg_store.put(make_account("CHK-1"))
        assert isinstance(excinfo.value.__cause__, psycopg.errors.UniqueViolation)

    def test_driver_errors_become_generic_store_error(
        self, pg_store: PostgresAccountStore, cursor: MagicMock
    ) -> None:
        cursor.execute.side_effect = psycopg.OperationalError("server closed the connection at 10.0.0.5")

        with pytest.raises(StoreError) as excinfo:
            pg_store.count()
        assert "10.0.0.5" not in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, psycopg.OperationalError)

    def test_delete(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        assert pg_store.delete(3) is True
        cursor.rowcount = 0
        assert pg_store.delete(3) is False


class TestPostgresStoreReads:
    """Tests for lookups and counts."""

    def test_get(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        cursor.fetchone.return_value = _row(2, "CHK-2")

        account = pg_store.get(2)

        assert account.account_number == "CHK-2"
        assert cursor.execute.call_args.args[1] == (2,)

    def test_get_missing(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        cursor.fetchone.return_value = None
        assert pg_store.get(2) is None
        assert pg_store.get_by_number("NOPE") is None

    def test_list_by_user_and_type(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        cursor.fetchall.return_value = [_row(1, "A"), _row(4, "B")]

        accounts = pg_store.list_by_user_and_type(1, AccountType.CHECKING)

        assert [a.account_id for a in accounts] == [1, 4]
        assert cursor.execute.call_args.args[1] == (1, "CHECKING")
        assert _statements(cursor)[0].endswith("ORDER BY id")

    def test_exists_and_counts(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        cursor.fetchone.side_effect = [{"found": True}, {"n": 5}, {"n": 2}]

        assert pg_store.exists_by_number("CHK-1") is True
        assert pg_store.count() == 5
        assert pg_store.count_by_user(1) == 2


class TestPostgresTransaction:
    """Tests for the row-locking unit of work."""

    def test_locks_in_ascending_order_and_writes_back(
        self, pg_store: PostgresAccountStore, cursor: MagicMock
    ) -> None:
        cursor.fetchall.return_value = [_row(1, "A", "10.00"), _row(5, "B", "0.00")]

        with pg_store.transaction(5, 1) as tx:
            tx.get(1).balance = Decimal("4.00")
            tx.get(5).balance = Decimal("6.00")

        statements = _statements(cursor)
        assert statements[0].endswith("WHERE id = ANY(%s) ORDER BY id FOR UPDATE")
        assert cursor.execute.call_args_list[0].args[1] == ([1, 5],)
        updates = [c.args[1] for c in cursor.execute.call_args_list[1:]]
        assert [(p["id"], p["balance"]) for p in updates] == [(1, Decimal("4.00")), (5, Decimal("6.00"))]

    def test_nothing_written_when_block_raises(
        self, pg_store: PostgresAccountStore, cursor: MagicMock
    ) -> None:
        cursor.fetchall.return_value = [_row(1, "A", "10.00")]

        with pytest.raises(RuntimeError):
            with pg_store.transaction(1) as tx:
                tx.get(1).balance = Decimal("0.00")
                raise RuntimeError("abort")

        assert len(cursor.execute.call_args_list) == 1

    def test_delete_in_transaction(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        cursor.fetchall.return_value = [_row(1, "A")]

        with pg_store.transaction(1) as tx:
            tx.delete(1)

        assert _statements(cursor)[1] == "DELETE FROM accounts WHERE id = %s"
        assert len(cursor.execute.call_args_list) == 2


class TestEngineOverPostgres:
    def test_debit_writes_new_balance(self, pg_store: PostgresAccountStore, cursor: MagicMock) -> None:
        clock = FakeClock(datetime(2024, 6, 1))
        engine = LedgerEngine(pg_store, InMemoryUserDirectory({1}), clock=clock)
        cursor.fetchall.return_value = [_row(1, "CHK-1", "80.00")]

        account = engine.debit(1, "30.00")

        assert account.balance == Decimal("50.00")
        params = cursor.execute.call_args.args[1]
        assert params["balance"] == Decimal("50.00")
        assert params["updated_at"] == clock.now

    def test_insufficient_funds_issues_no_update(
        self, pg_store: PostgresAccountStore, cursor: MagicMock
    ) -> None:
        engine = LedgerEngine(pg_store, InMemoryUserDirectory({1}))
        cursor.fetchall.return_value = [_row(1, "CHK-1", "10.00")]

        with pytest.raises(InsufficientFundsError):
            engine.debit(1, "30.00")
        assert len(cursor.execute.call_args_list) == 1


class TestDefaultConnectionFactory:
    @patch("account_ledger.store.postgres.psycopg.connect")
    def test_uses_conninfo_with_dict_rows(self, mock_connect: MagicMock) -> None:
        conn = MagicMock()
        conn.__enter__.return_value = conn
        conn.cursor.return_value.__enter__.return_value.fetchone.return_value = {"n": 0}
        mock_connect.return_value = conn

        store = PostgresAccountStore("postgresql://u:p@db:5432/ledger")
        assert store.count() == 0

        args, kwargs = mock_connect.call_args
        assert args == ("postgresql://u:p@db:5432/ledger",)
        assert kwargs["row_factory"] is dict_row
