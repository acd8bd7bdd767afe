"""Tests for the query layer, through AccountQueries and LedgerEngine."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from account_ledger.config import QueryDefaults
from account_ledger.directory import InMemoryUserDirectory
from account_ledger.engine import LedgerEngine
from account_ledger.exceptions import ValidationError
from account_ledger.models import Account, AccountSummary, AccountType
from account_ledger.queries import AccountQueries
from account_ledger.store import InMemoryAccountStore

from tests.helpers import FakeClock, make_account


@pytest.fixture
def ledger(engine: LedgerEngine) -> LedgerEngine:
    """Engine with accounts for users 1 and 2."""
    engine.create_account(make_account("CHK-1", AccountType.CHECKING, 1, "100.00"))
    engine.create_account(make_account("CC-1", AccountType.CREDIT_CARD, 1, "-50.00"))
    engine.create_account(make_account("SAV-1", AccountType.SAVINGS, 1, "25.50"))
    engine.create_account(make_account("INV-2", AccountType.INVESTMENT, 2, "10.00"))
    return engine


class TestTotals:
    def test_total_balance(self, ledger: LedgerEngine) -> None:
        assert ledger.total_balance(1) == Decimal("75.50")

    def test_total_balance_by_type(self, ledger: LedgerEngine) -> None:
        assert ledger.total_balance(1, AccountType.CREDIT_CARD) == Decimal("-50.00")
        assert ledger.total_balance(1, "SAVINGS") == Decimal("25.50")
        assert ledger.total_balance(1, AccountType.INVESTMENT) == Decimal("0.00")

    def test_total_balance_without_accounts(self, ledger: LedgerEngine) -> None:
        assert ledger.total_balance(42) == Decimal("0")


class TestOrdering:
    def test_descending_balance(self, ledger: LedgerEngine) -> None:
        numbers = [a.account_number for a in ledger.accounts_ordered_by_balance(1)]
        assert numbers == ["CHK-1", "SAV-1", "CC-1"]

    def test_ties_keep_id_order(self, engine: LedgerEngine) -> None:
        for number in ("T-3", "T-1", "T-2"):
            engine.create_account(make_account(number, balance="5.00"))
        engine.create_account(make_account("TOP", balance="9.00"))

        numbers = [a.account_number for a in engine.accounts_ordered_by_balance(1)]
        assert numbers == ["TOP", "T-3", "T-1", "T-2"]


class TestLowBalance:
    def test_excludes_credit_cards(self, ledger: LedgerEngine) -> None:
        numbers = {a.account_number for a in ledger.low_balance("30.00")}
        assert numbers == {"SAV-1", "INV-2"}

    def test_strictly_below(self, ledger: LedgerEngine) -> None:
        numbers = {a.account_number for a in ledger.low_balance("25.50")}
        assert numbers == {"INV-2"}

    def test_default_threshold(self, ledger: LedgerEngine) -> None:
        # default 100.00; CHK-1 is exactly 100.00
        numbers = {a.account_number for a in ledger.low_balance()}
        assert numbers == {"SAV-1", "INV-2"}


class TestActivityWindows:
    def test_recent_and_inactive(self, store: InMemoryAccountStore, directory: InMemoryUserDirectory) -> None:
        clock = FakeClock(datetime(2024, 3, 1))
        engine = LedgerEngine(store, directory, clock=clock)
        old = engine.create_account(make_account("OLD", balance="1.00"))
        clock.advance(days=60)
        engine.create_account(make_account("NEW"))
        clock.advance(days=1)

        assert [a.account_number for a in engine.recent(days=30)] == ["NEW"]
        assert [a.account_number for a in engine.inactive(days=30)] == ["OLD"]

        engine.credit(old.account_id, "1.00")
        assert engine.inactive(days=30) == []

    def test_recent_includes_boundary(self, engine: LedgerEngine, clock: FakeClock) -> None:
        engine.create_account(make_account("EDGE"))
        now = clock.now + timedelta(days=7)
        assert [a.account_number for a in engine.recent(days=7, now=now)] == ["EDGE"]
        assert engine.inactive(days=7, now=now) == []

    def test_defaults_from_config(self, engine: LedgerEngine, clock: FakeClock) -> None:
        engine.create_account(make_account("A"))
        later = clock.now + timedelta(days=91)

        assert engine.recent(now=later) == []
        assert [a.account_number for a in engine.inactive(now=later)] == ["A"]

    def test_negative_days_rejected(self, engine: LedgerEngine) -> None:
        with pytest.raises(ValidationError):
            engine.recent(days=-1)


class TestSummary:
    def test_summary(self, ledger: LedgerEngine) -> None:
        summary = ledger.summary(1)

        assert summary.total_accounts == 3
        assert summary.total_balance == Decimal("75.50")
        assert summary.average_balance == Decimal("25.17")
        assert summary.max_balance == Decimal("100.00")
        assert summary.min_balance == Decimal("-50.00")

    def test_summary_without_accounts(self, ledger: LedgerEngine) -> None:
        summary = ledger.summary(99)

        assert summary == AccountSummary()
        assert summary.total_accounts == 0
        assert summary.total_balance == Decimal("0")


class TestSupplementalQueries:
    def test_list_by_currency(self, engine: LedgerEngine) -> None:
        account = make_account("EUR-1")
        account.currency = "EUR"
        engine.create_account(account)
        engine.create_account(make_account("USD-1"))

        assert [a.account_number for a in engine.list_by_currency(1, "EUR")] == ["EUR-1"]

    def test_balance_above_and_between(self, ledger: LedgerEngine) -> None:
        assert {a.account_number for a in ledger.balance_above("25.50")} == {"CHK-1"}
        assert {a.account_number for a in ledger.balance_between("-50.00", "25.50")} == {
            "CC-1",
            "SAV-1",
            "INV-2",
        }

    def test_balance_between_rejects_inverted_range(self, ledger: LedgerEngine) -> None:
        with pytest.raises(ValidationError):
            ledger.balance_between("10", "1")

    def test_count_by_type(self, ledger: LedgerEngine) -> None:
        assert ledger.count_by_type() == {
            AccountType.CHECKING: 1,
            AccountType.SAVINGS: 1,
            AccountType.CREDIT_CARD: 1,
            AccountType.INVESTMENT: 1,
        }


class TestAccountQueriesDirect:
    def test_uses_injected_clock(self, store: InMemoryAccountStore) -> None:
        queries = AccountQueries(store, FakeClock(datetime(2025, 1, 1)))
        store.put(
            Account(
                account_name="Savings",
                account_number="SAV-9",
                account_type=AccountType.SAVINGS,
                user_id=1,
                balance=Decimal("0.00"),
                currency="USD",
                created_at=datetime(2024, 12, 31),
                updated_at=datetime(2024, 12, 31),
            )
        )

        assert len(queries.recent(2)) == 1
        assert queries.inactive(2) == []
        assert QueryDefaults().recent_days == 30
