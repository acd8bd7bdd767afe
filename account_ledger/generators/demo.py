"""Fixed development data set."""

import logging
from decimal import Decimal

from account_ledger.directory import InMemoryUserDirectory
from account_ledger.engine import LedgerEngine
from account_ledger.models import Account, AccountType

logger = logging.getLogger(__name__)

# user_id -> display name; the directory only tracks ids
DEMO_USERS = {
    1: "John Doe",
    2: "Jane Smith",
    3: "Bob Johnson",
}

DEMO_ACCOUNTS = [
    ("Main Checking", "CHK-001", AccountType.CHECKING, 1, Decimal("2500.00")),
    ("Emergency Fund", "SAV-001", AccountType.SAVINGS, 1, Decimal("10000.00")),
    ("Main Credit Card", "CC-001", AccountType.CREDIT_CARD, 1, Decimal("-1250.75")),
    ("Primary Checking", "CHK-002", AccountType.CHECKING, 2, Decimal("3200.50")),
    ("Investment Portfolio", "INV-001", AccountType.INVESTMENT, 2, Decimal("25000.00")),
    ("Vacation Fund", "SAV-002", AccountType.SAVINGS, 3, Decimal("5500.25")),
]


def seed_demo_data(engine: LedgerEngine, directory: InMemoryUserDirectory) -> list[Account]:
    """Register the demo users and create their accounts.

    Accounts whose number already exists are skipped, so seeding twice
    is harmless.
    """
    for user_id in DEMO_USERS:
        directory.add_user(user_id)

    created = []
    for name, number, account_type, user_id, balance in DEMO_ACCOUNTS:
        if engine.store.exists_by_number(number):
            logger.info("Demo account %s already present, skipping", number)
            continue
        created.append(
            engine.create_account(
                Account(
                    account_name=name,
                    account_number=number,
                    account_type=account_type,
                    user_id=user_id,
                    balance=balance,
                )
            )
        )

    logger.info("Seeded %d demo users and %d demo accounts", len(DEMO_USERS), len(created))
    return created
