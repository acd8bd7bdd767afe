#!/usr/bin/env python3
"""Seed an account ledger with demo and synthetic data.

Builds a ledger engine from environment configuration (see
``LedgerConfig.from_env``), creates the fixed demo data set and,
optionally, random accounts for extra users, then logs counts and
per-user summaries.

Usage:
    python scripts/seed_ledger.py
    python scripts/seed_ledger.py --random-users 50 --accounts-per-user 3 --seed 7
    STORE_BACKEND=postgres python scripts/seed_ledger.py
"""

import argparse
import logging
import sys
import time
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from account_ledger.config import LedgerConfig
from account_ledger.directory import InMemoryUserDirectory
from account_ledger.engine import LedgerEngine, build_engine
from account_ledger.exceptions import LedgerError
from account_ledger.generators import DEMO_USERS, AccountGenerator, seed_demo_data
from account_ledger.logging import setup_logging

logger = logging.getLogger(__name__)


def seed_random_accounts(
    engine: LedgerEngine,
    directory: InMemoryUserDirectory,
    num_users: int,
    accounts_per_user: int,
    seed: int | None,
) -> int:
    """Create random accounts for users numbered after the demo users."""
    generator = AccountGenerator(seed=seed)
    first_user = max(DEMO_USERS) + 1
    created = 0
    t0 = time.perf_counter()

    for user_id in range(first_user, first_user + num_users):
        directory.add_user(user_id)
        for account in generator.generate_for_user(user_id, accounts_per_user):
            engine.create_account(account)
            created += 1

    logger.info("Generated %d random accounts in %.1fs", created, time.perf_counter() - t0)
    return created


def print_summary(engine: LedgerEngine, user_ids: list[int]) -> None:
    """Log account counts and balance statistics."""
    logger.info("=" * 60)
    logger.info("Accounts: %d", engine.count_accounts())
    for account_type, count in engine.count_by_type().items():
        logger.info("  - %s: %d", account_type.value, count)
    logger.info("Per-user summaries:")
    for user_id in user_ids:
        summary = engine.summary(user_id)
        logger.info(
            "  - user %d: %d accounts, total %s, avg %s, max %s, min %s",
            user_id,
            summary.total_accounts,
            summary.total_balance,
            summary.average_balance,
            summary.max_balance,
            summary.min_balance,
        )
    low = engine.low_balance()
    logger.info("Low-balance accounts (< %s): %d", engine.query_defaults.low_balance_threshold, len(low))
    logger.info("=" * 60)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the account ledger")
    parser.add_argument("--random-users", type=int, default=0, help="Extra users with random accounts")
    parser.add_argument("--accounts-per-user", type=int, default=2, help="Random accounts per extra user")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: SEED env)")
    parser.add_argument("--log-format", choices=["standard", "json"], default="standard")
    args = parser.parse_args()

    config = LedgerConfig.from_env()
    setup_logging(config.log_level, args.log_format)

    directory = InMemoryUserDirectory()
    try:
        engine = build_engine(config, directory)
        seed_demo_data(engine, directory)
        if args.random_users > 0:
            seed_random_accounts(
                engine,
                directory,
                args.random_users,
                args.accounts_per_user,
                args.seed if args.seed is not None else config.seed,
            )
    except LedgerError as exc:
        logger.error("Seeding failed: %s", exc)
        sys.exit(1)

    user_ids = list(DEMO_USERS) + list(
        range(max(DEMO_USERS) + 1, max(DEMO_USERS) + 1 + args.random_users)
    )
    print_summary(engine, user_ids)

    if engine.events is not None:
        engine.events.close()


if __name__ == "__main__":
    main()
