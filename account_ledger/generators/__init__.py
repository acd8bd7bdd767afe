"""Synthetic and demo data for the account ledger."""

from account_ledger.generators.account import AccountGenerator
from account_ledger.generators.demo import DEMO_ACCOUNTS, DEMO_USERS, seed_demo_data

__all__ = ["AccountGenerator", "DEMO_ACCOUNTS", "DEMO_USERS", "seed_demo_data"]
