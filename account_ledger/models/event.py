"""Events emitted after committed ledger changes."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from account_ledger.models.account import Account

ACCOUNT_CREATED = "account.created"
ACCOUNT_UPDATED = "account.updated"
ACCOUNT_CREDITED = "account.credited"
ACCOUNT_DEBITED = "account.debited"
ACCOUNT_BALANCE_REPLACED = "account.balance_replaced"
ACCOUNT_DELETED = "account.deleted"


@dataclass
class Event:
    """Envelope for one committed account change.

    ``subject`` is the account id as a string, so consumers can key and
    partition by account. ``data["account"]`` holds the account state
    right after the change; the remaining ``data`` keys are
    operation-specific (``amount``, ``transfer_id``, ``counterparty_id``,
    ``previous_balance``).
    """

    event_id: str
    event_type: str
    event_time: datetime
    source: str
    subject: str
    data: dict
    metadata: dict = field(default_factory=dict)

    @classmethod
    def for_account(
        cls,
        event_type: str,
        account: Account,
        at: datetime,
        source: str,
        **details: Any,
    ) -> "Event":
        """Build an event carrying a snapshot of ``account``."""
        return cls(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            event_time=at,
            source=source,
            subject=str(account.account_id),
            data={"account": account.copy(), **details},
            metadata={"user_id": account.user_id},
        )
