"""JSON encoding of ledger events."""

import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from account_ledger.models import Event


def serialize_value(value: Any) -> Any:
    """Make a value JSON-safe.

    Money stays a string (``"10.10"``) so consumers never see a float
    approximation of a balance.
    """
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def to_dict(obj: Any) -> dict:
    """Flatten a dataclass (or dict) into JSON-safe primitives."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return serialize_value(obj)
    return {"value": str(obj)}


def encode_event(event: Event, pretty: bool = False) -> str:
    """Render an event envelope as a JSON document."""
    return json.dumps(to_dict(event), indent=2 if pretty else None, ensure_ascii=False)
