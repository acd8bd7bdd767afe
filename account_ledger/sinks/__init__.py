"""Output sinks for ledger events."""

from typing import Protocol

from account_ledger.models import Event
from account_ledger.sinks.console import ConsoleSink
from account_ledger.sinks.kafka import KafkaSink


class EventSink(Protocol):
    """Anything that accepts ledger events."""

    def send(self, event: Event) -> None: ...

    def flush(self, timeout: float = ...) -> int: ...

    def close(self) -> None: ...


__all__ = ["ConsoleSink", "EventSink", "KafkaSink"]
