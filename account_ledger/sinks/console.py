"""Console sink for debugging and development."""

from account_ledger.models import Event
from account_ledger.sinks.serialization import encode_event


class ConsoleSink:
    """Print ledger events to stdout as JSON."""

    def __init__(self, pretty: bool = True) -> None:
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def send(self, event: Event) -> None:
        print(encode_event(event, pretty=self.pretty))
        self._counts[event.event_type] = self._counts.get(event.event_type, 0) + 1

    def flush(self, timeout: float = 0.0) -> int:
        return 0

    def close(self) -> None:
        """Print per-type event counts."""
        total = sum(self._counts.values())
        print(f"\n{total} ledger events")
        for event_type in sorted(self._counts):
            print(f"  {event_type}: {self._counts[event_type]}")
