"""Kafka sink for publishing ledger events."""

import logging
from dataclasses import dataclass
from typing import Any

from confluent_kafka import KafkaException, Producer

from account_ledger.config import KafkaConfig
from account_ledger.exceptions import SinkError
from account_ledger.models import Event
from account_ledger.sinks.serialization import encode_event

logger = logging.getLogger(__name__)


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0


class KafkaSink:
    """Publish ledger events to a Kafka topic, keyed by account id.

    Delivery failures are logged and counted in ``stats``; they never
    undo the ledger mutation that produced the event.
    """

    def __init__(self, config: KafkaConfig | str, topic: str) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        topic : str
            Topic that receives every event.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.topic = topic
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats()

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def send(self, event: Event) -> None:
        """Queue a single event for delivery."""
        value = encode_event(event).encode("utf-8")
        try:
            self.producer.produce(
                topic=self.topic,
                key=event.subject.encode("utf-8"),
                value=value,
                headers={"event_type": event.event_type},
                callback=self._delivery_callback,
            )
        except (BufferError, KafkaException) as exc:
            self.stats.failed += 1
            logger.error(
                "Could not queue %s for %s: %s", event.event_type, event.subject, exc,
                extra={"account_id": event.subject, "event_type": event.event_type},
            )
            return
        self.stats.sent += 1
        self.producer.poll(0)

    def flush(self, timeout: float = 30.0) -> int:
        """Flush pending messages; returns the number still queued."""
        return self.producer.flush(timeout)

    def close(self) -> None:
        """Flush and close the producer.

        Raises
        ------
        SinkError
            If events are still undelivered after the flush timeout.
        """
        remaining = self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
        if remaining:
            raise SinkError(f"{remaining} ledger events not delivered to {self.topic}")
