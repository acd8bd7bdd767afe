"""Configuration management for account-ledger."""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from account_ledger.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "postgres")


@dataclass
class KafkaConfig:
    """Kafka producer settings for ledger events.

    With ``acks="all"`` the producer is idempotent, so retries never
    duplicate or reorder what this producer already queued. Events are
    queued after the store commit, so two concurrent changes to one
    account may be queued out of commit order; consumers order by
    ``data["account"]["updated_at"]``.
    """

    bootstrap_servers: str = "localhost:9092"
    client_id: str = "account-ledger"
    acks: str = "all"
    linger_ms: int = 5
    compression: str = "snappy"
    delivery_timeout_ms: int = 120_000

    def to_dict(self) -> dict[str, Any]:
        """Producer config dict for ``confluent_kafka.Producer``."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "client.id": self.client_id,
            "acks": self.acks,
            "enable.idempotence": self.acks == "all",
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "delivery.timeout.ms": self.delivery_timeout_ms,
        }


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "ledger"
    user: str = "postgres"
    password: str = "postgres"
    connect_timeout: int = 10

    @property
    def connection_string(self) -> str:
        """libpq URI for ``psycopg.connect``."""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            f"?connect_timeout={self.connect_timeout}"
        )


@dataclass
class EventConfig:
    """Ledger event publishing configuration."""

    enabled: bool = False
    topic_prefix: str = "dev.ledger"

    @property
    def accounts_topic(self) -> str:
        return f"{self.topic_prefix}.accounts"


@dataclass
class QueryDefaults:
    """Default arguments for reporting queries."""

    low_balance_threshold: Decimal = Decimal("100.00")
    recent_days: int = 30
    inactive_days: int = 90


@dataclass
class LedgerConfig:
    """Main configuration for account-ledger."""

    store_backend: str = "memory"
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    events: EventConfig = field(default_factory=EventConfig)
    queries: QueryDefaults = field(default_factory=QueryDefaults)
    default_currency: str = "USD"
    seed: int | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend {self.store_backend!r}, expected one of {STORE_BACKENDS}"
            )

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        try:
            port = int(os.getenv("POSTGRES_PORT", "5432"))
            connect_timeout = int(os.getenv("POSTGRES_CONNECT_TIMEOUT", "10"))
            recent_days = int(os.getenv("RECENT_DAYS", "30"))
            inactive_days = int(os.getenv("INACTIVE_DAYS", "90"))
            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
            threshold = Decimal(os.getenv("LOW_BALANCE_THRESHOLD", "100.00"))
        except (ValueError, ArithmeticError) as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=port,
            database=os.getenv("POSTGRES_DB", "ledger"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            connect_timeout=connect_timeout,
        )

        events = EventConfig(
            enabled=os.getenv("EVENTS_ENABLED", "false").lower() == "true",
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.ledger"),
        )

        queries = QueryDefaults(
            low_balance_threshold=threshold,
            recent_days=recent_days,
            inactive_days=inactive_days,
        )

        return cls(
            store_backend=os.getenv("STORE_BACKEND", "memory"),
            postgres=postgres,
            kafka=kafka,
            events=events,
            queries=queries,
            default_currency=os.getenv("DEFAULT_CURRENCY", "USD"),
            seed=seed,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
