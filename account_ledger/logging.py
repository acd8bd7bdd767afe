"""Logging setup for account-ledger.

Modules log through ``logging.getLogger(__name__)``. Calls about a
specific account pass its ids through ``extra``::

    logger.info("Credited %s", amount, extra={"account_id": 7, "user_id": 1})

The standard format ignores those fields; ``JsonFormatter`` lifts them
into top-level keys so log pipelines can filter by account or transfer.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from account_ledger.exceptions import ConfigurationError

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FORMAT_TYPES = ("standard", "json")

# Record attributes copied into JSON output when set via ``extra``
CONTEXT_FIELDS = ("account_id", "user_id", "transfer_id", "event_type")

NOISY_LOGGERS = ("confluent_kafka", "psycopg", "faker")


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Send all log output to one stream handler on the root logger.

    Parameters
    ----------
    level : str
        Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL). Unknown names
        fall back to INFO.
    format_type : str
        "standard" for pipe-separated text, "json" for one JSON object
        per line.
    stream : TextIO | None
        Destination; stdout by default.

    Returns
    -------
    logging.Handler
        The installed handler. Previously installed root handlers are
        removed.

    Raises
    ------
    ConfigurationError
        If ``format_type`` is not recognised.
    """
    if format_type not in FORMAT_TYPES:
        raise ConfigurationError(f"Unknown log format {format_type!r}, expected one of {FORMAT_TYPES}")

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("account_ledger").setLevel(log_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return handler


class JsonFormatter(logging.Formatter):
    """JSON formatter that surfaces ledger context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)
