"""Logging configuration for the dev service CLI.

Supports two formats:
- text: Human-readable for local development
- json: Structured logging for CI log collection

Lifecycle code logs with `extra={"event": LogEvent.X, ...}`. JSON output
carries those fields as keys, text output appends them after the message.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import json as jsonlogger

from microcks_devservice.config import LoggingConfig

# Extra fields rendered by the text formatter, in display order.
CONTEXT_FIELDS = ("event", "service", "container", "artifact", "kind", "endpoint")


class DevServiceTextFormatter(logging.Formatter):
    """Text formatter appending dev service context fields.

    Example:
        ... - INFO - Microcks container started [event=container_started container=c0ffee000000]
    """

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if not context:
            return line
        # Keep tracebacks after the context
        message, sep, rest = line.partition("\n")
        return f"{message} [{context}]{sep}{rest}"


class DevServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter with standard fields.

    Adds:
    - timestamp: ISO 8601 format with timezone
    - level: Log level name
    - logger: Logger name
    - service: Service identifier (the dev service name stays under "service"
      when a record sets it)
    """

    def __init__(self, config: LoggingConfig, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._service = config.service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record.setdefault("service", self._service)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging for the CLI process.

    Library users keep their own logging setup; this is only called by the
    `microcks-devservice` command. Output goes to stderr, stdout is reserved
    for the exported configuration.

    Args:
        config: Logging configuration settings.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    if config.format == "json":
        formatter: logging.Formatter = DevServiceJsonFormatter(config)
    else:
        formatter = DevServiceTextFormatter()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Suppress verbose HTTP client logs (readiness polling)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
