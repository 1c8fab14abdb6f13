"""Tests for logging setup."""

import json
import logging
import sys

import pytest

from microcks_devservice.config import LoggingConfig
from microcks_devservice.logging import (
    DevServiceJsonFormatter,
    DevServiceTextFormatter,
    setup_logging,
)
from microcks_devservice.logging_schema import LogEvent


def _record(msg: str, level: int = logging.WARNING, **extra) -> logging.LogRecord:
    record = logging.LogRecord("microcks_devservice.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestTextFormatter:
    def test_context_fields_appended(self) -> None:
        line = DevServiceTextFormatter().format(
            _record(
                "Microcks container started",
                event=LogEvent.CONTAINER_STARTED,
                container="c0ffee000000",
            )
        )

        assert line.endswith(
            "Microcks container started [event=container_started container=c0ffee000000]"
        )

    def test_plain_message(self) -> None:
        line = DevServiceTextFormatter().format(_record("hello"))

        assert line.endswith(" - WARNING - hello")

    def test_traceback_after_context(self) -> None:
        try:
            raise RuntimeError("upload rejected")
        except RuntimeError:
            record = _record("Failed to load", logging.ERROR, artifact="a-openapi.yaml")
            record.exc_info = sys.exc_info()

        first, _, rest = DevServiceTextFormatter().format(record).partition("\n")

        assert first.endswith("Failed to load [artifact=a-openapi.yaml]")
        assert "RuntimeError: upload rejected" in rest


class TestJsonFormatter:
    def test_standard_fields(self) -> None:
        formatter = DevServiceJsonFormatter(LoggingConfig(service_name="devsvc"))

        payload = json.loads(
            formatter.format(_record("ready", event=LogEvent.DEVSERVICE_READY))
        )

        assert payload["message"] == "ready"
        assert payload["level"] == "WARNING"
        assert payload["service"] == "devsvc"
        assert payload["event"] == "devservice_ready"

    def test_record_service_wins(self) -> None:
        formatter = DevServiceJsonFormatter(LoggingConfig(service_name="devsvc"))

        payload = json.loads(formatter.format(_record("starting", service="orders")))

        assert payload["service"] == "orders"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format(self) -> None:
        setup_logging(LoggingConfig(level="debug", format="json"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, DevServiceJsonFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_text_format_on_stderr(self) -> None:
        setup_logging(LoggingConfig(format="text"))

        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, DevServiceTextFormatter)
        assert handler.stream is sys.stderr
