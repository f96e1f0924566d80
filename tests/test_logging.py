"""
Tests for structured logging setup.
"""
import json
import logging
import sys

import pytest

from core.config import settings
from core.logging import ANALYTICS_LOGGER, SERVICE_NAME, JSONFormatter, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger(ANALYTICS_LOGGER).setLevel(logging.NOTSET)


class TestJSONFormatter:

    def test_record_carries_service_and_extra_fields(self):
        record = logging.LogRecord(
            "services.engagement", logging.INFO, __file__, 10, "compare opened %s times", (6,), None
        )
        record.extra_fields = {"path": "/v1/compare/opens"}

        data = json.loads(JSONFormatter(environment="test").format(record))

        assert data["service"] == SERVICE_NAME
        assert data["environment"] == "test"
        assert data["logger"] == "services.engagement"
        assert data["level"] == "INFO"
        assert data["message"] == "compare opened 6 times"
        assert data["path"] == "/v1/compare/opens"

    def test_exception_is_formatted(self):
        try:
            raise ValueError("bad weight")
        except ValueError:
            record = logging.LogRecord("main", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
        data = json.loads(JSONFormatter(environment="test").format(record))
        assert "ValueError: bad weight" in data["exception"]


class TestSetupLogging:

    def test_analytics_level_override(self, monkeypatch, restore_logging):
        monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")
        monkeypatch.setattr(settings, "SERVICES_LOG_LEVEL", "DEBUG")

        root = setup_logging()

        assert root.level == logging.WARNING
        assert logging.getLogger("services.progress_support").getEffectiveLevel() == logging.DEBUG
        assert logging.getLogger("routers.progress").getEffectiveLevel() == logging.WARNING

    def test_analytics_level_follows_root_by_default(self, monkeypatch, restore_logging):
        monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
        monkeypatch.setattr(settings, "SERVICES_LOG_LEVEL", None)

        setup_logging()

        assert logging.getLogger(ANALYTICS_LOGGER).level == logging.INFO
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
