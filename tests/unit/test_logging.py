"""
Unit Tests - Logging Setup
"""
import json
import logging

import pytest
import structlog
from structlog.stdlib import ProcessorFormatter

from sales_analytics.config.logging import configure_logging
from sales_analytics.config.settings import MonitoringSettings, Settings


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    access_disabled = logging.getLogger("uvicorn.access").disabled
    yield root
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("uvicorn.access").disabled = access_disabled
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_single_structured_handler(self, root_logger):
        configure_logging("DEBUG")

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, ProcessorFormatter)

    def test_unknown_level_falls_back_to_info(self, root_logger):
        configure_logging("chatty")

        assert root_logger.level == logging.INFO

    def test_quiet_loggers(self, root_logger):
        configure_logging("DEBUG")

        assert logging.getLogger("uvicorn.access").disabled
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn").handlers == []

    def test_stdlib_records_rendered_as_json(self, root_logger, monkeypatch):
        settings = Settings(monitoring=MonitoringSettings(log_format="json"))
        monkeypatch.setattr("sales_analytics.config.logging.get_settings", lambda: settings)
        configure_logging("INFO")
        formatter = root_logger.handlers[0].formatter
        record = logging.LogRecord("uvicorn.error", logging.INFO, __file__, 1, "Barrio Pocitos", None, None)

        line = json.loads(formatter.format(record))

        assert line["event"] == "Barrio Pocitos"
        assert line["level"] == "info"
        assert line["service"] == "sales-dashboard-analytics"
