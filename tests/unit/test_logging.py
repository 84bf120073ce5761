"""Unit tests for logging configuration."""

from __future__ import annotations

import logging

import pytest

from ardhiflow.config.logging import _service_fields, setup_logging


@pytest.mark.unit
class TestSetupLogging:
    def test_service_fields_added(self) -> None:
        add = _service_fields("production")
        event = add(None, "info", {"event": "app_created"})
        assert event["service"] == "ardhiflow"
        assert event["environment"] == "production"

    def test_explicit_fields_win(self) -> None:
        event = _service_fields("production")(None, "info", {"event": "x", "environment": "staging"})
        assert event["environment"] == "staging"

    def test_http_client_loggers_quieted(self) -> None:
        setup_logging(log_level="DEBUG", environment="development")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
