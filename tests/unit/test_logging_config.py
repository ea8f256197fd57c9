"""Unit tests for structlog configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from composer_repo.config import LoggingSettings
from composer_repo.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_format_emits_one_object_per_event(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingSettings(level="INFO", format="json"))

    structlog.get_logger().info("package_added", package="psr/log")

    event = json.loads(capsys.readouterr().err.strip())
    assert event["event"] == "package_added"
    assert event["package"] == "psr/log"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_level_filters_lower_events(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(LoggingSettings(level="WARNING", format="json"))

    structlog.get_logger().info("cache_hit")

    assert capsys.readouterr().err == ""
