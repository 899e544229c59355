"""Tests for structured logging configuration."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from danmaku.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    yield
    clear_context()
    configure_logging(log_format="console", log_level="INFO", force=True)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_respects_log_level(self) -> None:
        """Root logger level follows the requested level."""
        configure_logging(log_format="console", log_level="WARNING", force=True)
        assert logging.getLogger().level == logging.WARNING

    def test_level_is_case_insensitive(self) -> None:
        configure_logging(log_format="console", log_level="debug", force=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_single_handler_after_reconfigure(self) -> None:
        configure_logging(force=True)
        configure_logging(force=True)
        assert len(logging.getLogger().handlers) == 1

    def test_does_not_reconfigure_without_force(self) -> None:
        configure_logging(log_format="console", log_level="ERROR", force=True)
        configure_logging(log_format="console", log_level="DEBUG")
        assert logging.getLogger().level == logging.ERROR

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """DANMAKU_LOG_LEVEL is used when no level is passed."""
        monkeypatch.setenv("DANMAKU_LOG_LEVEL", "ERROR")
        configure_logging(force=True)
        assert logging.getLogger().level == logging.ERROR

    def test_json_output_goes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON lines carry the event name, bound fields and service name."""
        configure_logging(
            log_format="json", log_level="INFO", service_name="test-service", force=True
        )
        get_logger("danmaku.test.json").info("danmaku.test.event", room_id="42")

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip().splitlines()[-1])
        assert record["event"] == "danmaku.test.event"
        assert record["room_id"] == "42"
        assert record["service"] == "test-service"
        assert record["level"] == "info"

    def test_level_filters_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_format="json", log_level="WARNING", force=True)
        get_logger("danmaku.test.filter").info("danmaku.test.hidden")
        assert "danmaku.test.hidden" not in capsys.readouterr().err


class TestContext:
    """Tests for bind_context and clear_context."""

    def test_bound_context_is_included(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_format="json", log_level="INFO", force=True)
        bind_context(room_id="777")
        get_logger("danmaku.test.ctx").info("danmaku.test.bound")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["room_id"] == "777"

    def test_clear_context(self) -> None:
        bind_context(room_id="777")
        clear_context()
        assert "room_id" not in structlog.contextvars.get_contextvars()
