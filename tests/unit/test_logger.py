"""Unit tests for logging setup and bound context."""

import json
import logging

import pytest
import structlog

from packsync.observability.logger import (
    TRACE,
    VERBOSE,
    LogContext,
    _context_processor,
    add_context,
    clear_all_context,
    clear_context,
    configure_logging,
    get_context,
    get_log_level,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_all_context()
    yield
    clear_all_context()


class TestLoggingConfiguration:
    """Test logging configuration functions."""

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR"])
    def test_configure_logging_levels(self, level):
        configure_logging(level=level)
        assert logging.getLogger().level == getattr(logging, level)

    def test_custom_levels(self):
        configure_logging(level="verbose")
        assert logging.getLogger().level == VERBOSE
        assert logging.getLevelName(TRACE) == "TRACE"
        assert not hasattr(logging.Logger, "verbose")
        assert not hasattr(logging.Logger, "trace")

    @pytest.mark.parametrize(("level", "debug_kept"), [("verbose", False), ("trace", True)])
    def test_custom_levels_as_thresholds(self, tmp_path, level, debug_kept):
        log_file = tmp_path / "packsync.log"
        configure_logging(level=level, json_logs=True, log_file=log_file)

        log = structlog.get_logger("packsync.test.threshold")
        log.debug("Fetched", mod_id="cf-1-10")
        log.info("Sync finished")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text()
        assert "Sync finished" in text
        assert ("Fetched" in text) is debug_kept

    def test_unknown_level_falls_back_to_info(self):
        assert get_log_level("chatty") == logging.INFO

    def test_json_logs_to_file(self, tmp_path):
        """Events land in the log file as JSON lines with bound context."""
        log_file = tmp_path / "logs" / "packsync.log"
        configure_logging(level="INFO", json_logs=True, log_file=log_file)

        with LogContext(modpack_id="pack-1"):
            structlog.get_logger("packsync.test").info("Sync finished", fetched=3)
        for handler in logging.getLogger().handlers:
            handler.flush()

        [line] = [ln for ln in log_file.read_text().splitlines() if "Sync finished" in ln]
        event = json.loads(line)
        assert event["fetched"] == 3
        assert event["modpack_id"] == "pack-1"
        assert event["level"] == "info"

    def test_log_filter_raises_other_loggers(self):
        logging.getLogger("packsync.reconcile.applier")
        logging.getLogger("httpx")

        configure_logging(level="DEBUG", log_filter="reconcile")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("packsync.reconcile.applier").level == logging.NOTSET


class TestLogContext:
    """Test bound context fields."""

    def test_context_manager_scopes_fields(self):
        with LogContext(modpack_id="a"):
            with LogContext(session_id="s"):
                assert get_context() == {"modpack_id": "a", "session_id": "s"}
            assert get_context() == {"modpack_id": "a"}
        assert get_context() == {}

    def test_add_and_clear(self):
        add_context(modpack_id="a", token="t")
        clear_context("token")
        clear_context("not-bound")
        assert get_context() == {"modpack_id": "a"}

    def test_processor_does_not_override_event_fields(self):
        with LogContext(modpack_id="bound", session_id="s"):
            event = _context_processor(None, "info", {"event": "x", "modpack_id": "explicit"})
        assert event == {"event": "x", "modpack_id": "explicit", "session_id": "s"}
