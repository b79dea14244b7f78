"""Tests for logging configuration."""

import io
import logging

import pytest

from tracebar.foundation.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    monkeypatch.delenv("TRACEBAR_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TRACEBAR_DEBUG", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevelResolution:
    """Tests for picking the log level."""

    def test_default_is_warning(self) -> None:
        handler = configure_logging(stream=io.StringIO())

        assert handler.level == logging.WARNING

    def test_debug_flag(self) -> None:
        assert configure_logging(debug=True, stream=io.StringIO()).level == logging.DEBUG

    def test_explicit_level_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("TRACEBAR_LOG_LEVEL", "ERROR")

        assert configure_logging(level="info", stream=io.StringIO()).level == logging.INFO

    def test_env_level_beats_debug_env(self, monkeypatch) -> None:
        monkeypatch.setenv("TRACEBAR_LOG_LEVEL", "ERROR")
        monkeypatch.setenv("TRACEBAR_DEBUG", "true")

        assert configure_logging(stream=io.StringIO()).level == logging.ERROR

    def test_debug_env(self, monkeypatch) -> None:
        monkeypatch.setenv("TRACEBAR_DEBUG", "1")

        assert configure_logging(stream=io.StringIO()).level == logging.DEBUG

    def test_unknown_level_name_falls_back(self) -> None:
        assert configure_logging(level="chatty", stream=io.StringIO()).level == logging.WARNING


class TestHandler:
    """Tests for the installed handler."""

    def test_single_handler_installed(self) -> None:
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())

        assert len(logging.getLogger().handlers) == 1

    def test_records_written_to_stream(self) -> None:
        stream = io.StringIO()
        configure_logging(level=logging.INFO, stream=stream)

        logging.getLogger("tracebar.sample").info("hello %s", "there")

        assert stream.getvalue() == "INFO tracebar.sample: hello there\n"

    def test_noisy_loggers_stay_at_warning_in_debug(self) -> None:
        configure_logging(debug=True, stream=io.StringIO())

        assert logging.getLogger("asyncio").level == logging.WARNING
