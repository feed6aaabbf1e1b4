"""Tests for setup_logging."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from lockscan.core.logging import setup_logging


def _handler():
    return next(
        h
        for h in logging.getLogger().handlers
        if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
    )


class TestSetupLogging:
    def test_default_level_is_info(self, monkeypatch):
        monkeypatch.delenv("LOCKSCAN_LOG_LEVEL", raising=False)
        setup_logging()
        assert logging.getLogger("lockscan").level == logging.INFO

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOCKSCAN_LOG_LEVEL", "warning")
        setup_logging()
        assert logging.getLogger("lockscan").level == logging.WARNING

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOCKSCAN_LOG_LEVEL", "WARNING")
        setup_logging(level="DEBUG")
        assert logging.getLogger("lockscan").level == logging.DEBUG

    def test_json_format(self, capsys):
        setup_logging(level="INFO", fmt="json")
        structlog.get_logger("lockscan.test").info("hello", answer=42)
        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "hello"
        assert record["answer"] == 42
        assert record["level"] == "info"
        assert record["logger"] == "lockscan.test"

    def test_logs_go_to_stderr(self, capsys):
        setup_logging(level="INFO", fmt="console")
        structlog.get_logger("lockscan.test").info("to-stderr")
        captured = capsys.readouterr()
        assert "to-stderr" in captured.err
        assert "to-stderr" not in captured.out
        assert _handler() is not None

    def test_third_party_loggers_stay_quiet(self, capsys):
        setup_logging(level="DEBUG")
        logging.getLogger("some.library").info("noise")
        assert "noise" not in capsys.readouterr().err
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError, match="unknown log format"):
            setup_logging(fmt="xml")
