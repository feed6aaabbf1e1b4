"""Structured logging for lockscan — structlog rendered through stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LOG_FORMATS = ("console", "json")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Route structlog events through a single stderr handler.

    Arguments override the environment:
        LOCKSCAN_LOG_LEVEL  — level for the ``lockscan`` loggers (default: INFO)
        LOCKSCAN_LOG_FORMAT — console | json (default: console)

    stdout is left to command output, so ``lockscan scan --json`` stays
    parseable. Other libraries log at WARNING and above only.
    """
    log_level = (level or os.environ.get("LOCKSCAN_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.environ.get("LOCKSCAN_LOG_FORMAT", "console")).lower()
    if log_format not in LOG_FORMATS:
        raise ValueError(f"unknown log format {log_format!r}, expected one of {LOG_FORMATS}")

    processors = _shared_processors()
    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # module-level loggers must pick up later reconfiguration
        cache_logger_on_first_use=False,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "lockscan": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "lockscan",
                },
            },
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": {"lockscan": {"level": log_level}},
        }
    )
