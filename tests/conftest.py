"""Shared pytest fixtures for lockscan tests."""

import logging

import pytest
import structlog

from lockscan.registry import create_default_registry


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo any setup_logging() a test (e.g. a CLI run) performed."""
    root = logging.getLogger()
    root_level = root.level
    yield
    structlog.reset_defaults()
    root.setLevel(root_level)
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)


@pytest.fixture
def registry():
    return create_default_registry()
