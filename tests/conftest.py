"""Shared pytest fixtures."""

import logging

import pytest
import structlog

from cmdwire.logging_config import LOGGER_PREFIX, SUBSYSTEMS


@pytest.fixture
def restore_logging():
    """Undo setup_logging(): close cmdwire file handlers and reset structlog."""
    yield
    names = ["", LOGGER_PREFIX] + [f"{LOGGER_PREFIX}.{s}" for s in SUBSYSTEMS]
    for name in names:
        stdlib_logger = logging.getLogger(name)
        if name:
            for handler in stdlib_logger.handlers:
                handler.close()
        stdlib_logger.handlers.clear()
    structlog.reset_defaults()
