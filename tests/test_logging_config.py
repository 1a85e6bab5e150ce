"""Tests for logging setup and secret scrubbing."""

import logging
from unittest.mock import MagicMock

from cmdwire.logging_config import SUBSYSTEMS, redact, sanitize_secrets, setup_logging

_FAKE_TOKEN = "MTA5ODc2NTQzMjEwOTg3NjU0.GaBcDe.abcdefghijklmnopqrstuvwxyz0123"


def _config(log_dir, level="debug", subsystem_levels=None):
    """Config stand-in exposing only the logging properties."""
    config = MagicMock()
    config.log_dir = log_dir
    config.logging_level = level
    config.logging_subsystem_levels = subsystem_levels or {}
    config.logging_max_file_size_mb = 1
    config.logging_backup_count = 1
    return config


def test_sanitize_scrubs_bot_token():
    """Bare bot tokens inside messages are redacted; other values pass through."""
    event = {"event": f"login with {_FAKE_TOKEN}", "n": 3}
    result = sanitize_secrets(None, "info", event)
    assert _FAKE_TOKEN not in result["event"]
    assert "***REDACTED***" in result["event"]
    assert result["n"] == 3


def test_sanitize_scrubs_authorization_header():
    """A whole Bot authorization value is replaced, not just the token part."""
    event = {"headers": {"Authorization": "Bot abcdefghijklmnopqrstuvwxyz"}}
    result = sanitize_secrets(None, "info", event)
    assert result["headers"]["Authorization"] == "***REDACTED***"


def test_sanitize_scrubs_lists():
    """Strings inside lists are scrubbed too."""
    event = {"args": ["ok", f"Bearer {'x' * 30}"]}
    result = sanitize_secrets(None, "info", event)
    assert result["args"] == ["ok", "***REDACTED***"]


def test_bot_header_with_real_token_fully_redacted():
    """'Bot <token>' collapses to a single placeholder."""
    assert redact(f"Bot {_FAKE_TOKEN}") == "***REDACTED***"


def test_setup_logging_creates_subsystem_files(tmp_path, restore_logging):
    """Each subsystem gets its own file and level override."""
    setup_logging(_config(tmp_path / "logs", subsystem_levels={"dispatch": "WARNING"}))

    assert (tmp_path / "logs" / "cmdwire.log").exists()
    for subsystem in SUBSYSTEMS:
        assert (tmp_path / "logs" / f"{subsystem}.log").exists()
    assert logging.getLogger("cmdwire.dispatch").level == logging.WARNING
    assert logging.getLogger("cmdwire.registry").level == logging.DEBUG


def test_setup_logging_twice_does_not_stack_handlers(tmp_path, restore_logging):
    """Calling setup_logging again replaces the previous handlers."""
    setup_logging(_config(tmp_path))
    setup_logging(_config(tmp_path))
    assert len(logging.getLogger("cmdwire").handlers) == 1
    assert len(logging.getLogger("cmdwire.errors").handlers) == 1


def test_unusable_log_dir_falls_back_to_console(tmp_path, restore_logging):
    """A log_dir that can't be created leaves only the console handler."""
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    setup_logging(_config(blocker))
    assert logging.getLogger("cmdwire").handlers == []
    assert len(logging.getLogger().handlers) == 1
