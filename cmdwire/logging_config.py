"""Logging setup for cmdwire.

Every cmdwire logger is a structlog wrapper around a stdlib logger named
``cmdwire.<subsystem>``. setup_logging() sends them to the console, to a
combined ``cmdwire.log`` and to one rotating file per subsystem, and
installs a processor that redacts bot tokens from every event.

CommandClient calls setup_logging() when it is built from a Config.
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

LOGGER_PREFIX = "cmdwire"

# One log file each, next to the combined cmdwire.log
SUBSYSTEMS = ("dispatch", "registry", "modules", "errors", "config")

_REDACTED = "***REDACTED***"

# Checked in order: a full "Bot <token>" header first, then bare tokens
_SECRET_PATTERNS = (
    re.compile(r"(?:Bot|Bearer)\s+[A-Za-z0-9_./-]{20,}"),
    re.compile(r"[A-Za-z0-9_-]{23,28}\.[A-Za-z0-9_-]{6,7}\.[A-Za-z0-9_-]{27,}"),
)


def redact(text: str) -> str:
    """Replace bot tokens and authorization values in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(_REDACTED, text)
    return text


def _redact_any(value: Any) -> Any:
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, (list, tuple)):
        return type(value)(redact(v) if isinstance(v, str) else v for v in value)
    if isinstance(value, dict):
        return {k: redact(v) if isinstance(v, str) else v for k, v in value.items()}
    return value


def sanitize_secrets(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor: redact secrets in strings, one level into containers."""
    return {key: _redact_any(value) for key, value in event_dict.items()}


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _prepare_log_dir(log_dir: Path) -> Optional[Path]:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(
            f"WARNING: Cannot create log directory {log_dir}: {exc}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
        return None
    return log_dir


def _reset(name: str, level: int, *, close: bool = True) -> logging.Logger:
    stdlib_logger = logging.getLogger(name)
    if close:
        for handler in stdlib_logger.handlers:
            handler.close()
    stdlib_logger.handlers.clear()
    stdlib_logger.setLevel(level)
    stdlib_logger.propagate = True
    return stdlib_logger


def setup_logging(config) -> None:
    """Configure stdlib handlers and structlog from a Config.

    Reads ``log_dir``, ``logging_level``, ``logging_subsystem_levels``,
    ``logging_max_file_size_mb`` and ``logging_backup_count``. If the log
    directory can't be created only the console handler is installed.
    Safe to call more than once; earlier cmdwire handlers are replaced.
    """
    level = _level(config.logging_level, logging.INFO)
    log_dir = _prepare_log_dir(Path(config.log_dir))
    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    def rotating(filename: str, file_level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            log_dir / filename,
            maxBytes=int(config.logging_max_file_size_mb) * 1024 * 1024,
            backupCount=int(config.logging_backup_count),
            encoding="utf-8",
        )
        handler.setLevel(file_level)
        handler.setFormatter(file_formatter)
        return handler

    # Root handlers may belong to the host; drop them without closing
    root = _reset("", logging.DEBUG, close=False)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root.addHandler(console)

    combined = _reset(LOGGER_PREFIX, logging.DEBUG)
    if log_dir is not None:
        combined.addHandler(rotating(f"{LOGGER_PREFIX}.log", level))

    overrides = config.logging_subsystem_levels or {}
    for subsystem in SUBSYSTEMS:
        sub_level = _level(overrides.get(subsystem), level)
        sub_logger = _reset(f"{LOGGER_PREFIX}.{subsystem}", sub_level)
        if log_dir is not None:
            sub_logger.addHandler(rotating(f"{subsystem}.log", sub_level))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            sanitize_secrets,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
