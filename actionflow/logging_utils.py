from __future__ import annotations

import logging
import sys
from typing import Any

from loguru import logger

_LEVEL_MAP: dict[str, int] = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "SUCCESS": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _normalize_level(value: str | None, fallback: str = "INFO") -> str:
    candidate = (value or "").strip().upper()
    if candidate in _LEVEL_MAP:
        return candidate
    return fallback


class InterceptHandler(logging.Handler):
    """Route stdlib logging records into Loguru with original call-site metadata."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.bind(py_name=record.name).opt(exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: str | None = None) -> str:
    """
    Configure Loguru on stderr and route uvicorn/fastapi/sqlalchemy stdlib loggers into it.
    Falls back to settings.log_level when no level is given.
    """
    if level is None:
        from actionflow.settings import get_settings

        level = get_settings().log_level
    global_level = _normalize_level(level)

    logger.remove()
    logger.add(
        sys.stderr,
        level=global_level,
        backtrace=False,
        diagnose=False,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}:{line}</cyan> | "
            "<level>{message}</level>"
        ),
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [InterceptHandler()]
    root_logger.setLevel(_LEVEL_MAP[global_level])

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy.engine"):
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [InterceptHandler()]
        stdlib_logger.propagate = False
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return global_level


def _serialize_field(value: Any) -> str:
    if isinstance(value, str):
        compact = value.replace("\n", "\\n")
        if (not compact) or any(ch in compact for ch in (" ", "|", "'")):
            escaped = compact.replace("'", "\\'")
            return f"'{escaped}'"
        return compact
    if value is None:
        return "None"
    return str(value)


def log_event(event: str, /, **fields: Any) -> str:
    """Build a consistent `evt=... | key=value` log message."""
    parts = [f"evt={event}"]
    for key, value in fields.items():
        parts.append(f"{key}={_serialize_field(value)}")
    return " | ".join(parts)


def log_exception(exc: BaseException, enabled: bool | None = None, **tags: Any) -> None:
    """Log an exception with traceback; enabled defaults to settings.log_errors."""
    if enabled is None:
        from actionflow.settings import get_settings

        enabled = get_settings().log_errors
    if not enabled:
        return
    message = log_event("EXCEPTION", error=type(exc).__name__, message=str(exc), **tags)
    logger.opt(exception=exc).error(message)
