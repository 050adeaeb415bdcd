"""Logging helpers for ocidb.

Library loggers hang off the ``ocidb`` namespace and never install handlers
on their own. Applications that want JSON output call :func:`configure_logging`
or attach :class:`StructuredFormatter` to a handler of their choosing.

Connect strings and passwords passed through :func:`log_with_context` are
masked before they reach a record.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from ocidb._serialization import encode_json
from ocidb.exceptions import DatabaseError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from logging import LogRecord

__all__ = (
    "POOL_LOGGER_NAME",
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_context",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "redact_dsn",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "ocidb"
POOL_LOGGER_NAME = "ocidb.pool"

SIMPLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
REDACTED = "***"
SENSITIVE_FIELDS = frozenset({"password", "passwd", "new_password"})
DSN_FIELDS = frozenset({"dsn", "connect_string"})

correlation_id_var: ContextVar[str | None] = ContextVar("ocidb_correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag every record emitted from the current context with ``correlation_id``.

    Pass ``None`` to stop tagging.
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str) -> Iterator[str]:
    """Tag records with ``correlation_id`` for the duration of the block."""
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)


def redact_dsn(dsn: str) -> str:
    """Mask the password of a ``user/password@dsn`` connect string.

    Strings without credentials come back unchanged.

    Examples:
        >>> redact_dsn("scott/tiger@orcl")
        'scott/***@orcl'
        >>> redact_dsn("orcl")
        'orcl'
    """
    credentials, at, address = dsn.rpartition("@")
    if not at:
        credentials, address = dsn, ""
    user, slash, _ = credentials.partition("/")
    if not slash:
        return dsn
    masked = f"{user}/{REDACTED}"
    return f"{masked}@{address}" if at else masked


def _scrub(fields: dict[str, Any]) -> dict[str, Any]:
    scrubbed: dict[str, Any] = {}
    for key, value in fields.items():
        if key in SENSITIVE_FIELDS and value:
            scrubbed[key] = REDACTED
        elif key in DSN_FIELDS and isinstance(value, str):
            scrubbed[key] = redact_dsn(value)
        else:
            scrubbed[key] = value
    return scrubbed


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Fields attached as ``extra_fields`` are merged into the object. When the
    record carries a :class:`~ocidb.exceptions.DatabaseError`, its ORA code
    and call site are added as ``ora_code`` and ``site``.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            error = record.exc_info[1]
            if isinstance(error, DatabaseError):
                entry["ora_code"] = error.code
                if error.site:
                    entry["site"] = error.site
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the context's correlation ID onto each record that passes."""

    def filter(self, record: LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``ocidb`` logger, or a child of it.

    Names outside the namespace are prefixed, so ``get_logger("cursor")`` and
    ``get_logger("ocidb.cursor")`` return the same logger.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def _make_formatter(format_style: str) -> logging.Formatter:
    if format_style == "structured":
        return StructuredFormatter()
    if format_style == "simple":
        return logging.Formatter(SIMPLE_FORMAT)
    msg = f"Unknown log format style {format_style!r}, expected 'structured' or 'simple'"
    raise ValueError(msg)


def configure_logging(
    level: int | str = logging.INFO,
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> logging.Logger:
    """Route ``ocidb`` records to stdout and, optionally, a file.

    Replaces any handlers previously installed on the ``ocidb`` logger and
    stops propagation to the root logger. Files always receive JSON.

    Args:
        level: Level name or number for the ``ocidb`` logger.
        format_style: ``"structured"`` for JSON lines, ``"simple"`` for plain text.
        log_to_file: Path of a file to append records to.
        extra_handlers: Handlers attached as given, formatter untouched.

    Returns:
        The configured ``ocidb`` logger.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(_make_formatter(format_style))
    if log_to_file:
        file_handler = logging.FileHandler(log_to_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)
    handlers.extend(extra_handlers or ())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    for handler in handlers:
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Emit ``message`` with ``extra_fields`` attached for the structured formatter.

    Password fields are masked and connect strings lose their password.
    Nothing is built when ``level`` is disabled for ``logger``.
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={"extra_fields": _scrub(extra_fields)}, stacklevel=2)
