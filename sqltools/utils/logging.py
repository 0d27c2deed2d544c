"""Logging helpers for the ``sqltools`` logger namespace.

Every package logger is a child of ``sqltools``. Records can be tagged with a
per-context correlation ID and rendered as one JSON object per line.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import msgspec

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqltools"
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Bind ``correlation_id`` to the current context; ``None`` clears it."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


class StructuredFormatter(logging.Formatter):
    """Render records as single-line JSON.

    Fields passed as ``extra={"extra_fields": {...}}`` are merged into the
    top-level object. Values msgspec cannot encode are written with ``repr``.
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
        if correlation_id := get_correlation_id():
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return msgspec.json.encode(entry, enc_hook=repr).decode("utf-8")


class CorrelationIDFilter(logging.Filter):
    """Copy the active correlation ID onto each record. Never drops records."""

    def filter(self, record: LogRecord) -> bool:
        if correlation_id := get_correlation_id():
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the ``sqltools`` namespace.

    Args:
        name: Dotted suffix such as ``"driver"``. Names already under
            ``sqltools`` are used as given. ``None`` returns the namespace root.

    Returns:
        The logger, with a single :class:`CorrelationIDFilter` attached.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Install handlers on the ``sqltools`` logger.

    Existing handlers are replaced and records stop propagating to the root
    logger.

    Args:
        level: Level name, case-insensitive.
        format_style: ``"structured"`` for JSON lines, anything else for
            :data:`SIMPLE_FORMAT`.
        log_to_file: Path of an additional JSON log file.
        extra_handlers: Handlers added as they are.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if format_style == "structured" else logging.Formatter(SIMPLE_FORMAT))
    package_logger.addHandler(console)

    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        package_logger.addHandler(file_handler)

    for handler in extra_handlers or ():
        package_logger.addHandler(handler)

    package_logger.propagate = False
    log_with_context(
        package_logger,
        logging.INFO,
        "sqltools logging configured",
        level=level,
        format_style=format_style,
        handlers_count=len(package_logger.handlers),
    )


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Emit ``message`` with ``extra_fields`` attached for structured output.

    The record points at the code that called this function.
    """
    if not logger.isEnabledFor(level):
        return
    pathname, lineno, func, _ = logger.findCaller(stacklevel=2)
    record = logger.makeRecord(logger.name, level, pathname, lineno, message, (), None, func)
    record.extra_fields = extra_fields  # type: ignore[attr-defined]
    logger.handle(record)
