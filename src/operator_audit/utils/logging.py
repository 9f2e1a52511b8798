"""Logging for operator-audit.

Every module logs under the `operator_audit` logger. Per-bundle lines carry
the bundle name as a trailing `key=value` field so a long audit run can be
grepped by bundle.
"""

import logging
import sys
from typing import Any

ROOT_LOGGER = "operator_audit"

PLAIN_FORMAT = "%(levelname)s: %(message)s"
STRUCTURED_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class StructuredFormatter(logging.Formatter):
    """Formatter appending the record's context fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = getattr(record, "extra_fields", None)
        if not fields:
            return message
        return message + " " + " ".join(f"{key}={value}" for key, value in fields.items())


def configure_logging(
    level: str = "INFO",
    format_string: str | None = None,
    structured: bool = False,
) -> None:
    """Route operator-audit logs to stderr.

    Calling it again replaces the previous handler, so the CLI callback can
    run once per invocation.

    Args:
        level: Log level name, case-insensitive
        format_string: Custom format string
        structured: Prefix lines with time and logger name
    """
    if format_string is None:
        format_string = STRUCTURED_FORMAT if structured else PLAIN_FORMAT

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter(format_string))

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level.upper())
    root.handlers = [handler]
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, nested under `operator_audit`."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter attaching fixed context fields to every record.

    Fields passed per call through `extra={"extra_fields": {...}}` are
    merged over the adapter's own.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["extra_fields"] = {**self.extra, **extra.get("extra_fields", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger_with_context(name: str, **context: Any) -> LoggerAdapter:
    """Logger whose lines all carry `context`, e.g. `bundle=<name>`."""
    return LoggerAdapter(get_logger(name), context)
