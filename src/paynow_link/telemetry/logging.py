"""Structured log formatting and sink configuration."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

# Attributes present on every LogRecord; anything else arrived through ``extra=``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> dict[str, object]:
    return {key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """Renders ``event_name key=value ...`` from the message and its ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = record_context(record)
        if not context:
            return message
        pairs = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{message} {pairs}"


def configure_logging(level: str = "INFO") -> None:
    """Send ``paynow_link`` logs to a rich console handler."""
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(StructuredFormatter("%(name)s %(message)s"))

    logger = logging.getLogger("paynow_link")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
