"""Logging setup for the delivery client."""

from .logging import StructuredFormatter, configure_logging

__all__ = ["StructuredFormatter", "configure_logging"]
