"""Logging setup."""

from cex.monitoring.logger import setup_logging

__all__ = ["setup_logging"]
