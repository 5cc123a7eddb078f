"""Structured logging configuration and utilities."""

from .config import LogFormat, configure_from_settings, get_logger, setup_logging
from .correlation import (
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from .formatters import ConsoleFormatter, JSONFormatter
from .log_file import read_recent_log_lines

__all__ = [
    "setup_logging",
    "configure_from_settings",
    "LogFormat",
    "get_logger",
    "JSONFormatter",
    "ConsoleFormatter",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "reset_correlation_id",
    "read_recent_log_lines",
]
