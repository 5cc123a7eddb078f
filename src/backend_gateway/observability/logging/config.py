"""Logging configuration and setup."""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

from .correlation import CorrelationIDProcessor
from .formatters import ConsoleFormatter, JSONFormatter


class LogFormat(str, Enum):
    """Logging formats."""

    JSON = "json"
    CONSOLE = "console"


def setup_logging(
    level: str = "INFO",
    format_type: LogFormat = LogFormat.CONSOLE,
    log_file: str | None = None,
    enable_correlation: bool = True,
    enable_colors: bool = False,
) -> None:
    """Setup structured logging.

    Records go to stdout and, when ``log_file`` is given, are also appended to
    that file. The file's directory is created if needed.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    # Configure standard library logging
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(message)s",
        handlers=handlers,
        force=True,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if enable_correlation:
        processors.append(CorrelationIDProcessor())

    processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if format_type == LogFormat.JSON:
        processors.append(JSONFormatter())
    else:
        processors.append(ConsoleFormatter(colors=enable_colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def configure_from_settings(settings: Any) -> None:
    """Setup logging from ``ObservabilitySettings``."""
    setup_logging(
        level=settings.log_level.value,
        format_type=LogFormat(settings.log_format),
        log_file=settings.log_file,
        enable_colors=settings.enable_colors,
    )
