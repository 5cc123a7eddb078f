"""Custom log renderers for structured logging."""

import json
from datetime import UTC, datetime
from typing import Any

from colorama import Back, Fore, Style, init

# Initialize colorama for cross-platform color support
init(autoreset=True)

_RESERVED_KEYS = ("timestamp", "level", "logger", "correlation_id", "event")


class JSONFormatter:
    """JSON renderer, one object per line with the timestamp first."""

    def __init__(self, ensure_ascii: bool = False):
        self.ensure_ascii = ensure_ascii

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> str:
        """Format log event as JSON."""
        timestamp = event_dict.pop("timestamp", None) or datetime.now(UTC).isoformat()
        event_dict.pop("level", None)

        record = {"timestamp": timestamp, "level": method_name.upper()}
        if "logger" not in event_dict and getattr(logger, "name", None):
            record["logger"] = logger.name
        record.update(event_dict)

        return json.dumps(record, ensure_ascii=self.ensure_ascii, default=str)


class ConsoleFormatter:
    """Human-readable renderer: ``[timestamp] LEVEL [logger] event key=value``."""

    def __init__(self, colors: bool = False, show_timestamp: bool = True):
        self.colors = colors
        self.show_timestamp = show_timestamp

        # Color mapping for log levels
        self.level_colors = {
            "debug": Fore.CYAN,
            "info": Fore.GREEN,
            "warning": Fore.YELLOW,
            "error": Fore.RED,
            "critical": Fore.RED + Back.WHITE + Style.BRIGHT,
        }

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{Style.RESET_ALL}" if self.colors else text

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> str:
        """Format log event for console output."""
        parts = []

        if self.show_timestamp:
            timestamp = event_dict.get("timestamp") or datetime.now(UTC).isoformat()
            if isinstance(timestamp, datetime):
                timestamp = timestamp.isoformat()
            parts.append(f"[{timestamp}]")

        level = method_name.upper()
        parts.append(self._paint(level, self.level_colors.get(method_name, "")))

        if "logger" in event_dict:
            parts.append(self._paint(f"[{event_dict['logger']}]", Fore.BLUE))

        if "correlation_id" in event_dict:
            parts.append(self._paint(f"[{event_dict['correlation_id']}]", Fore.MAGENTA))

        message = event_dict.get("event", "")
        if message:
            parts.append(str(message))

        additional_fields = []
        for key, value in event_dict.items():
            if key in _RESERVED_KEYS:
                continue
            if isinstance(value, dict | list):
                value = json.dumps(value, default=str)
            additional_fields.append(f"{key}={value}")

        if additional_fields:
            parts.append(self._paint(" ".join(additional_fields), Fore.WHITE))

        # Keep every record on a single line of the log file
        return " ".join(parts).replace("\n", "\\n")
