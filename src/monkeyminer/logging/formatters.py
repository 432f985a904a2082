"""Log formatters for MonkeyMiner.

JSON output for machine consumption and a compact text layout for the
terminal.
"""

import json
import time
import traceback
from typing import Any, Dict, Optional

from .core import LogEntry, LogFormatter


class JSONFormatter(LogFormatter):
    """JSON log formatter."""

    def __init__(
        self,
        include_context: bool = True,
        include_extra: bool = True,
        include_thread: bool = False,
        timestamp_format: str = "iso",
        indent: Optional[int] = None,
    ):
        self.include_context = include_context
        self.include_extra = include_extra
        self.include_thread = include_thread
        self.timestamp_format = timestamp_format
        self.indent = indent

    def format(self, entry: LogEntry) -> str:
        """Format log entry as JSON."""
        data: Dict[str, Any] = {
            "timestamp": self._format_timestamp(entry.timestamp),
            "level": entry.level.value,
            "logger": entry.logger_name,
        }

        if self.include_context:
            context = {k: v for k, v in entry.context.to_dict().items() if v}
            if context:
                data["context"] = context

        if entry.exception is not None:
            data["exception"] = {
                "type": type(entry.exception).__name__,
                "message": str(entry.exception),
                "traceback": "".join(
                    traceback.format_exception(
                        type(entry.exception),
                        entry.exception,
                        entry.exception.__traceback__,
                    )
                ),
            }

        if self.include_extra and entry.extra:
            data["extra"] = entry.extra

        if self.include_thread:
            data["thread_id"] = entry.thread_id
            data["process_id"] = entry.process_id

        data["message"] = entry.message

        return json.dumps(data, indent=self.indent, ensure_ascii=False, default=str)

    def _format_timestamp(self, timestamp: float) -> str:
        """Format timestamp."""
        if self.timestamp_format == "iso":
            return (
                time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(timestamp))
                + f".{int((timestamp % 1) * 1000000):06d}Z"
            )
        elif self.timestamp_format == "unix":
            return str(timestamp)
        else:
            return time.strftime(self.timestamp_format, time.gmtime(timestamp))


class TextFormatter(LogFormatter):
    """Text log formatter."""

    def __init__(
        self,
        format_string: str = None,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_extra: bool = True,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
    ):
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_extra = include_extra
        self.timestamp_format = timestamp_format
        self.format_string = format_string or self._get_default_format()

    def _get_default_format(self) -> str:
        """Get default format string."""
        parts = []

        if self.include_timestamp:
            parts.append("%(timestamp)s")

        if self.include_level:
            parts.append("[%(level)s]")

        if self.include_logger:
            parts.append("%(logger)s:")

        parts.append("%(message)s")

        return " ".join(parts)

    def format(self, entry: LogEntry) -> str:
        """Format log entry."""
        format_data = {
            "timestamp": time.strftime(
                self.timestamp_format, time.gmtime(entry.timestamp)
            ),
            "level": entry.level.value.upper(),
            "logger": entry.logger_name,
            "message": entry.message,
        }

        formatted = self.format_string % format_data
        if self.include_extra and entry.extra:
            pairs = " ".join(f"{key}={value}" for key, value in entry.extra.items())
            formatted = f"{formatted} | {pairs}"
        if entry.exception is not None:
            formatted = f"{formatted} ({type(entry.exception).__name__}: {entry.exception})"
        return formatted
