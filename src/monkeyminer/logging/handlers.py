"""Log handlers for MonkeyMiner."""

import os
import sys
import threading
from typing import Any, Dict, List

from .core import LogEntry, LogHandler


class ConsoleHandler(LogHandler):
    """Console log handler."""

    def __init__(self, stream: Any = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to console."""
        with self._lock:
            if self.stream is None:
                return
            self.stream.write(self.format(entry) + "\n")
            self.stream.flush()

    def close(self) -> None:
        """Detach from the stream; standard streams are left open."""
        with self._lock:
            self.stream = None


class FileHandler(LogHandler):
    """File log handler."""

    def __init__(self, filename: str, mode: str = "a", encoding: str = "utf-8"):
        super().__init__()
        self.filename = filename
        self.mode = mode
        self.encoding = encoding
        self.stream = None

    def _open(self) -> None:
        if self.stream is None:
            directory = os.path.dirname(self.filename)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.stream = open(self.filename, self.mode, encoding=self.encoding)

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to file."""
        with self._lock:
            self._open()
            self.stream.write(self.format(entry) + "\n")
            self.stream.flush()

    def close(self) -> None:
        """Close handler."""
        with self._lock:
            if self.stream is not None:
                self.stream.close()
                self.stream = None


class MemoryHandler(LogHandler):
    """Memory log handler."""

    def __init__(self, max_size: int = 1000):
        super().__init__()
        self.max_size = max_size
        self.buffer: List[Dict[str, Any]] = []

    def emit(self, entry: LogEntry) -> None:
        """Emit log entry to memory."""
        with self._lock:
            self.buffer.append(
                {
                    "timestamp": entry.timestamp,
                    "level": entry.level.value,
                    "message": entry.message,
                    "logger_name": entry.logger_name,
                    "extra": dict(entry.extra),
                    "formatted": self.format(entry),
                }
            )

            # Remove old entries if buffer is full
            if len(self.buffer) > self.max_size:
                self.buffer.pop(0)

    def get_logs(self) -> List[Dict[str, Any]]:
        """Get all logs from memory."""
        with self._lock:
            return self.buffer.copy()

    def clear_logs(self) -> None:
        """Clear all logs from memory."""
        with self._lock:
            self.buffer.clear()

    def close(self) -> None:
        """Close handler."""
        self.clear_logs()
