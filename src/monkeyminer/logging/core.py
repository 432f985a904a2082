"""Core logging interfaces and data structures for MonkeyMiner.

This module defines the fundamental logging interfaces, data structures,
and configuration options for the MonkeyMiner logging system.
"""

import json
import os
import sys
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LogLevel(Enum):
    """Log levels."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve a level from its (case-insensitive) name."""
        normalized = name.strip().lower()
        if normalized == "warn":
            normalized = "warning"
        for level in cls:
            if level.value == normalized:
                return level
        raise ValueError(f"Unknown log level: {name}")

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]


_LEVEL_RANKS = {level: index for index, level in enumerate(LogLevel)}


@dataclass
class LogContext:
    """Log context information."""

    component: Optional[str] = None
    operation: Optional[str] = None
    session_id: Optional[str] = None
    instance: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "component": self.component,
            "operation": self.operation,
            "session_id": self.session_id,
            "instance": self.instance,
            "metadata": self.metadata,
        }

    def merged_with(self, other: Optional["LogContext"]) -> "LogContext":
        """Overlay ``other`` on top of this context."""
        if other is None:
            return self
        return LogContext(
            component=other.component or self.component,
            operation=other.operation or self.operation,
            session_id=other.session_id or self.session_id,
            instance=other.instance or self.instance,
            metadata={**self.metadata, **other.metadata},
        )


@dataclass
class LogEntry:
    """Log entry data structure."""

    timestamp: float
    level: LogLevel
    message: str
    logger_name: str
    context: LogContext
    exception: Optional[BaseException] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    thread_id: Optional[int] = None
    process_id: Optional[int] = None

    def __post_init__(self):
        if self.thread_id is None:
            self.thread_id = threading.get_ident()
        if self.process_id is None:
            self.process_id = os.getpid()

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary."""
        return {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
            "logger_name": self.logger_name,
            "context": self.context.to_dict(),
            "exception": str(self.exception) if self.exception else None,
            "extra": self.extra,
            "thread_id": self.thread_id,
            "process_id": self.process_id,
        }

    def to_json(self) -> str:
        """Convert log entry to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class LogConfig:
    """Log configuration."""

    def __init__(
        self,
        name: str = "monkeyminer",
        level: LogLevel = LogLevel.INFO,
        format_type: str = "text",
        handlers: List[str] = None,
        filename: Optional[str] = None,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.handlers = handlers or ["console"]
        self.filename = filename


class LogFormatter(ABC):
    """Abstract log formatter."""

    @abstractmethod
    def format(self, entry: LogEntry) -> str:
        """Format log entry."""
        pass


class LogHandler(ABC):
    """Abstract log handler."""

    def __init__(self, name: str = None):
        self.name = name or self.__class__.__name__
        self.formatter: Optional[LogFormatter] = None
        self.level: LogLevel = LogLevel.TRACE
        self._lock = threading.RLock()

    def set_formatter(self, formatter: LogFormatter) -> None:
        """Set formatter."""
        with self._lock:
            self.formatter = formatter

    def set_level(self, level: LogLevel) -> None:
        """Set log level."""
        with self._lock:
            self.level = level

    def should_handle(self, entry: LogEntry) -> bool:
        """Check if handler should handle the entry."""
        return entry.level.rank >= self.level.rank

    def format(self, entry: LogEntry) -> str:
        if self.formatter:
            return self.formatter.format(entry)
        return f"{entry.timestamp} [{entry.level.value.upper()}] {entry.logger_name}: {entry.message}"

    @abstractmethod
    def emit(self, entry: LogEntry) -> None:
        """Emit log entry."""
        pass

    def handle(self, entry: LogEntry) -> None:
        """Handle log entry."""
        if self.should_handle(entry):
            self.emit(entry)

    def close(self) -> None:
        pass


class LogManager:
    """Log manager for orchestrating logging operations."""

    def __init__(self, config: LogConfig = None):
        self.config = config or LogConfig()
        self.loggers: Dict[str, "MinerLogger"] = {}
        self.handlers: Dict[str, LogHandler] = {}
        self._lock = threading.RLock()
        self._context = LogContext()

        self._setup_defaults()

    def _setup_defaults(self) -> None:
        """Setup default logging components."""
        from .formatters import JSONFormatter, TextFormatter
        from .handlers import ConsoleHandler, FileHandler, MemoryHandler

        if self.config.format_type == "json":
            formatter: LogFormatter = JSONFormatter()
        else:
            formatter = TextFormatter()

        for handler_name in self.config.handlers:
            if handler_name == "console":
                handler: LogHandler = ConsoleHandler(sys.stderr)
            elif handler_name == "memory":
                handler = MemoryHandler()
            elif handler_name == "file":
                if not self.config.filename:
                    raise ValueError("File logging requires a filename")
                handler = FileHandler(self.config.filename)
            else:
                raise ValueError(f"Unknown log handler: {handler_name}")
            handler.set_formatter(formatter)
            self.handlers[handler_name] = handler

    def get_logger(self, name: str) -> "MinerLogger":
        """Get logger."""
        with self._lock:
            if name not in self.loggers:
                self.loggers[name] = MinerLogger(name, self)
            return self.loggers[name]

    def add_handler(self, name: str, handler: LogHandler) -> None:
        """Add handler."""
        with self._lock:
            self.handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        """Remove handler."""
        with self._lock:
            handler = self.handlers.pop(name, None)
            if handler is not None:
                handler.close()

    def set_context(self, context: LogContext) -> None:
        """Set global context."""
        with self._lock:
            self._context = context

    def log(
        self,
        level: LogLevel,
        message: str,
        logger_name: str = "root",
        context: LogContext = None,
        exception: BaseException = None,
        extra: Dict[str, Any] = None,
    ) -> None:
        """Log a message."""
        with self._lock:
            entry = LogEntry(
                timestamp=time.time(),
                level=level,
                message=message,
                logger_name=logger_name,
                context=self._context.merged_with(context),
                exception=exception,
                extra=extra or {},
            )

            for handler in list(self.handlers.values()):
                handler.handle(entry)

    def shutdown(self) -> None:
        """Shutdown log manager."""
        with self._lock:
            for handler in self.handlers.values():
                handler.close()

            self.loggers.clear()
            self.handlers.clear()


class MinerLogger:
    """MonkeyMiner logger implementation.

    A logger obtained from the module-level :func:`get_logger` is not bound
    to a manager: it follows whichever manager :func:`setup_logging`
    installed last and inherits that manager's level unless one is set.
    """

    def __init__(
        self,
        name: str,
        manager: Optional[LogManager] = None,
        level: Optional[LogLevel] = None,
    ):
        self.name = name
        self._manager = manager
        self.level = level

    @property
    def manager(self) -> LogManager:
        return self._manager if self._manager is not None else get_log_manager()

    def set_level(self, level: Optional[LogLevel]) -> None:
        """Set log level. ``None`` falls back to the manager's level."""
        self.level = level

    def get_effective_level(self) -> LogLevel:
        return self.level if self.level is not None else self.manager.config.level

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Check if logger is enabled for level."""
        return level.rank >= self.get_effective_level().rank

    def log(
        self,
        level: LogLevel,
        message: str,
        context: LogContext = None,
        exception: BaseException = None,
        extra: Dict[str, Any] = None,
    ) -> None:
        """Log a message."""
        if self.is_enabled_for(level):
            self.manager.log(
                level=level,
                message=message,
                logger_name=self.name,
                context=context,
                exception=exception,
                extra=extra,
            )

    def trace(self, message: str, **kwargs) -> None:
        self.log(LogLevel.TRACE, message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self.log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self.log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.log(LogLevel.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs) -> None:
        self.log(LogLevel.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log an error together with the exception being handled."""
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            kwargs.setdefault("exception", exc_info[1])
        self.log(LogLevel.ERROR, message, **kwargs)


# Global log manager instance
_global_manager: Optional[LogManager] = None
_global_lock = threading.Lock()
_loggers: Dict[str, MinerLogger] = {}


def get_log_manager() -> LogManager:
    """Return the process-wide log manager, creating it on first use."""
    global _global_manager
    with _global_lock:
        if _global_manager is None:
            _global_manager = LogManager()
        return _global_manager


def get_logger(name: str = "root") -> MinerLogger:
    """Get logger instance."""
    with _global_lock:
        if name not in _loggers:
            _loggers[name] = MinerLogger(name)
        return _loggers[name]


def setup_logging(config: LogConfig) -> LogManager:
    """Setup logging with configuration."""
    global _global_manager
    with _global_lock:
        if _global_manager is not None:
            _global_manager.shutdown()
        _global_manager = LogManager(config)
        return _global_manager


def shutdown_logging() -> None:
    """Shutdown logging."""
    global _global_manager
    with _global_lock:
        if _global_manager is not None:
            _global_manager.shutdown()
            _global_manager = None
