"""MonkeyMiner Logging System.

Structured logging for the mining client: a process-wide log manager,
JSON and text formatters, and console, file and in-memory handlers.
"""

from .core import (
    LogConfig,
    LogContext,
    LogEntry,
    LogFormatter,
    LogHandler,
    LogLevel,
    LogManager,
    MinerLogger,
    get_log_manager,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter
from .handlers import ConsoleHandler, FileHandler, MemoryHandler

__all__ = [
    # Core
    "LogLevel",
    "LogConfig",
    "LogContext",
    "LogEntry",
    "LogFormatter",
    "LogHandler",
    "LogManager",
    "MinerLogger",
    "get_log_manager",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Handlers
    "ConsoleHandler",
    "FileHandler",
    "MemoryHandler",
]
