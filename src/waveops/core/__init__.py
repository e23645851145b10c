"""Core modules for the WaveOps command engine.

Logging, error types and configuration shared by every coordination
component.
"""

from .config_manager import (
    AppConfig,
    ConfigManager,
    DispatcherConfig,
    LoggingConfig,
    ParserConfig
)
from .error_handler import (
    CommandExecutionError,
    CommandParseError,
    ConfigurationError,
    ContextError,
    ErrorHandler,
    ErrorSeverity,
    ParseErrorCode,
    WaveOpsError
)
from .logging_manager import LoggingManager

__all__ = [
    "AppConfig",
    "ConfigManager",
    "DispatcherConfig",
    "LoggingConfig",
    "ParserConfig",
    "CommandExecutionError",
    "CommandParseError",
    "ConfigurationError",
    "ContextError",
    "ErrorHandler",
    "ErrorSeverity",
    "ParseErrorCode",
    "WaveOpsError",
    "LoggingManager"
]
