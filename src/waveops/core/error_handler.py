"""Global Error Handling for WaveOps

Exception hierarchy for the command engine and a central handler that maps
error severity onto log levels.
"""

from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Type

from .logging_manager import LoggingManager


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ParseErrorCode(IntEnum):
    """Reasons a command segment could not be turned into a command."""
    UNKNOWN_COMMAND = 1
    INVALID_RANGE = 2


class WaveOpsError(Exception):
    """Base exception class for the WaveOps command engine."""

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM):
        self.message = message
        self.severity = severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
        }


class ConfigurationError(WaveOpsError):
    """Error raised when configuration is invalid."""
    pass


class ContextError(WaveOpsError):
    """Error raised when a coordination context snapshot is malformed."""
    pass


class CommandParseError(WaveOpsError):
    """Error raised when a command segment matches no grammar."""

    def __init__(
        self,
        message: str,
        code: ParseErrorCode,
        position: Optional[int] = None,
        suggestions: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorSeverity.LOW)
        self.code = code
        self.position = position
        self.suggestions = suggestions or []
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "code": self.code.name,
            "position": self.position,
            "suggestions": list(self.suggestions),
            "context": self.context,
        })
        return data


class CommandExecutionError(WaveOpsError):
    """Error raised when a command handler cannot execute a command."""

    def __init__(self, message: str, command: str, reason: str,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorSeverity.HIGH)
        self.command = command
        self.reason = reason
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "command": self.command,
            "reason": self.reason,
            "context": self.context,
        })
        return data


class ErrorHandler:
    """Central error handler: logs by severity and notifies callbacks."""

    def __init__(self):
        """Initialize error handler."""
        self.logger = LoggingManager.get_logger(__name__)
        self.error_callbacks: Dict[Type[Exception], Callable[[Exception], None]] = {}

    def register_error_callback(self, exception_type: Type[Exception],
                                callback: Callable[[Exception], None]):
        """Register a callback for specific exception types.

        Args:
            exception_type: The exception type to handle
            callback: Function to call when this exception occurs
        """
        self.error_callbacks[exception_type] = callback

    def handle_error(self, error: Exception, context: Optional[str] = None) -> str:
        """Log an error and run the callback registered for its type.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            The formatted error message
        """
        severity = self.get_error_severity(error)
        error_message = self._format_error_message(error, context)

        self._log_error(error_message, severity)

        for error_type, callback in self.error_callbacks.items():
            if isinstance(error, error_type):
                callback(error)

        return error_message

    def get_error_severity(self, error: Exception) -> ErrorSeverity:
        """Determine error severity based on exception type.

        Args:
            error: The exception to analyze

        Returns:
            Appropriate severity level
        """
        if isinstance(error, WaveOpsError):
            return error.severity

        # Mapping standard exceptions to severity levels
        severity_map = {
            KeyError: ErrorSeverity.MEDIUM,
            ValueError: ErrorSeverity.MEDIUM,
            TypeError: ErrorSeverity.HIGH,
            AttributeError: ErrorSeverity.HIGH,
            MemoryError: ErrorSeverity.CRITICAL,
        }

        return severity_map.get(type(error), ErrorSeverity.MEDIUM)

    def _format_error_message(self, error: Exception, context: Optional[str] = None) -> str:
        message = str(error) or type(error).__name__
        if context:
            message = f"{context}: {message}"

        return message

    def _log_error(self, message: str, severity: ErrorSeverity):
        log_methods = {
            ErrorSeverity.LOW: self.logger.info,
            ErrorSeverity.MEDIUM: self.logger.warning,
            ErrorSeverity.HIGH: self.logger.error,
            ErrorSeverity.CRITICAL: self.logger.critical,
        }

        log_method = log_methods[severity]
        log_method(message, exc_info=severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL))
