"""Centralized Logging Management for WaveOps

Handles log configuration, formatting, and output management.
"""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from .config_manager import LoggingConfig


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with colors for console output."""
        log_message = super().format(record)
        return f"{self.COLORS.get(record.levelname, '')}{log_message}{self.COLORS['RESET']}"


def parse_file_size(size: str) -> int:
    """Convert a size string such as ``10MB`` into bytes."""
    match = re.match(r'^(\d+)([KMG])B$', size.strip().upper())
    if not match:
        raise ValueError(f"Invalid file size: {size}")
    multiplier = {'K': 1024, 'M': 1024 ** 2, 'G': 1024 ** 3}[match.group(2)]
    return int(match.group(1)) * multiplier


class LoggingManager:
    """Centralized logging configuration and management.

    Modules obtain loggers through :meth:`get_logger`. Handlers are only
    installed when the hosting application calls :meth:`setup`, so importing
    the engine as a library leaves the root logger untouched.
    """

    _instance: Optional['LoggingManager'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LoggingManager':
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize logging manager (only once)."""
        if self._initialized:
            return

        self.loggers: Dict[str, logging.Logger] = {}
        self.handlers: Dict[str, logging.Handler] = {}
        self.log_dir: Optional[Path] = None
        self._initialized = True

    @classmethod
    def setup(cls, config: 'LoggingConfig') -> 'LoggingManager':
        """Configure the root logger from a logging configuration.

        Args:
            config: Logging section of the application configuration

        Returns:
            The configured manager
        """
        manager = cls()
        manager._setup_root_logger(config)
        return manager

    def _setup_root_logger(self, config: 'LoggingConfig'):
        """Configure the root logger with handlers."""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # Removing handlers installed by a previous setup call
        for handler in self.handlers.values():
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()

        level = getattr(logging, config.level.upper())

        if config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(ColoredFormatter(
                '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
                datefmt='%H:%M:%S'
            ))
            root_logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        if config.log_to_file:
            log_file = Path(config.file_path)
            self.log_dir = log_file.parent
            self.log_dir.mkdir(parents=True, exist_ok=True)

            file_formatter = logging.Formatter(
                '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

            # File handler for all logs
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=parse_file_size(config.max_file_size),
                backupCount=config.backup_count
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(file_formatter)
            root_logger.addHandler(file_handler)
            self.handlers['file'] = file_handler

            # Error file handler for errors only
            error_file = log_file.with_name(f"{log_file.stem}_errors{log_file.suffix}")
            error_handler = logging.handlers.RotatingFileHandler(
                error_file,
                maxBytes=parse_file_size(config.max_file_size),
                backupCount=config.backup_count
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(file_formatter)
            root_logger.addHandler(error_handler)
            self.handlers['errors'] = error_handler

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Class method to get logger instance.

        Args:
            name: Logger name (typically __name__ of the module)

        Returns:
            Logger instance
        """
        manager = cls()
        return manager._get_logger_instance(name)

    def _get_logger_instance(self, name: str) -> logging.Logger:
        """Internal method to get logger instance."""
        if name in self.loggers:
            return self.loggers[name]

        logger = logging.getLogger(name)
        self.loggers[name] = logger
        return logger

    def set_log_level(self, level: str):
        """Set the logging level for the console handler.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        numeric_level = getattr(logging, level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f'Invalid log level: {level}')

        console_handler = self.handlers.get('console')
        if console_handler is not None:
            console_handler.setLevel(numeric_level)
