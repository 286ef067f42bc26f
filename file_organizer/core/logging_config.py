"""Logging configuration and utilities for the File Organizer."""

import copy
import logging
import logging.handlers
import sys
from typing import Optional

from .config import LoggingConfig, get_config


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to the level name on console output."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        """Format log record with colors."""
        if record.levelname in self.COLORS:
            # Copy so other handlers still see the plain level name
            record = copy.copy(record)
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"

        return super().format(record)


class LoggingManager:
    """Manages logging configuration and setup."""

    def __init__(self, config: Optional[LoggingConfig] = None):
        """
        Initialize logging manager.

        Args:
            config: Logging configuration. If None, uses global config.
        """
        self.config = config or get_config().logging
        self.handlers = {}
        self._setup_root_logger()

    def _setup_root_logger(self):
        """Set up the root logger with configured handlers."""
        root_logger = logging.getLogger()

        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)

        try:
            root_logger.setLevel(getattr(logging, self.config.level.upper()))
        except AttributeError:
            root_logger.setLevel(logging.INFO)
            root_logger.warning(f"Invalid log level '{self.config.level}', using INFO")

        if self.config.console_enabled:
            console_handler = self._create_console_handler()
            root_logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        if self.config.file_enabled and self.config.file_path:
            file_handler = self._create_file_handler()
            if file_handler:
                root_logger.addHandler(file_handler)
                self.handlers['file'] = file_handler

    def _create_console_handler(self) -> logging.Handler:
        """Create and configure console handler."""
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColoredFormatter(self.config.format))
        return handler

    def _create_file_handler(self) -> Optional[logging.Handler]:
        """Create and configure rotating file handler."""
        try:
            self.config.file_path.parent.mkdir(parents=True, exist_ok=True)

            max_bytes = self.config.file_max_size_mb * 1024 * 1024
            handler = logging.handlers.RotatingFileHandler(
                self.config.file_path,
                maxBytes=max_bytes,
                backupCount=self.config.file_backup_count
            )
            handler.setFormatter(logging.Formatter(self.config.format))
            return handler

        except OSError as e:
            logging.getLogger(__name__).error(f"Failed to create file handler: {e}")
            return None

    def close(self):
        """Detach and close every handler this manager installed."""
        root_logger = logging.getLogger()
        for handler in self.handlers.values():
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()


# Global logging manager instance
_logging_manager = None


def setup_logging(config: Optional[LoggingConfig] = None) -> LoggingManager:
    """
    Set up global logging configuration.

    Args:
        config: Optional logging configuration

    Returns:
        LoggingManager instance
    """
    global _logging_manager
    if _logging_manager is not None:
        _logging_manager.close()
    _logging_manager = LoggingManager(config)
    return _logging_manager


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger, setting up logging from the global config on first use.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    global _logging_manager
    if _logging_manager is None:
        _logging_manager = LoggingManager()
    return logging.getLogger(name)
