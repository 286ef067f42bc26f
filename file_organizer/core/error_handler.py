"""Error handling utilities for the File Organizer."""

import errno
import logging
from pathlib import Path
from typing import List, Optional, Type, Union

from .exceptions import OrganizerError


class ErrorHandler:
    """Centralized translation and reporting of per-item failures."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize error handler.

        Args:
            logger: Logger instance to use for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def wrap_os_error(
        self,
        error: Exception,
        exc_type: Type[OrganizerError],
        path: Union[str, Path, None] = None,
        context: str = "",
    ) -> OrganizerError:
        """
        Build a taxonomy exception from a raw file system error.

        Args:
            error: The exception that occurred
            exc_type: Organizer exception class to build
            path: Path where the error occurred
            context: Short description of the failed operation

        Returns:
            An instance of exc_type chained to the original error
        """
        if isinstance(error, OrganizerError):
            return error

        where = f" {path}" if path is not None else ""
        prefix = f"{context}:" if context else ""

        code = getattr(error, "errno", None)
        if code in (errno.EACCES, errno.EPERM):
            message = f"{prefix} permission denied{where}"
        elif code == errno.ENOENT:
            message = f"{prefix} not found{where}"
        elif code == errno.ENOSPC:
            message = f"{prefix} no space left on device{where}"
        else:
            message = f"{prefix} {error}"

        wrapped = exc_type(message.strip())
        wrapped.__cause__ = error
        self.logger.warning(f"{exc_type.__name__}: {wrapped}")
        return wrapped

    def log_error_summary(self, errors: List[Exception], operation: str = "operation"):
        """
        Log a summary of errors that occurred during an operation.

        Args:
            errors: List of exceptions that occurred
            operation: Description of the operation
        """
        if not errors:
            return

        error_counts = {}
        for error in errors:
            error_type = type(error).__name__
            error_counts[error_type] = error_counts.get(error_type, 0) + 1

        self.logger.warning(f"Error summary for {operation}:")
        for error_type, count in error_counts.items():
            self.logger.warning(f"  {error_type}: {count} occurrences")

        unique_messages = set()
        for error in errors[:10]:
            message = str(error)
            if message not in unique_messages:
                unique_messages.add(message)
                self.logger.warning(f"  Example: {message}")
