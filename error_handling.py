"""
Centralized error handling and logging system.
Provides the error taxonomy raised by the service layer and consistent logging.
"""

import logging
import os
from typing import Optional, Any, Callable, List


class AssetInventoryError(Exception):
    """Base class for all errors raised by the inventory core."""


class ValidationError(AssetInventoryError):
    """Input rejected before it reached storage."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class UniquenessError(AssetInventoryError):
    """Duplicate asset code or category/department name."""


class ReferentialGuardError(AssetInventoryError):
    """Delete refused because other rows still depend on the target."""


class NotFoundError(AssetInventoryError):
    """The referenced row does not exist."""


class StorageError(AssetInventoryError):
    """Any other failure reported by the storage engine."""


class TransactionError(AssetInventoryError):
    """A multi-statement operation could not be started or committed."""


class AppLogger:
    """Centralized logging system for the application."""

    def __init__(self, log_file: Optional[str] = None, level: int = logging.INFO,
                 name: str = "AssetInventory"):
        self.log_file = log_file
        self.name = name
        self._setup_logger(level)

    def _setup_logger(self, level: int):
        """Setup the logging configuration."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(level)

        # Handlers are attached once per logger name
        if self.logger.handlers:
            return

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if self.log_file:
            log_dir = os.path.dirname(self.log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def from_config(cls, config) -> "AppLogger":
        """Build a logger from an AppConfig."""
        level = getattr(logging, str(config.log_level).upper(), logging.INFO)
        return cls(log_file=config.log_file or None, level=level)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, exception: Exception = None, **kwargs):
        """Log error message with optional exception details."""
        if exception:
            self.logger.error(f"{message}: {str(exception)}", exc_info=exception, **kwargs)
        else:
            self.logger.error(message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(message, **kwargs)


class ErrorHandler:
    """Turns exceptions into log records and user-facing messages.

    The notifier is the message-display collaborator of the front end, a
    callable taking ``(title, message)``. Without one, errors are only logged.
    """

    def __init__(self, logger: AppLogger = None,
                 notifier: Optional[Callable[[str, str], None]] = None):
        self.logger = logger or AppLogger()
        self.notifier = notifier

    def handle_exception(self, exception: Exception, context: str = "",
                         show_to_user: bool = True) -> bool:
        """Handle an exception with logging and optional user notification."""
        error_msg = f"Error in {context}" if context else "Error"
        if isinstance(exception, AssetInventoryError):
            # Expected failures do not need a traceback
            self.logger.warning(f"{error_msg}: {exception}")
        else:
            self.logger.error(error_msg, exception=exception)

        if show_to_user and self.notifier:
            self.notifier("Error", self.get_user_friendly_message(exception, context))

        return False  # Indicate operation failed

    def get_user_friendly_message(self, exception: Exception, context: str) -> str:
        """Convert technical exception to user-friendly message."""
        if isinstance(exception, ValidationError):
            lines = "\n".join(f"• {error}" for error in exception.errors)
            return f"Please correct the following and try again:\n\n{lines}"
        if isinstance(exception, UniquenessError):
            return f"{exception}\n\nThe value is already in use."
        if isinstance(exception, ReferentialGuardError):
            return f"{exception}\n\nRemove or reassign the dependent records first."
        if isinstance(exception, NotFoundError):
            return f"{exception}\n\nThe record may have been deleted."
        if isinstance(exception, (StorageError, TransactionError)):
            return f"Database error: {context}\n\n{exception}"
        if isinstance(exception, (OSError, UnicodeError)):
            return f"File error: {context}\n\nPlease check the file path and permissions."
        return f"An error occurred: {context}\n\n{str(exception)}"

    def log_operation(self, operation: str, success: bool, details: str = ""):
        """Log the result of an operation."""
        if success:
            self.logger.info(f"Operation successful: {operation}. {details}")
        else:
            self.logger.error(f"Operation failed: {operation}. {details}")


def safe_execute(func, *args, error_handler: ErrorHandler = None,
                 context: str = "", default_return: Any = None, **kwargs):
    """Safely execute a function with error handling."""
    if error_handler is None:
        error_handler = ErrorHandler()

    try:
        return func(*args, **kwargs)
    except Exception as e:
        error_handler.handle_exception(e, context)
        return default_return
