"""
Error handling and logging utilities for the CHIP-8 Emulator.

This module provides the exception types raised by the emulator core and a
standardized approach for logging and collecting errors and runtime anomalies
across the codebase.
"""

import logging
import sys
import os
import traceback
import json
import datetime
from typing import Dict, List, Any, Optional, Callable
from enum import Enum, auto
import threading

# Configure base logger
logger = logging.getLogger("Chip8Emulator")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

class ErrorLevel(Enum):
    """Error severity levels."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()

class ErrorCategory(Enum):
    """Categories of errors."""
    SYSTEM = auto()
    CONFIGURATION = auto()
    LOAD = auto()
    RUNTIME = auto()
    INPUT = auto()
    UNKNOWN = auto()

class Chip8Error(Exception):
    """Base class for errors raised by the emulator."""
    category = ErrorCategory.UNKNOWN

class ROMTooLargeError(Chip8Error):
    """The program image does not fit in the program area of memory."""
    category = ErrorCategory.LOAD

    def __init__(self, size: int, limit: int):
        super().__init__(f"ROM is {size} bytes, maximum program size is {limit} bytes")
        self.size = size
        self.limit = limit

class StackOverflowError(Chip8Error):
    """A subroutine call was made with the call stack already full."""
    category = ErrorCategory.RUNTIME

class StackUnderflowError(Chip8Error):
    """A subroutine return was made with an empty call stack."""
    category = ErrorCategory.RUNTIME

class ErrorHandler:
    """
    Centralized error handling and logging for the CHIP-8 Emulator.

    Configures the emulator's logger hierarchy, keeps a bounded history of
    reported errors and anomalies, and dispatches them to per-category
    handlers registered by the host.
    """

    def __init__(self,
                log_file: Optional[str] = None,
                console_level: int = logging.INFO,
                file_level: int = logging.DEBUG,
                report_errors: bool = True,
                max_error_history: int = 100):
        """
        Initialize the error handler.

        Args:
            log_file: Path to log file (None for no file logging)
            console_level: Logging level for console output
            file_level: Logging level for file output
            report_errors: Whether to collect error reports
            max_error_history: Maximum number of errors to keep in history
        """
        self.log_file = log_file
        self.console_level = console_level
        self.file_level = file_level
        self.report_errors = report_errors
        self.max_error_history = max_error_history

        # Error history
        self.error_history = []
        self.error_history_lock = threading.Lock()

        # Error handlers by category
        self.error_handlers = {}

        # Configure logging
        self._configure_logging()

        logger.debug("Error handler initialized")

    def _configure_logging(self) -> None:
        """Configure logging system."""
        # Reset handlers
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        if self.log_file:
            log_dir = os.path.dirname(self.log_file)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)

            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(self.file_level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)

    def close(self) -> None:
        """Detach and close all handlers installed by this error handler."""
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True

    def handle_error(self,
                  exception: Optional[Exception] = None,
                  message: Optional[str] = None,
                  level: ErrorLevel = ErrorLevel.ERROR,
                  category: Optional[ErrorCategory] = None,
                  context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Handle an error.

        Args:
            exception: Exception object
            message: Error message
            level: Error severity level
            category: Error category (taken from a Chip8Error when omitted)
            context: Additional context

        Returns:
            Error information dictionary
        """
        if category is None:
            category = getattr(exception, "category", ErrorCategory.UNKNOWN)

        if message is None:
            message = str(exception) if exception else "Unknown error"

        error_info = {
            "timestamp": datetime.datetime.now().isoformat(),
            "level": level.name,
            "category": category.name,
            "message": message,
            "exception_type": exception.__class__.__name__ if exception else None,
            "traceback": "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
                         if exception and exception.__traceback__ else None,
            "context": context or {},
        }

        log_level = getattr(logging, level.name)
        logger.log(log_level, f"{message} ({category.name})")
        if error_info["traceback"]:
            logger.debug(f"Traceback: {error_info['traceback']}")

        if self.report_errors:
            with self.error_history_lock:
                self.error_history.append(error_info)

                # Trim history if needed
                if len(self.error_history) > self.max_error_history:
                    self.error_history = self.error_history[-self.max_error_history:]

        handler = self.error_handlers.get(category)
        if handler:
            handler(error_info)

        return error_info

    def report_anomaly(self, message: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Record a non-fatal runtime anomaly reported by the emulator core.

        Args:
            message: Description of the anomaly
            context: Machine state at the time of the anomaly

        Returns:
            Error information dictionary
        """
        return self.handle_error(message=message, level=ErrorLevel.WARNING,
                                 category=ErrorCategory.RUNTIME, context=context)

    def register_handler(self, category: ErrorCategory, handler: Callable[[Dict[str, Any]], None]) -> None:
        """
        Register a handler for a specific error category.

        Args:
            category: Error category
            handler: Handler function
        """
        self.error_handlers[category] = handler
        logger.debug(f"Registered handler for {category.name} errors")

    def unregister_handler(self, category: ErrorCategory) -> bool:
        """
        Unregister a handler for a specific error category.

        Returns:
            True if handler was removed, False if not found
        """
        if category in self.error_handlers:
            del self.error_handlers[category]
            logger.debug(f"Unregistered handler for {category.name} errors")
            return True
        return False

    def clear_error_history(self) -> None:
        """Clear the error history."""
        with self.error_history_lock:
            self.error_history = []

    def get_error_history(self,
                         level: Optional[ErrorLevel] = None,
                         category: Optional[ErrorCategory] = None,
                         max_errors: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get error history, optionally filtered.

        Args:
            level: Filter by error level
            category: Filter by error category
            max_errors: Maximum number of errors to return

        Returns:
            List of error dictionaries
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        if level:
            errors = [e for e in errors if e["level"] == level.name]

        if category:
            errors = [e for e in errors if e["category"] == category.name]

        if max_errors and max_errors < len(errors):
            errors = errors[-max_errors:]

        return errors

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of errors by category and level.

        Returns:
            Dictionary with error summary
        """
        with self.error_history_lock:
            errors = self.error_history.copy()

        categories = {}
        levels = {}
        exceptions = {}
        for e in errors:
            categories[e["category"]] = categories.get(e["category"], 0) + 1
            levels[e["level"]] = levels.get(e["level"], 0) + 1
            exception_type = e.get("exception_type")
            if exception_type:
                exceptions[exception_type] = exceptions.get(exception_type, 0) + 1

        return {
            "total": len(errors),
            "by_category": categories,
            "by_level": levels,
            "by_exception": exceptions,
            "latest": errors[-1] if errors else None
        }

    def export_error_report(self, filename: str) -> bool:
        """
        Export error history to a JSON file.

        Args:
            filename: Output filename

        Returns:
            True if successful, False otherwise
        """
        try:
            directory = os.path.dirname(filename)
            if directory:
                os.makedirs(directory, exist_ok=True)

            with self.error_history_lock:
                errors = self.error_history.copy()

            report = {
                "timestamp": datetime.datetime.now().isoformat(),
                "summary": self.get_error_summary(),
                "errors": errors
            }

            with open(filename, 'w') as f:
                json.dump(report, f, indent=2, default=str)

            logger.info(f"Exported error report to {filename}")
            return True

        except OSError as e:
            logger.error(f"Error exporting error report: {e}")
            return False
