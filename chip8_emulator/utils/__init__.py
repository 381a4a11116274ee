"""
Support utilities: configuration and error handling.
"""
from .config_manager import ConfigManager
from .error_handler import (
    ErrorHandler, ErrorLevel, ErrorCategory,
    Chip8Error, ROMTooLargeError, StackOverflowError, StackUnderflowError,
)
