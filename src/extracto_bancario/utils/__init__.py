"""Utility functions and helpers"""

from .validation import ValidationEngine, coerce_amount
from .csv_writer import CSVWriter
from .config_manager import ConfigManager
from .error_handler import ErrorHandler, ErrorCategory, ErrorSeverity, handle_statement_error

__all__ = [
    'ValidationEngine',
    'coerce_amount',
    'CSVWriter',
    'ConfigManager',
    'ErrorHandler',
    'ErrorCategory',
    'ErrorSeverity',
    'handle_statement_error',
]
