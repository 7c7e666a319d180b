"""Error recording and structured logging for extraction sessions."""

import json
import logging
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.errors import (
    EmptyExportError,
    ExtractionFailure,
    InputMissingError,
    MalformedRowError,
    SessionBusyError,
    StatementError,
    UnsupportedDocumentError,
)


class ErrorSeverity(Enum):
    """Error severity levels"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ErrorCategory(Enum):
    """Error categories for classification"""
    INPUT = "input"
    EXTRACTION = "extraction"
    DATA_VALIDATION = "data_validation"
    EXPORT = "export"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


ERROR_CODES = {
    # Input errors
    "INPUT_MISSING": "I001",
    "UNSUPPORTED_DOCUMENT": "I002",
    "SESSION_BUSY": "I003",

    # Extraction errors
    "ORACLE_REQUEST_FAILED": "E001",
    "ORACLE_EMPTY_RESULT": "E002",

    # Data validation errors
    "MALFORMED_ROW": "V001",

    # Export errors
    "EMPTY_EXPORT": "X001",
    "EXPORT_WRITE_FAILED": "X002",

    # Configuration errors
    "INVALID_CONFIG_VALUE": "C001",

    "UNEXPECTED_ERROR": "S999",
}


@dataclass
class ErrorDetail:
    """Detailed error information"""
    timestamp: str
    severity: str
    category: str
    error_code: str
    message: str
    field_name: Optional[str] = None
    raw_value: Optional[str] = None
    row_index: Optional[int] = None
    stack_trace: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)


class JSONFormatter(logging.Formatter):
    """One JSON object per log record"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        for key in ('error_code', 'category', 'context'):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class ErrorHandler:
    """Records errors and warnings and mirrors them to the log"""

    def __init__(self, log_directory: Optional[str] = None, enable_console: bool = False,
                 logger_name: str = 'extracto_bancario.session'):
        self.log_directory = Path(log_directory) if log_directory else None
        self.errors: List[ErrorDetail] = []
        self.warnings: List[ErrorDetail] = []

        self.logger = logging.getLogger(logger_name)
        self._setup_logging(enable_console)

    def _setup_logging(self, enable_console: bool):
        """Attach JSON file handlers and an optional console handler"""
        if self.log_directory is None and not enable_console:
            return

        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()

        if self.log_directory is not None:
            self.log_directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime('%Y%m%d')

            file_handler = logging.FileHandler(self.log_directory / f"extractor_{stamp}.jsonl")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(JSONFormatter())
            self.logger.addHandler(file_handler)

            error_file_handler = logging.FileHandler(self.log_directory / f"errors_{stamp}.jsonl")
            error_file_handler.setLevel(logging.ERROR)
            error_file_handler.setFormatter(JSONFormatter())
            self.logger.addHandler(error_file_handler)

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
            self.logger.addHandler(console_handler)

    def close(self):
        """Close and detach handlers opened by this instance"""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def log_error(self,
                  message: str,
                  error_type: str,
                  category: ErrorCategory = ErrorCategory.SYSTEM,
                  field_name: Optional[str] = None,
                  raw_value: Optional[str] = None,
                  row_index: Optional[int] = None,
                  exception: Optional[BaseException] = None,
                  context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        """Log an error with detailed information"""
        error_code = ERROR_CODES.get(error_type, "S999")
        stack_trace = None

        if exception is not None and exception.__traceback__ is not None:
            stack_trace = ''.join(traceback.format_exception(
                type(exception), exception, exception.__traceback__
            ))

        error_detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=ErrorSeverity.ERROR.value,
            category=category.value,
            error_code=error_code,
            message=message,
            field_name=field_name,
            raw_value=raw_value,
            row_index=row_index,
            stack_trace=stack_trace,
            context=context or {}
        )
        self.errors.append(error_detail)

        self.logger.error(
            message,
            extra={'error_code': error_code, 'category': category.value, 'context': context or {}}
        )
        return error_detail

    def log_warning(self,
                    message: str,
                    warning_type: str,
                    category: ErrorCategory = ErrorCategory.SYSTEM,
                    context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
        """Log a warning with detailed information"""
        warning_code = ERROR_CODES.get(warning_type, "W999")

        warning_detail = ErrorDetail(
            timestamp=datetime.now().isoformat(),
            severity=ErrorSeverity.WARNING.value,
            category=category.value,
            error_code=warning_code,
            message=message,
            context=context or {}
        )
        self.warnings.append(warning_detail)

        self.logger.warning(
            message,
            extra={'error_code': warning_code, 'category': category.value, 'context': context or {}}
        )
        return warning_detail

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None):
        """Log informational message"""
        self.logger.info(message, extra={'context': context or {}})

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of all errors and warnings"""
        errors_by_category: Dict[str, int] = {}
        for error in self.errors:
            errors_by_category[error.category] = errors_by_category.get(error.category, 0) + 1

        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'errors_by_category': errors_by_category,
            'last_error': self.errors[-1].message if self.errors else None,
        }


def handle_statement_error(error_handler: ErrorHandler,
                           exception: StatementError,
                           context: Optional[Dict[str, Any]] = None) -> ErrorDetail:
    """Record a pipeline exception under its error code and category"""
    if isinstance(exception, MalformedRowError):
        return error_handler.log_error(
            exception.user_message,
            "MALFORMED_ROW",
            ErrorCategory.DATA_VALIDATION,
            field_name=exception.field,
            raw_value=exception.raw_value,
            row_index=exception.row_index,
            exception=exception,
            context=context
        )

    if isinstance(exception, ExtractionFailure) and exception.empty_result:
        return error_handler.log_error(
            exception.user_message, "ORACLE_EMPTY_RESULT", ErrorCategory.EXTRACTION,
            context=context
        )

    mapping = [
        (UnsupportedDocumentError, "UNSUPPORTED_DOCUMENT", ErrorCategory.INPUT),
        (InputMissingError, "INPUT_MISSING", ErrorCategory.INPUT),
        (SessionBusyError, "SESSION_BUSY", ErrorCategory.INPUT),
        (ExtractionFailure, "ORACLE_REQUEST_FAILED", ErrorCategory.EXTRACTION),
        (EmptyExportError, "EMPTY_EXPORT", ErrorCategory.EXPORT),
    ]
    for exc_type, error_type, category in mapping:
        if isinstance(exception, exc_type):
            return error_handler.log_error(
                exception.user_message, error_type, category,
                exception=exception, context=context
            )

    return error_handler.log_error(
        exception.user_message, "UNEXPECTED_ERROR", ErrorCategory.SYSTEM,
        exception=exception, context=context
    )
