"""Exception types raised by the extraction and export pipeline."""

from typing import Optional


class StatementError(Exception):
    """Base class for errors surfaced to the user as a single message"""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message


class InputMissingError(StatementError):
    """Neither statement text nor a document was supplied"""


class UnsupportedDocumentError(StatementError):
    """An uploaded document is not a PDF"""

    def __init__(self, filename: Optional[str], mime_type: Optional[str]):
        super().__init__("Please upload a PDF file.")
        self.filename = filename
        self.mime_type = mime_type


class ExtractionFailure(StatementError):
    """The extraction oracle failed or returned nothing usable"""

    def __init__(self, cause: str, empty_result: bool = False):
        super().__init__(cause)
        self.cause = cause
        self.empty_result = empty_result


class MalformedRowError(StatementError):
    """A row returned by the oracle violates the transaction invariants"""

    def __init__(self, message: str, row_index: Optional[int] = None,
                 field: Optional[str] = None, raw_value: Optional[str] = None):
        if row_index is not None:
            message = f"Row {row_index + 1}: {message}"
        super().__init__(message)
        self.row_index = row_index
        self.field = field
        self.raw_value = raw_value


class EmptyExportError(StatementError):
    """Export was requested for an empty transaction list"""

    def __init__(self, message: str = "No transactions to export."):
        super().__init__(message)


class SessionBusyError(StatementError):
    """An action was requested while an extraction is still running"""

    def __init__(self, message: str = "An extraction is already in progress."):
        super().__init__(message)
