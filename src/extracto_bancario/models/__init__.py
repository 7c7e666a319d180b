"""Data models and structures"""

from .core import (
    Bank,
    EntityOption,
    ExportResult,
    ExtractionResult,
    ExtractorConfig,
    InputMode,
    StatementInput,
    Transaction,
)
from .errors import (
    EmptyExportError,
    ExtractionFailure,
    InputMissingError,
    MalformedRowError,
    SessionBusyError,
    StatementError,
    UnsupportedDocumentError,
)

BANKS = list(Bank)
ENTITY_OPTIONS = list(EntityOption)

__all__ = [
    'BANKS',
    'ENTITY_OPTIONS',
    'Bank',
    'EntityOption',
    'ExportResult',
    'ExtractionResult',
    'ExtractorConfig',
    'InputMode',
    'StatementInput',
    'Transaction',
    'EmptyExportError',
    'ExtractionFailure',
    'InputMissingError',
    'MalformedRowError',
    'SessionBusyError',
    'StatementError',
    'UnsupportedDocumentError',
]
