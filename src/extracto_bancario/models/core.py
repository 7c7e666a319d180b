"""Core data models for the statement extractor."""

import mimetypes
import os
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from .errors import InputMissingError, UnsupportedDocumentError


PDF_MIME_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF-"


class Bank(Enum):
    """Supported institutions. The value is both the label and the oracle hint."""
    POPULAR = "Banco Popular"
    OCCIDENTE = "Banco Occidente"
    DAVIVIENDA = "Davivienda"
    BOGOTA = "Banco Bogota"
    BBVA = "Banco BBVA"
    BANCOOMEVA = "Bancoomeva"
    BANCOLOMBIA = "Bancolombia"
    AVVILLAS = "AvVillas"
    AGRARIO = "Banco Agrario"

    @classmethod
    def from_label(cls, label: str) -> "Bank":
        """Look up a bank by its label or member name (case-insensitive)"""
        if isinstance(label, Bank):
            return label
        wanted = str(label).strip().lower()
        for bank in cls:
            if bank.value.lower() == wanted or bank.name.lower() == wanted:
                return bank
        raise ValueError(f"Unsupported bank: {label!r}")


class EntityOption(Enum):
    """Owner tag written on every row of an export"""
    GVAL = "GVAL"
    VEDU = "VEDU"

    @classmethod
    def from_label(cls, label: str) -> "EntityOption":
        if isinstance(label, EntityOption):
            return label
        wanted = str(label).strip().upper()
        for entity in cls:
            if entity.value == wanted:
                return entity
        raise ValueError(f"Unsupported entity: {label!r}")


class InputMode(Enum):
    """How the statement is supplied"""
    TEXT = "text"
    FILE = "file"


@dataclass(frozen=True)
class Transaction:
    """Canonical transaction as reported by the statement.

    Attributes:
        date: Date token in the bank's native format, kept as-is
        detail: Free-text description, kept verbatim
        movement: Signed amount; sign convention is bank-defined
        balance: Running balance reported after the transaction
    """
    date: str
    detail: str
    movement: Decimal
    balance: Decimal


@dataclass(frozen=True)
class StatementInput:
    """A statement supplied either as pasted text or as a PDF document"""
    text: Optional[str] = None
    document: Optional[bytes] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None

    def __post_init__(self):
        has_text = self.text is not None and bool(self.text.strip())
        has_document = bool(self.document)
        if has_text == has_document:
            raise InputMissingError(
                "Provide either the statement text or a PDF document, not both"
                if has_text else "No statement text or document was provided"
            )

    @property
    def is_document(self) -> bool:
        return bool(self.document)

    @classmethod
    def from_text(cls, text: str) -> "StatementInput":
        return cls(text=(text or "").strip())

    @classmethod
    def from_document(cls, data: bytes, filename: str = "statement.pdf",
                      mime_type: Optional[str] = None) -> "StatementInput":
        """Build a document input, rejecting anything that is not a PDF"""
        if not data:
            raise InputMissingError("The uploaded document is empty")
        if mime_type is None:
            mime_type = mimetypes.guess_type(filename)[0]
        if mime_type != PDF_MIME_TYPE or not data.startswith(PDF_MAGIC):
            raise UnsupportedDocumentError(filename, mime_type)
        return cls(document=data, filename=filename, mime_type=PDF_MIME_TYPE)

    @classmethod
    def from_file(cls, file_path: str) -> "StatementInput":
        with open(file_path, 'rb') as f:
            data = f.read()
        return cls.from_document(data, filename=os.path.basename(file_path))


@dataclass(frozen=True)
class ExtractionResult:
    """Transactions from one extraction plus the rows dropped along the way"""
    transactions: List[Transaction]
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExportResult:
    """A rendered CSV export ready to be saved or downloaded"""
    filename: str
    content: bytes
    row_count: int


@dataclass
class ExtractorConfig:
    """Configuration for extraction and export behavior"""
    model: str = "gpt-4.1"
    api_key_env: str = "OPENAI_API_KEY"
    request_timeout: float = 120.0
    document_mode: str = "file"  # "file" or "text"
    malformed_row_policy: str = "reject"  # "reject" or "skip"
    output_directory: str = "exports"
    log_directory: Optional[str] = None
    default_bank: str = Bank.POPULAR.value
    default_entity: str = EntityOption.GVAL.value
    bank_hints: Optional[Dict[str, str]] = None

    DOCUMENT_MODES = ("file", "text")
    ROW_POLICIES = ("reject", "skip")

    def __post_init__(self):
        if self.bank_hints is None:
            self.bank_hints = {}

    def validate(self) -> List[str]:
        """Return a list of problems with the current values"""
        problems = []
        if self.document_mode not in self.DOCUMENT_MODES:
            problems.append(f"document_mode must be one of {self.DOCUMENT_MODES}")
        if self.malformed_row_policy not in self.ROW_POLICIES:
            problems.append(f"malformed_row_policy must be one of {self.ROW_POLICIES}")
        if not isinstance(self.request_timeout, (int, float)) or self.request_timeout <= 0:
            problems.append("request_timeout must be a positive number")
        for label in [self.default_bank, *self.bank_hints.keys()]:
            try:
                Bank.from_label(label)
            except ValueError as e:
                problems.append(str(e))
        try:
            EntityOption.from_label(self.default_entity)
        except ValueError as e:
            problems.append(str(e))
        return problems
