"""Session state and the transitions that drive an extraction session."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .extraction.gateway import ExtractionGateway
from .models.core import (
    Bank,
    EntityOption,
    ExportResult,
    InputMode,
    StatementInput,
    Transaction,
)
from .models.errors import (
    EmptyExportError,
    InputMissingError,
    SessionBusyError,
    StatementError,
    UnsupportedDocumentError,
)
from .utils.csv_writer import CSVWriter
from .utils.error_handler import ErrorCategory, ErrorHandler, handle_statement_error


logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Everything a session holds between user actions"""
    bank: Bank = Bank.POPULAR
    entity: EntityOption = EntityOption.GVAL
    input_mode: InputMode = InputMode.TEXT
    statement_text: str = ""
    document: Optional[StatementInput] = None
    transactions: List[Transaction] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    request_seq: int = 0


class SessionController:
    """Owns a SessionState and sequences gateway, validator and encoder.

    State only changes through the methods below. Each extraction gets a
    sequence number; a result that arrives for anything but the latest
    request is discarded.
    """

    def __init__(self, gateway: ExtractionGateway, csv_writer: Optional[CSVWriter] = None,
                 error_handler: Optional[ErrorHandler] = None,
                 state: Optional[SessionState] = None):
        self.gateway = gateway
        self.csv_writer = csv_writer or CSVWriter()
        self.error_handler = error_handler or ErrorHandler()
        self.state = state or SessionState()

    # Selection

    def set_bank(self, bank: Bank):
        self.state.bank = Bank.from_label(bank)

    def set_entity(self, entity: EntityOption):
        self.state.entity = EntityOption.from_label(entity)

    def set_input_mode(self, mode: InputMode):
        mode = InputMode(mode)
        if mode is not self.state.input_mode:
            if self.state.is_loading:
                # the running request's result no longer applies
                self.state.request_seq += 1
                self.state.is_loading = False
            self.state.input_mode = mode
            self.state.transactions = []
            self.state.warnings = []
            self.state.error = None

    def set_statement_text(self, text: str):
        self.state.statement_text = text or ""

    def set_document(self, data: bytes, filename: str, mime_type: Optional[str] = None):
        """Accept an uploaded document; only PDFs are kept"""
        try:
            document = StatementInput.from_document(data, filename, mime_type)
        except (UnsupportedDocumentError, InputMissingError) as e:
            self.state.document = None
            self._record_error(e)
            return

        self.state.document = document
        self.state.statement_text = ""
        self.state.error = None

    def current_input(self) -> StatementInput:
        """The statement for the active input mode"""
        if self.state.input_mode is InputMode.FILE:
            if self.state.document is None:
                raise InputMissingError("Please upload a file.")
            return self.state.document

        if not self.state.statement_text.strip():
            raise InputMissingError("Please paste the statement text.")
        return StatementInput.from_text(self.state.statement_text)

    @property
    def is_process_disabled(self) -> bool:
        if self.state.is_loading:
            return True
        if self.state.input_mode is InputMode.TEXT:
            return not self.state.statement_text.strip()
        return self.state.document is None

    @property
    def is_export_disabled(self) -> bool:
        return self.state.is_loading or not self.state.transactions

    # Extraction lifecycle

    def begin_extraction(self) -> int:
        """Start a new request, discarding the current list"""
        self.state.request_seq += 1
        self.state.is_loading = True
        self.state.error = None
        self.state.transactions = []
        self.state.warnings = []
        return self.state.request_seq

    def complete_extraction(self, seq: int, transactions: List[Transaction],
                            warnings: Optional[List[str]] = None) -> bool:
        if seq != self.state.request_seq:
            logger.debug(f"Discarding result of superseded request {seq}")
            return False
        context = {'bank': self.state.bank.value, 'request': seq}
        self.state.transactions = list(transactions)
        self.state.warnings = list(warnings or [])
        self.state.is_loading = False
        for warning in self.state.warnings:
            self.error_handler.log_warning(
                f"Skipped {warning}", "MALFORMED_ROW", ErrorCategory.DATA_VALIDATION,
                context=context
            )
        self.error_handler.log_info(f"Loaded {len(transactions)} transactions", context=context)
        return True

    def fail_extraction(self, seq: int, message: str) -> bool:
        if seq != self.state.request_seq:
            logger.debug(f"Discarding failure of superseded request {seq}")
            return False
        self.state.transactions = []
        self.state.warnings = []
        self.state.error = message
        self.state.is_loading = False
        return True

    async def process_statement(self) -> bool:
        """Run a full extraction for the current input; True on success"""
        try:
            statement = self.current_input()
        except InputMissingError as e:
            self._record_error(e)
            return False

        seq = self.begin_extraction()
        bank = self.state.bank
        try:
            result = await asyncio.to_thread(self.gateway.extract_result, statement, bank)
        except StatementError as e:
            handle_statement_error(self.error_handler, e, context={'bank': bank.value, 'request': seq})
            self.fail_extraction(seq, e.user_message)
            return False

        return self.complete_extraction(seq, result.transactions, result.warnings)

    # Export

    def export(self, on_date: Optional[date] = None) -> ExportResult:
        """Encode the current list for the selected entity and bank"""
        if self.state.is_loading:
            error = SessionBusyError()
            self._record_error(error)
            raise error
        if not self.state.transactions:
            error = EmptyExportError()
            self._record_error(error)
            raise error

        return self.csv_writer.export(
            self.state.transactions, self.state.entity, self.state.bank, on_date
        )

    def _record_error(self, error: StatementError):
        handle_statement_error(self.error_handler, error)
        self.state.error = error.user_message
