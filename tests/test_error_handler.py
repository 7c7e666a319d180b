"""Tests for error recording and structured logging."""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from extracto_bancario.models.errors import (
    EmptyExportError,
    ExtractionFailure,
    InputMissingError,
    MalformedRowError,
    UnsupportedDocumentError,
)
from extracto_bancario.utils.error_handler import (
    ErrorCategory,
    ErrorHandler,
    handle_statement_error,
)


class TestErrorHandler(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.handler = ErrorHandler(log_directory=self.temp_dir, logger_name='extracto_bancario.test')

    def tearDown(self):
        self.handler.close()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_error_codes_by_exception_type(self):
        cases = [
            (InputMissingError("Please paste the statement text."), "I001", "input"),
            (UnsupportedDocumentError("a.txt", "text/plain"), "I002", "input"),
            (ExtractionFailure("quota exceeded"), "E001", "extraction"),
            (ExtractionFailure("nothing found", empty_result=True), "E002", "extraction"),
            (MalformedRowError("invalid movement", 3, field="movement"), "V001", "data_validation"),
            (EmptyExportError(), "X001", "export"),
        ]
        for exception, code, category in cases:
            detail = handle_statement_error(self.handler, exception)
            self.assertEqual(detail.error_code, code)
            self.assertEqual(detail.category, category)
            self.assertEqual(detail.message, exception.user_message)

    def test_malformed_row_details(self):
        detail = handle_statement_error(
            self.handler, MalformedRowError("invalid balance", 0, field="balance", raw_value="'x'")
        )
        self.assertEqual(detail.row_index, 0)
        self.assertEqual(detail.field_name, "balance")
        self.assertEqual(detail.raw_value, "'x'")
        self.assertEqual(detail.message, "Row 1: invalid balance")

    def test_json_log_files_written(self):
        self.handler.log_error("boom", "ORACLE_REQUEST_FAILED", ErrorCategory.EXTRACTION,
                               context={'bank': 'Davivienda'})
        self.handler.log_warning("careful", "MALFORMED_ROW", ErrorCategory.DATA_VALIDATION)

        log_files = sorted(p.name for p in Path(self.temp_dir).iterdir())
        self.assertEqual(len(log_files), 2)

        error_log = next(Path(self.temp_dir).glob("errors_*.jsonl"))
        entries = [json.loads(line) for line in error_log.read_text().splitlines()]
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0]['error_code'], "E001")
        self.assertEqual(entries[0]['context'], {'bank': 'Davivienda'})

    def test_summary(self):
        self.handler.log_error("a", "MALFORMED_ROW", ErrorCategory.DATA_VALIDATION)
        self.handler.log_error("b", "EMPTY_EXPORT", ErrorCategory.EXPORT)
        self.handler.log_warning("c", "MALFORMED_ROW")

        summary = self.handler.get_error_summary()
        self.assertEqual(summary['total_errors'], 2)
        self.assertEqual(summary['total_warnings'], 1)
        self.assertEqual(summary['errors_by_category'], {'data_validation': 1, 'export': 1})
        self.assertEqual(summary['last_error'], "b")

    def test_unknown_error_type_gets_fallback_code(self):
        detail = self.handler.log_error("odd", "SOMETHING_ELSE")
        self.assertEqual(detail.error_code, "S999")
