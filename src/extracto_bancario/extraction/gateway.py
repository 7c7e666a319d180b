"""Gateway between the session and the extraction oracle."""

import logging
import time
from typing import List, Optional

from .base import ExtractionOracle
from ..models.core import Bank, ExtractionResult, StatementInput, Transaction
from ..models.errors import ExtractionFailure, InputMissingError, StatementError
from ..utils.validation import ValidationEngine


logger = logging.getLogger(__name__)


class ExtractionGateway:
    """Runs one oracle call per statement and returns validated transactions.

    There are no retries and no caching. Any oracle failure becomes an
    ``ExtractionFailure``; invalid rows raise ``MalformedRowError`` under
    the default policy. Nothing partial is returned on failure.
    """

    def __init__(self, oracle: ExtractionOracle,
                 validation_engine: Optional[ValidationEngine] = None):
        self.oracle = oracle
        self.validation_engine = validation_engine or ValidationEngine()

    def extract(self, statement: Optional[StatementInput], bank: Bank) -> List[Transaction]:
        return self.extract_result(statement, bank).transactions

    def extract_result(self, statement: Optional[StatementInput], bank: Bank) -> ExtractionResult:
        """Like ``extract``, also returning the warnings for rows skipped in this call"""
        if statement is None:
            raise InputMissingError("No statement text or document was provided")
        bank = Bank.from_label(bank)
        kind = "document" if statement.is_document else "text"

        logger.info(f"Extracting transactions for {bank.value} from {kind} input")
        start_time = time.time()

        try:
            rows = self.oracle.extract_rows(statement, bank)
        except StatementError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected oracle error for {bank.value}: {e}")
            raise ExtractionFailure(f"The extraction service failed: {e}") from e

        if not isinstance(rows, list):
            raise ExtractionFailure("The extraction service response has no transaction list.")
        if not rows:
            raise ExtractionFailure(
                "No transactions were found. Check the selected bank and the statement.",
                empty_result=True,
            )

        transactions, warnings = self.validation_engine.validate_rows(rows)
        if not transactions:
            raise ExtractionFailure(
                "None of the extracted rows were valid transactions.", empty_result=True
            )

        logger.info(
            f"Extracted {len(transactions)} transactions for {bank.value} "
            f"in {time.time() - start_time:.2f}s ({len(warnings)} rows skipped)"
        )
        return ExtractionResult(transactions=transactions, warnings=warnings)
