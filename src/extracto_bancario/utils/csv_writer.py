"""CSV export writer producing the pipe-delimited statement format."""

import io
import logging
import os
import re
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from ..models.core import Bank, EntityOption, ExportResult, Transaction
from ..models.errors import EmptyExportError, MalformedRowError
from .validation import ValidationEngine, coerce_amount


logger = logging.getLogger(__name__)


class CSVWriter:
    """Serializes transactions into the export format.

    Output is UTF-8 with a byte-order-mark, ``|`` delimited, with amounts
    using a decimal comma and the detail column always double-quoted.
    """

    HEADERS = ['Fecha', 'Detalle', 'Movimiento', 'Saldo', 'Entidad']
    DELIMITER = '|'
    LINE_TERMINATOR = '\n'
    BOM = '\ufeff'
    CENTS = Decimal('0.01')

    def __init__(self):
        self.validation_engine = ValidationEngine()

    def encode(self, transactions: Sequence[Transaction], entity: EntityOption) -> bytes:
        """
        Render transactions as CSV bytes

        Args:
            transactions: Validated transactions in statement order
            entity: Owner tag appended to every row

        Returns:
            The complete file content, BOM included
        """
        if not transactions:
            raise EmptyExportError()

        entity = EntityOption.from_label(entity)

        lines = [self.DELIMITER.join(self.HEADERS)]
        for index, transaction in enumerate(transactions):
            errors = self.validation_engine.validate_transaction(transaction)
            if errors:
                raise MalformedRowError('; '.join(errors), index)
            lines.append(self._format_row(transaction, entity))

        content = self.BOM + self.LINE_TERMINATOR.join(lines)
        return content.encode('utf-8')

    def export(self, transactions: Sequence[Transaction], entity: EntityOption,
               bank: Bank, on_date: Optional[date] = None) -> ExportResult:
        """Encode transactions and name the file after the bank and date"""
        content = self.encode(transactions, entity)
        filename = self.build_filename(bank, on_date)
        logger.info(f"Encoded {len(transactions)} transactions for {filename}")
        return ExportResult(filename=filename, content=content, row_count=len(transactions))

    def write_export(self, result: ExportResult, output_directory: str) -> str:
        """
        Write an export to disk

        Args:
            result: Export produced by ``export``
            output_directory: Directory to write into, created if missing

        Returns:
            Path of the written file
        """
        os.makedirs(output_directory, exist_ok=True)
        output_path = os.path.join(output_directory, result.filename)

        with open(output_path, 'wb') as f:
            f.write(result.content)

        logger.info(f"Wrote {result.row_count} transactions to {output_path}")
        return output_path

    @staticmethod
    def build_filename(bank: Bank, on_date: Optional[date] = None) -> str:
        """Filename like ``extracto_Banco_Popular_2024-01-31.csv``"""
        bank = Bank.from_label(bank)
        if on_date is None:
            on_date = datetime.now(timezone.utc).date()
        bank_part = re.sub(r'\s', '_', bank.value)
        return f"extracto_{bank_part}_{on_date.isoformat()}.csv"

    @classmethod
    def format_amount(cls, amount: Decimal) -> str:
        """Two decimals, decimal comma, no thousands separator"""
        amount = Decimal(str(amount))
        with localcontext() as ctx:
            # room for every integer digit plus the two decimals
            ctx.prec = max(ctx.prec, amount.adjusted() + 3)
            quantized = amount.quantize(cls.CENTS, rounding=ROUND_HALF_UP)
        if quantized == 0:
            quantized = abs(quantized)
        return format(quantized, 'f').replace('.', ',')

    @staticmethod
    def quote_detail(detail: str) -> str:
        return '"' + detail.replace('"', '""') + '"'

    def _format_row(self, transaction: Transaction, entity: EntityOption) -> str:
        return self.DELIMITER.join([
            transaction.date,
            self.quote_detail(transaction.detail),
            self.format_amount(transaction.movement),
            self.format_amount(transaction.balance),
            entity.value,
        ])

    def read_export(self, source: Union[str, bytes]) -> Tuple[List[Transaction], EntityOption]:
        """
        Load a previously written export back into transactions

        Args:
            source: Path to an export file or its raw bytes

        Returns:
            The transactions and the entity tag of the export
        """
        if isinstance(source, bytes):
            buffer = io.BytesIO(source)
        else:
            buffer = source

        frame = pd.read_csv(
            buffer,
            sep=self.DELIMITER,
            quotechar='"',
            doublequote=True,
            dtype=str,
            keep_default_na=False,
            encoding='utf-8-sig',
        )

        if list(frame.columns) != self.HEADERS:
            raise ValueError(f"Unexpected export header: {list(frame.columns)}")
        if frame.empty:
            raise EmptyExportError("The export contains no transactions.")

        entities = set(frame['Entidad'])
        if len(entities) != 1:
            raise ValueError(f"Export mixes entity tags: {sorted(entities)}")

        transactions = [
            Transaction(
                date=row['Fecha'],
                detail=row['Detalle'],
                movement=coerce_amount(row['Movimiento']),
                balance=coerce_amount(row['Saldo']),
            )
            for row in frame.to_dict('records')
        ]
        return transactions, EntityOption.from_label(entities.pop())
