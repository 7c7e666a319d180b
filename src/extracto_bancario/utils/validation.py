"""Validation engine for rows returned by the extraction oracle."""

import logging
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Tuple

from ..models.core import Transaction
from ..models.errors import MalformedRowError


logger = logging.getLogger(__name__)

# Currency markers seen on Colombian statements
_CURRENCY_RE = re.compile(r'COP|USD|EUR|[\$€£]', re.IGNORECASE)
_NON_FINITE_RE = re.compile(r'[+-]?(nan|inf|infinity)', re.IGNORECASE)
_NUMERIC_BODY_RE = re.compile(r'[\d.,]*\d[\d.,]*')


def _normalize_separators(cleaned: str) -> str:
    """Rewrite a digits-and-separators string to use '.' as decimal point"""
    last_dot = cleaned.rfind('.')
    last_comma = cleaned.rfind(',')

    # Both present: the rightmost one is the decimal separator
    if last_dot >= 0 and last_comma >= 0:
        decimal_sep, thousands_sep = ('.', ',') if last_dot > last_comma else (',', '.')
        if cleaned.count(decimal_sep) > 1:
            raise ValueError(f"Ambiguous separators in amount: {cleaned}")
        return cleaned.replace(thousands_sep, '').replace(decimal_sep, '.')

    if last_dot < 0 and last_comma < 0:
        return cleaned

    sep = '.' if last_dot >= 0 else ','
    if cleaned.count(sep) > 1:
        return cleaned.replace(sep, '')

    integer, fraction = cleaned.split(sep)
    # 1.234 / 1,234 are thousands; 0.500 stays a fraction
    if len(fraction) == 3 and integer.strip('0'):
        return integer + fraction
    return f"{integer or '0'}.{fraction}"


def coerce_amount(value: Any) -> Decimal:
    """Convert a loosely-typed amount to a finite Decimal.

    Accepts ints, floats, Decimals and strings using either '.' or ',' as
    decimal separator, with optional currency markers, parentheses or a
    trailing minus for negatives. Raises ValueError when the value cannot be
    read or is not finite.
    """
    if value is None:
        raise ValueError("Amount is missing")
    if isinstance(value, bool):
        raise ValueError("Amount must be a number, not a boolean")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        amount = _parse_amount_string(value)
    else:
        raise ValueError(f"Unsupported amount type: {type(value).__name__}")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got {value!r}")
    return amount


def _parse_amount_string(amount_str: str) -> Decimal:
    text = amount_str.strip()
    if not text:
        raise ValueError("Amount string cannot be empty")

    if _NON_FINITE_RE.fullmatch(text):
        return Decimal(text.lower())

    cleaned = re.sub(r'\s+', '', _CURRENCY_RE.sub('', text))

    is_negative = False
    if cleaned.startswith('(') and cleaned.endswith(')'):
        cleaned = cleaned[1:-1]
        is_negative = True
    if cleaned.endswith('-'):
        cleaned = cleaned[:-1]
        is_negative = True
    elif cleaned.endswith('+'):
        cleaned = cleaned[:-1]
    if cleaned.startswith('-'):
        cleaned = cleaned[1:]
        is_negative = True
    elif cleaned.startswith('+'):
        cleaned = cleaned[1:]

    if not _NUMERIC_BODY_RE.fullmatch(cleaned):
        raise ValueError(f"Unable to parse amount: {amount_str}")

    try:
        amount = Decimal(_normalize_separators(cleaned))
    except InvalidOperation as e:
        raise ValueError(f"Unable to parse amount: {amount_str}") from e

    return amount.copy_negate() if is_negative else amount


class ValidationEngine:
    """Turns untrusted oracle rows into canonical transactions.

    With the ``reject`` policy a single malformed row fails the whole batch.
    With ``skip`` malformed rows are dropped and reported in ``warnings``.
    """

    TEXT_FIELDS = ('date', 'detail')
    AMOUNT_FIELDS = ('movement', 'balance')
    POLICIES = ('reject', 'skip')

    def __init__(self, policy: str = 'reject'):
        if policy not in self.POLICIES:
            raise ValueError(f"Unknown malformed row policy: {policy}")
        self.policy = policy
        self.warnings: List[str] = []

    def validate(self, rows: Iterable[Any]) -> List[Transaction]:
        """Validate every row, preserving input order"""
        transactions, self.warnings = self.validate_rows(rows)
        return transactions

    def validate_rows(self, rows: Iterable[Any]) -> Tuple[List[Transaction], List[str]]:
        """Validate every row and return the transactions with this call's warnings"""
        transactions = []
        warnings = []

        for index, row in enumerate(rows):
            try:
                transactions.append(self.build_transaction(row, index))
            except MalformedRowError as e:
                if self.policy == 'reject':
                    logger.warning(f"Rejecting batch: {e.user_message}")
                    raise
                logger.warning(f"Skipping malformed row: {e.user_message}")
                warnings.append(e.user_message)

        return transactions, warnings

    def build_transaction(self, row: Any, index: Optional[int] = None) -> Transaction:
        """Build a Transaction from a single row or raise MalformedRowError"""
        if not isinstance(row, Mapping):
            raise MalformedRowError("row is not an object", index)

        text_values = {name: self._require_text(row, name, index) for name in self.TEXT_FIELDS}

        amounts = {}
        for name in self.AMOUNT_FIELDS:
            if name not in row:
                raise MalformedRowError(f"missing field '{name}'", index, field=name)
            try:
                amounts[name] = coerce_amount(row[name])
            except ValueError as e:
                raise MalformedRowError(
                    f"invalid {name}: {e}", index, field=name, raw_value=repr(row[name])
                ) from e

        return Transaction(
            date=text_values['date'],
            detail=text_values['detail'],
            movement=amounts['movement'],
            balance=amounts['balance'],
        )

    def _require_text(self, row: Mapping, name: str, index: Optional[int]) -> str:
        value = row.get(name)
        if value is None:
            raise MalformedRowError(f"missing field '{name}'", index, field=name)
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise MalformedRowError(
                f"{name} must be text", index, field=name, raw_value=repr(value)
            )
        value = str(value)
        if not value.strip():
            raise MalformedRowError(f"{name} cannot be empty", index, field=name)
        return value

    def validate_transaction(self, transaction: Transaction) -> List[str]:
        """Validate an already-built transaction and return list of errors"""
        errors = []

        if not isinstance(transaction.date, str) or not transaction.date.strip():
            errors.append("Date cannot be empty")

        if not isinstance(transaction.detail, str) or not transaction.detail.strip():
            errors.append("Detail cannot be empty")

        for name in self.AMOUNT_FIELDS:
            value = getattr(transaction, name)
            if isinstance(value, bool) or not isinstance(value, (Decimal, int, float)):
                errors.append(f"Invalid {name}: must be a number")
            elif not Decimal(str(value)).is_finite():
                errors.append(f"Invalid {name}: must be finite")

        return errors
