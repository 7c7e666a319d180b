"""Prompt and response schema construction for the extraction oracle."""

from typing import Any, Dict, Mapping, Optional

from ..models.core import Bank


BEGIN = "BEGIN_STATEMENT\n"
END = "\nEND_STATEMENT"

DOCUMENT_REQUEST = "Extract every transaction from the attached bank statement."

# Known layout quirks per bank; overridable from configuration
DEFAULT_BANK_HINTS: Dict[Bank, str] = {
    Bank.POPULAR: "Debits and credits may be listed in separate columns.",
    Bank.OCCIDENTE: "Amounts usually use '.' for thousands and ',' for decimals.",
    Bank.DAVIVIENDA: "Amounts usually use ',' for thousands and '.' for decimals.",
    Bank.BOGOTA: "Debits may be shown with a trailing minus sign.",
    Bank.BBVA: "Amounts usually use '.' for thousands and ',' for decimals.",
    Bank.BANCOOMEVA: "Debits and credits may be listed in separate columns.",
    Bank.BANCOLOMBIA: "Amounts usually use ',' for thousands and '.' for decimals.",
    Bank.AVVILLAS: "Debits may be shown in parentheses.",
    Bank.AGRARIO: "Debits and credits may be listed in separate columns.",
}


def resolve_hint(bank: Bank, overrides: Optional[Mapping[str, str]] = None) -> str:
    """Return the configured hint for a bank, falling back to the default"""
    for label, hint in (overrides or {}).items():
        if Bank.from_label(label) is bank:
            return hint
    return DEFAULT_BANK_HINTS.get(bank, "")


def build_instructions(bank: Bank, hint: str = "") -> str:
    """System instructions for extracting rows from a statement of ``bank``"""
    lines = [
        f"You extract transactions from a bank statement issued by {bank.value}.",
        "Return every transaction in the order it appears in the statement.",
        "For each transaction report:",
        "- date: the date exactly as written in the statement",
        "- detail: the full description exactly as written",
        "- movement: the signed amount of the transaction; negative when it reduces the balance",
        "- balance: the running balance shown after the transaction",
        "Report movement and balance as plain numbers with '.' as decimal separator "
        "and no thousands separators.",
        "Do not include opening or closing balance lines, totals or page headers.",
        "If the statement contains no transactions, return an empty list.",
    ]
    if hint:
        lines.append(f"Notes for {bank.value}: {hint}")
    return "\n".join(lines)


def build_user_text(statement_text: str) -> str:
    """Wrap pasted statement text between fixed delimiters"""
    return f"{DOCUMENT_REQUEST}\n{BEGIN}{statement_text}{END}"


def build_response_format() -> Dict[str, Any]:
    """Strict JSON schema for ``{"transactions": [...]}``"""
    row_schema = {
        "type": "object",
        "properties": {
            "date": {"type": "string"},
            "detail": {"type": "string"},
            "movement": {"type": ["number", "string"]},
            "balance": {"type": ["number", "string"]},
        },
        "required": ["date", "detail", "movement", "balance"],
        "additionalProperties": False,
    }
    return {
        "type": "json_schema",
        "name": "statement_transactions",
        "schema": {
            "type": "object",
            "properties": {
                "transactions": {"type": "array", "items": row_schema},
            },
            "required": ["transactions"],
            "additionalProperties": False,
        },
        "strict": True,
    }
