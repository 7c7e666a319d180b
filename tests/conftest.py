"""Shared test doubles for the extraction oracle and the OpenAI client."""

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from extracto_bancario.extraction.base import ExtractionOracle


class StaticOracle(ExtractionOracle):
    """Returns canned rows (or raises) and records every call"""

    def __init__(self, rows: Optional[List[Any]] = None, error: Optional[Exception] = None):
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls = []

    def extract_rows(self, statement, bank):
        self.calls.append((statement, bank))
        if self.error is not None:
            raise self.error
        return self.rows


class OpenAIStub:
    """Minimal stand-in for ``openai.OpenAI`` exposing ``responses.create``"""

    def __init__(self, payload: Any = None, output_text: Optional[str] = None,
                 error: Optional[Exception] = None):
        self.calls: List[Dict[str, Any]] = []
        outer = self

        class _Responses:
            def create(self, **kwargs):
                outer.calls.append(kwargs)
                if error is not None:
                    raise error
                text = output_text if output_text is not None else json.dumps(payload)
                return SimpleNamespace(output_text=text)

        self.responses = _Responses()


SAMPLE_ROWS = [
    {"date": "01/01/2024", "detail": "ATM W/D", "movement": -50000, "balance": 150000},
    {"date": "02/01/2024", "detail": 'Pago "Nomina"', "movement": "1.250.000,00",
     "balance": "1.400.000,00"},
]


@pytest.fixture
def sample_rows():
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture
def static_oracle(sample_rows):
    return StaticOracle(rows=sample_rows)
