"""Abstract interface for extraction oracles."""

from abc import ABC, abstractmethod
from typing import Any, List

from ..models.core import Bank, StatementInput


class ExtractionOracle(ABC):
    """External service that proposes transaction rows for a statement.

    Implementations return loosely-typed rows (mappings with ``date``,
    ``detail``, ``movement`` and ``balance``) and raise ``ExtractionFailure``
    when the service cannot be reached or answers with something unusable.
    """

    @abstractmethod
    def extract_rows(self, statement: StatementInput, bank: Bank) -> List[Any]:
        """Return the raw rows proposed for the statement"""
        pass
