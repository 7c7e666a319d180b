"""Extraction of transactions through an external oracle"""

from .base import ExtractionOracle
from .gateway import ExtractionGateway
from .openai_oracle import OpenAIExtractionOracle

__all__ = ['ExtractionOracle', 'ExtractionGateway', 'OpenAIExtractionOracle']
