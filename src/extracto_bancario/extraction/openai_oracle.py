"""Extraction oracle backed by the OpenAI Responses API."""

import base64
import json
import logging
import os
import time
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from . import prompting
from .base import ExtractionOracle
from .pdf_text import extract_pdf_text
from ..models.core import Bank, ExtractorConfig, StatementInput
from ..models.errors import ExtractionFailure


logger = logging.getLogger(__name__)


def _extract_response_text(resp: Any) -> str:
    """Locate the text output of a Responses API result.

    Prefers ``resp.output_text`` and falls back to
    ``resp.output[0].content[0].text``.
    """
    text = getattr(resp, "output_text", None)
    if not text:
        output = getattr(resp, "output", None) or []
        content = getattr(output[0], "content", None) if output else None
        if content:
            text = getattr(content[0], "text", None)
    if not text or not isinstance(text, str):
        raise ExtractionFailure("The extraction service returned an empty response.")
    return text


class OpenAIExtractionOracle(ExtractionOracle):
    """Sends a statement to the model and returns the rows it proposes"""

    def __init__(self, config: ExtractorConfig, client: Optional[OpenAI] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            api_key = os.environ.get(self.config.api_key_env)
            if not api_key:
                raise ExtractionFailure(
                    f"{self.config.api_key_env} environment variable is required for extraction."
                )
            self._client = OpenAI(api_key=api_key, timeout=self.config.request_timeout)
        return self._client

    def extract_rows(self, statement: StatementInput, bank: Bank) -> List[Any]:
        hint = prompting.resolve_hint(bank, self.config.bank_hints)
        instructions = prompting.build_instructions(bank, hint)
        request_input = self.build_input(statement)

        t0 = time.perf_counter()
        try:
            resp = self.client.responses.create(
                model=self.config.model,
                instructions=instructions,
                input=request_input,
                text={"format": prompting.build_response_format()},
            )
        except OpenAIError as e:
            logger.error(f"Extraction request failed for {bank.value}: {e.__class__.__name__}")
            raise ExtractionFailure(f"The extraction service failed: {e}") from e

        latency_ms = (time.perf_counter() - t0) * 1000.0
        logger.info(f"Extraction response for {bank.value} received in {latency_ms:.0f} ms")

        return self.parse_response(_extract_response_text(resp))

    def build_input(self, statement: StatementInput) -> List[Dict[str, Any]]:
        """Build the user message carrying the statement"""
        if not statement.is_document:
            content = [{"type": "input_text", "text": prompting.build_user_text(statement.text)}]
        elif self.config.document_mode == "text":
            text = extract_pdf_text(statement.document)
            content = [{"type": "input_text", "text": prompting.build_user_text(text)}]
        else:
            encoded = base64.b64encode(statement.document).decode("ascii")
            content = [
                {
                    "type": "input_file",
                    "filename": statement.filename or "statement.pdf",
                    "file_data": f"data:{statement.mime_type};base64,{encoded}",
                },
                {"type": "input_text", "text": prompting.DOCUMENT_REQUEST},
            ]
        return [{"role": "user", "content": content}]

    @staticmethod
    def parse_response(text: str) -> List[Any]:
        """Decode ``{"transactions": [...]}`` from the model output"""
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExtractionFailure("The extraction service returned invalid JSON.") from e

        if not isinstance(decoded, dict) or not isinstance(decoded.get("transactions"), list):
            raise ExtractionFailure("The extraction service response has no transaction list.")
        return decoded["transactions"]
