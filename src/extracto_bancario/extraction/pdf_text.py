"""Local text extraction from PDF statements."""

import io
import logging

import pdfplumber

from ..models.errors import ExtractionFailure


logger = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """Return the text of every page of a PDF, pages separated by blank lines"""
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            logger.debug(f"Reading PDF text from {len(pdf.pages)} pages")
            pages = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:  # noqa: BLE001
        raise ExtractionFailure(f"Could not read the PDF document: {e}") from e

    text = "\n\n".join(page.strip() for page in pages if page.strip())
    if not text:
        raise ExtractionFailure("The PDF document has no readable text.")
    return text
