"""
Resume text extraction and truncation.

PDFs go through PyMuPDF; anything else is decoded as UTF-8 text. There is no
dedicated path for legacy binary word-processor formats.
"""
from typing import Optional

import fitz  # PyMuPDF

from .exceptions import ExtractionFailed

PDF_MAGIC = b"%PDF-"
DEFAULT_TEXT_BUDGET = 12000


def is_pdf(data: bytes, content_type: Optional[str]) -> bool:
    """Declared type mentions pdf, or the bytes carry the PDF header."""
    if content_type and "pdf" in content_type.lower():
        return True
    return data[:1024].lstrip().startswith(PDF_MAGIC)


def pdf_to_text(pdf_bytes: bytes) -> str:
    """
    Extract plain text from every page of a PDF.

    Raises:
        ExtractionFailed: The document could not be opened or read
    """
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as pdf_document:
            pages = [page.get_text("text") for page in pdf_document]
    except Exception as e:
        raise ExtractionFailed(f"Could not read PDF: {e}", original_error=e) from e
    if not pages:
        raise ExtractionFailed("Could not read PDF: no pages found")
    return "\n".join(pages)


def extract_text(data: bytes, content_type: Optional[str]) -> str:
    if is_pdf(data, content_type):
        return pdf_to_text(data)
    return data.decode("utf-8", errors="replace")


def truncate_text(text: str, budget: int = DEFAULT_TEXT_BUDGET) -> str:
    """Prefix slice bounding the prompt size; no sentence-boundary awareness."""
    return text[:budget]
