"""Document text extraction for the supported upload formats."""

from __future__ import annotations

import io
import logging

import docx
from pypdf import PdfReader

from docqa.errors import ExtractionFailed, UnsupportedFormat

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPE = "text/plain"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MIME_TYPES = frozenset({PDF_MIME_TYPE, TEXT_MIME_TYPE, DOCX_MIME_TYPE})


def media_type(content_type: str) -> str:
    """Return the bare, lower-cased media type of a ``Content-Type`` value.

    ``"text/plain; charset=utf-8"`` becomes ``"text/plain"``.
    """
    return content_type.split(";", 1)[0].strip().lower()


def extract_text(data: bytes, mime_type: str) -> str:
    """Return the plain text of an uploaded file.

    Parameters
    ----------
    data:
        Raw file bytes.
    mime_type:
        Declared content type of the upload.

    Raises
    ------
    UnsupportedFormat
        If *mime_type* is not one of :data:`SUPPORTED_MIME_TYPES`.
    ExtractionFailed
        If the bytes cannot be parsed as the declared format.
    """
    mime_type = media_type(mime_type)
    if mime_type == TEXT_MIME_TYPE:
        return data.decode("utf-8", errors="replace")
    if mime_type == PDF_MIME_TYPE:
        return _extract_pdf(data)
    if mime_type == DOCX_MIME_TYPE:
        return _extract_docx(data)
    raise UnsupportedFormat(f"Unsupported mime type: {mime_type!r}")


def _extract_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except Exception as exc:
        logger.error("PDF extraction failed", exc_info=True)
        raise ExtractionFailed("Failed to extract text from PDF") from exc


def _extract_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)
    except Exception as exc:
        logger.error("DOCX extraction failed", exc_info=True)
        raise ExtractionFailed("Failed to extract text from DOCX") from exc
