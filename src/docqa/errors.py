"""Error taxonomy shared by every layer.

Each error carries a stable ``code`` and an HTTP-style ``status_code`` so
the serving layer can translate failures without inspecting messages.
Collaborator exceptions are wrapped at the boundary where they occur
(``raise EmbeddingUnavailable(...) from exc``).
"""

from __future__ import annotations


class DocQAError(Exception):
    """Base class for all domain errors."""

    code = "PROCESSING_ERROR"
    status_code = 500
    default_message = "Processing error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class EmptyDocument(DocQAError):
    code = "EMPTY_DOCUMENT"
    status_code = 400
    default_message = "Document contains no text"


class UnsupportedFormat(DocQAError):
    code = "UNSUPPORTED_FORMAT"
    status_code = 415
    default_message = "File format not supported. Use PDF, TXT, or DOCX"


class ExtractionFailed(DocQAError):
    code = "EXTRACTION_FAILED"
    status_code = 422
    default_message = "Failed to extract text from document"


class FileTooLarge(DocQAError):
    code = "FILE_TOO_LARGE"
    status_code = 413
    default_message = "File size exceeds the upload limit"


class InvalidQuestion(DocQAError):
    code = "INVALID_QUESTION"
    status_code = 400
    default_message = "Question must be a non-empty string"


class InvalidInput(DocQAError):
    """Request body or form fields failed schema validation."""

    code = "INVALID_INPUT"
    status_code = 400
    default_message = "Invalid request"


class DocumentNotFound(DocQAError):
    code = "DOCUMENT_NOT_FOUND"
    status_code = 404
    default_message = "Document not found"


class EmbeddingUnavailable(DocQAError):
    code = "EMBEDDING_UNAVAILABLE"
    status_code = 503
    default_message = "Embedding service is not available"


class IndexUnavailable(DocQAError):
    code = "INDEX_UNAVAILABLE"
    status_code = 503
    default_message = "Vector database error"


class NoRelevantContext(DocQAError):
    """Query succeeded but nothing cleared the similarity floor."""

    code = "NO_RELEVANT_CONTEXT"
    status_code = 404
    default_message = "No relevant information found in uploaded documents"


class GenerationTimeout(DocQAError):
    code = "GENERATION_TIMEOUT"
    status_code = 504
    default_message = "AI processing timeout"


class GenerationFailed(DocQAError):
    code = "GENERATION_FAILED"
    status_code = 502
    default_message = "AI service is not available"


class ProcessingError(DocQAError):
    """Catch-all for unexpected failures during ingest or query."""
