"""Document records tracked by the registry."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class DocumentStatus(str, Enum):
    """Processing state of an uploaded document.

    ``uploaded → processing → ready | failed``; deletion removes the record.
    """

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


class Document(BaseModel):
    """An uploaded document and its processing outcome."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    original_name: str
    size_bytes: int = Field(ge=0)
    mime_type: str
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: datetime | None = None
    chunk_count: int | None = None
    status: DocumentStatus = DocumentStatus.UPLOADED
    error: str | None = None
