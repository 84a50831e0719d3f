"""In-process document registry.

The registry is a convenience cache of what is queryable; the vector
index is authoritative.  It is created once at application start-up and
injected wherever it is needed.
"""

from __future__ import annotations

import asyncio
from typing import Any

from docqa.documents.models import Document


class DocumentRegistry:
    """Lock-guarded map of document id to :class:`Document`."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def add(self, document: Document) -> None:
        async with self._lock:
            if document.id in self._documents:
                raise KeyError(f"Document {document.id!r} already registered")
            self._documents[document.id] = document

    async def update(self, document_id: str, **changes: Any) -> Document | None:
        """Replace the record with a copy carrying *changes*.

        Returns ``None`` when the document was removed in the meantime.
        """
        async with self._lock:
            current = self._documents.get(document_id)
            if current is None:
                return None
            updated = current.model_copy(update=changes)
            self._documents[document_id] = updated
            return updated

    async def remove(self, document_id: str) -> Document | None:
        async with self._lock:
            return self._documents.pop(document_id, None)

    def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def snapshot(self) -> list[Document]:
        """Snapshot of all documents, oldest upload first."""
        return sorted(self._documents.values(), key=lambda d: d.uploaded_at)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)
