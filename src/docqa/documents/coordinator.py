"""Document lifecycle — ingest (extract → chunk → index) and removal.

Each ingest runs its steps strictly in sequence.  Indexing starts only
once chunking has fully succeeded, so extraction or chunking failures
never leave entries in the vector index.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from docqa.config import settings
from docqa.documents.models import Document, DocumentStatus
from docqa.errors import DocQAError, DocumentNotFound, FileTooLarge, ProcessingError, UnsupportedFormat
from docqa.ingestion.chunker import TextChunker
from docqa.ingestion.loader import SUPPORTED_MIME_TYPES, extract_text, media_type

if TYPE_CHECKING:
    from docqa.documents.registry import DocumentRegistry
    from docqa.ingestion.chunker import Chunk
    from docqa.retrieval.retriever import RetrievalIndex

logger = logging.getLogger(__name__)

Extractor = Callable[[bytes, str], str]


class DocumentCoordinator:
    """Owns the document registry and keeps it in step with the index.

    Parameters
    ----------
    registry:
        Injected document store.
    index:
        Retrieval index the chunks are written to and deleted from.
    chunker:
        Text chunker; defaults to one built from the global settings.
    extractor:
        ``(bytes, mime_type) -> text`` function, run in a worker thread.
    max_file_size:
        Upload size limit in bytes.
    """

    def __init__(
        self,
        registry: DocumentRegistry,
        index: RetrievalIndex,
        *,
        chunker: TextChunker | None = None,
        extractor: Extractor = extract_text,
        max_file_size: int = settings.max_file_size,
    ) -> None:
        self._registry = registry
        self._index = index
        self._chunker = chunker or TextChunker()
        self._extract = extractor
        self.max_file_size = max_file_size

    def check_size(self, size: int) -> None:
        """Raise :class:`FileTooLarge` when *size* bytes exceeds the upload limit."""
        if size > self.max_file_size:
            raise FileTooLarge(f"File size exceeds {self.max_file_size // (1024 * 1024)}MB limit")

    async def ingest(self, data: bytes, mime_type: str, original_name: str) -> Document:
        """Process an upload end to end and return the ready document.

        Raises
        ------
        UnsupportedFormat
            Before anything is registered, for unknown mime types.
        FileTooLarge
            Before anything is registered, for oversize uploads.
        DocQAError
            Any failure while processing; the document is marked failed.
        """
        mime_type = media_type(mime_type)
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise UnsupportedFormat(f"Unsupported mime type: {mime_type!r}")
        self.check_size(len(data))

        document = Document(original_name=original_name, size_bytes=len(data), mime_type=mime_type)
        await self._registry.add(document)
        await self._registry.update(document.id, status=DocumentStatus.PROCESSING)
        logger.info("Processing document %s (%s)", original_name, document.id)

        try:
            text = await asyncio.to_thread(self._extract, data, mime_type)
            chunks = self._chunker.chunk(text, document.id, original_name)
            logger.info("Created %d chunks from %s", len(chunks), original_name)
            await self._index_or_rollback(document.id, chunks)
        except DocQAError as exc:
            await self._mark_failed(document.id, exc.message)
            raise
        except Exception as exc:
            logger.exception("Unexpected failure processing %s", original_name)
            await self._mark_failed(document.id, str(exc))
            raise ProcessingError() from exc

        ready = await self._registry.update(
            document.id,
            status=DocumentStatus.READY,
            processed_at=datetime.now(timezone.utc),
            chunk_count=len(chunks),
        )
        if ready is None:
            # Removed while indexing was in flight; drop what was just written.
            await self._index.delete_by_document(document.id)
            raise DocumentNotFound(f"Document {document.id} was deleted during processing")

        logger.info("Document %s ready with %d chunks", document.id, len(chunks))
        return ready

    async def remove(self, document_id: str) -> Document:
        """Delete a document's index entries, then its registry record.

        Raises
        ------
        DocumentNotFound
            If *document_id* is not registered.
        """
        document = self._registry.get(document_id)
        if document is None:
            raise DocumentNotFound(f"Document {document_id} not found")

        await self._index.delete_by_document(document_id)
        removed = await self._registry.remove(document_id)
        logger.info("Document deleted: %s", document_id)
        return removed or document

    def list(self) -> list[Document]:
        return self._registry.snapshot()

    def get(self, document_id: str) -> Document:
        document = self._registry.get(document_id)
        if document is None:
            raise DocumentNotFound(f"Document {document_id} not found")
        return document

    # -- internals ------------------------------------------------------------

    async def _index_or_rollback(self, document_id: str, chunks: list[Chunk]) -> None:
        try:
            await self._index.index(chunks)
        except Exception:
            try:
                await self._index.delete_by_document(document_id)
            except Exception:
                logger.warning("Rollback of partial index entries failed for %s", document_id, exc_info=True)
            raise

    async def _mark_failed(self, document_id: str, message: str) -> None:
        await self._registry.update(document_id, status=DocumentStatus.FAILED, error=message)
        logger.error("Document %s failed: %s", document_id, message)
