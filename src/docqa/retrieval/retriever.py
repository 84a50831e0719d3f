"""Retrieval index — chunk indexing and thresholded similarity search.

This module is the **primary public interface** for retrieval.  It pairs
a :class:`VectorStoreBase` backend with the :class:`EmbeddingGateway` so
callers deal only in chunks, question text, and citations.

Usage::

    from docqa.retrieval.retriever import RetrievalIndex

    index = RetrievalIndex(store, embedder)
    await index.index(chunks)
    citations = await index.query("What do cats eat?", top_k=3)
    for c in citations:
        print(c.short_ref(), c.similarity_score)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from docqa.config import settings
from docqa.errors import NoRelevantContext
from docqa.retrieval.models import ChunkMetadata, Citation, MetadataFilter, VectorMatch, VectorRecord

if TYPE_CHECKING:
    from docqa.ingestion.chunker import Chunk
    from docqa.ingestion.embedder import EmbeddingGateway
    from docqa.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

# Distance → similarity, keyed by the index metric.  Chroma reports cosine
# and inner-product spaces as ``1 - x``; L2 is unbounded so it is squashed.
DISTANCE_TO_SIMILARITY: dict[str, Callable[[float], float]] = {
    "cosine": lambda distance: 1.0 - distance,
    "ip": lambda distance: 1.0 - distance,
    "l2": lambda distance: 1.0 / (1.0 + distance),
}


def similarity_converter(metric: str) -> Callable[[float], float]:
    """Return the distance-to-similarity function for *metric*."""
    try:
        return DISTANCE_TO_SIMILARITY[metric]
    except KeyError:
        raise ValueError(
            f"No similarity conversion for distance metric {metric!r}; "
            f"expected one of {sorted(DISTANCE_TO_SIMILARITY)}"
        ) from None


class RetrievalIndex:
    """Index chunks and answer similarity queries with citations.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    embedder:
        Gateway used to vectorise chunk contents and questions.
    default_k:
        Default number of neighbours requested by :meth:`query`.
    min_similarity:
        Default similarity floor; matches below it are discarded.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingGateway,
        *,
        default_k: int = settings.top_k_retrieval,
        min_similarity: float = settings.min_similarity,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._to_similarity = similarity_converter(store.distance_metric)
        self.default_k = default_k
        self.min_similarity = min_similarity

    # -- public API -----------------------------------------------------------

    async def index(self, chunks: list[Chunk]) -> None:
        """Embed *chunks* and upsert them into the store in one call."""
        if not chunks:
            return

        vectors = await self._embedder.embed_batch([c.content for c in chunks])
        timestamp = datetime.now(timezone.utc).isoformat()
        records = [
            VectorRecord(
                id=chunk.id,
                vector=vector,
                text=chunk.content,
                metadata=ChunkMetadata(
                    document_id=chunk.document_id,
                    filename=chunk.filename,
                    chunk_index=chunk.chunk_index,
                    page_number=chunk.page_number or 0,
                    timestamp=timestamp,
                ),
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]
        await self._store.upsert(records)
        logger.info("Indexed %d chunks for document %s", len(records), chunks[0].document_id)

    async def query(
        self,
        question: str,
        *,
        top_k: int | None = None,
        min_similarity: float | None = None,
    ) -> list[Citation]:
        """Return citations for the chunks most similar to *question*.

        Order follows the store's nearest-neighbour ranking.

        Raises
        ------
        NoRelevantContext
            If no match clears the similarity floor.
        """
        k = top_k or self.default_k
        floor = self.min_similarity if min_similarity is None else min_similarity

        vector = await self._embedder.embed(question)
        matches = await self._store.query(vector, k=k)
        citations = self._to_citations(matches, floor)

        if not citations:
            raise NoRelevantContext()

        logger.info("Found %d relevant chunks (of %d candidates)", len(citations), len(matches))
        return citations

    async def delete_by_document(self, document_id: str) -> None:
        """Remove every entry of *document_id*; a no-op if none exist."""
        await self._store.delete([MetadataFilter.equals("document_id", document_id)])
        logger.info("Deleted chunks for document %s", document_id)

    async def count(self) -> int:
        return await self._store.count()

    async def health_check(self) -> bool:
        return await self._store.health_check()

    # -- internals ------------------------------------------------------------

    def _to_citations(self, matches: list[VectorMatch], floor: float) -> list[Citation]:
        citations: list[Citation] = []
        for match in matches:
            similarity = self._to_similarity(match.distance)
            if similarity < floor:
                continue
            meta = match.metadata
            citations.append(
                Citation(
                    document_id=meta.document_id,
                    filename=meta.filename,
                    chunk_index=meta.chunk_index,
                    page_number=meta.page_number or None,
                    similarity_score=similarity,
                    excerpt_text=match.text,
                )
            )
        return citations
