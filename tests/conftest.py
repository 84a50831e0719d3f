"""Shared pytest configuration, fakes, and fixtures.

The fakes stand in for the remote embedding model and the vector index so
the whole pipeline runs in-process without Chroma or an LLM server.
"""

from __future__ import annotations

import math
import re
import zlib

import pytest
from langchain_core.embeddings import Embeddings

from docqa.documents import DocumentCoordinator, DocumentRegistry
from docqa.ingestion.chunker import TextChunker
from docqa.ingestion.embedder import EmbeddingGateway
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import MetadataFilter, VectorMatch, VectorRecord
from docqa.retrieval.retriever import RetrievalIndex


# ── Fakes ───────────────────────────────────────────────────────────────

_WORD_RE = re.compile(r"[a-z]+")


class BagOfWordsEmbeddings(Embeddings):
    """Deterministic hashed bag-of-words vectors.

    Texts sharing words end up close in cosine space, which is enough to
    exercise ranking and thresholds.
    """

    def __init__(self, dim: int = 256) -> None:
        self.dim = dim

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for word in _WORD_RE.findall(text.lower()):
            vec[zlib.crc32(word.encode()) % self.dim] += 1.0
        norm = math.sqrt(sum(v * v for v in vec)) or 1.0
        return [v / norm for v in vec]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


def _cosine_distance(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return 1.0 - (dot / norm if norm else 0.0)


def _matches(record: VectorRecord, filters: list[MetadataFilter]) -> bool:
    meta = record.metadata.model_dump()
    return all(meta.get(f.field) == f.value for f in filters if f.operator == "eq")


class InMemoryVectorStore(VectorStoreBase):
    """Cosine-metric store backed by a dict."""

    def __init__(self) -> None:
        super().__init__("test-collection", "cosine")
        self.records: dict[str, VectorRecord] = {}
        self.upsert_calls = 0
        self.healthy = True

    async def upsert(self, records: list[VectorRecord]) -> None:
        self.upsert_calls += 1
        for record in records:
            self.records[record.id] = record

    async def query(
        self,
        vector: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorMatch]:
        candidates = [r for r in self.records.values() if _matches(r, filters or [])]
        ranked = sorted(candidates, key=lambda r: _cosine_distance(vector, r.vector))
        return [
            VectorMatch(
                id=r.id,
                text=r.text,
                metadata=r.metadata,
                distance=_cosine_distance(vector, r.vector),
            )
            for r in ranked[:k]
        ]

    async def delete(self, filters: list[MetadataFilter]) -> None:
        for record_id in [rid for rid, r in self.records.items() if _matches(r, filters)]:
            del self.records[record_id]

    async def count(self) -> int:
        return len(self.records)

    async def health_check(self) -> bool:
        return self.healthy

    def document_ids(self) -> set[str]:
        return {r.metadata.document_id for r in self.records.values()}


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def embeddings() -> BagOfWordsEmbeddings:
    return BagOfWordsEmbeddings()


@pytest.fixture()
def embedder(embeddings: BagOfWordsEmbeddings) -> EmbeddingGateway:
    return EmbeddingGateway(embeddings, batch_size=4)


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture()
def index(store: InMemoryVectorStore, embedder: EmbeddingGateway) -> RetrievalIndex:
    return RetrievalIndex(store, embedder, default_k=3, min_similarity=0.2)


@pytest.fixture()
def registry() -> DocumentRegistry:
    return DocumentRegistry()


@pytest.fixture()
def coordinator(registry: DocumentRegistry, index: RetrievalIndex) -> DocumentCoordinator:
    return DocumentCoordinator(registry, index, chunker=TextChunker(chunk_size=20, chunk_overlap=5))
