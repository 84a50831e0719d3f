"""
Retrieval — vector storage, thresholded similarity search, and citations.

This module wraps the vector store behind a clean interface so that
the rest of the application never needs to know which DB is backing
retrieval.

Public surface
--------------
- :class:`RetrievalIndex` — index chunks, query with a similarity floor.
- :class:`VectorStoreBase` — abstract async backend.
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`Citation`, :class:`VectorRecord`, :class:`VectorMatch`,
  :class:`MetadataFilter` — data models.
"""

from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import ChunkMetadata, Citation, MetadataFilter, VectorMatch, VectorRecord
from docqa.retrieval.retriever import RetrievalIndex

__all__ = [
    "ChromaVectorStore",
    "ChunkMetadata",
    "Citation",
    "MetadataFilter",
    "RetrievalIndex",
    "VectorMatch",
    "VectorRecord",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from docqa.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
