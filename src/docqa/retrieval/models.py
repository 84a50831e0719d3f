"""Domain models for vector-index records, matches, and citations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class MetadataFilter(BaseModel):
    """Declarative metadata filter for vector-store queries and deletes.

    Attributes
    ----------
    field:
        The metadata key to filter on (e.g. ``"document_id"``).
    operator:
        Comparison operator — one of ``eq``, ``ne``, ``gt``, ``gte``,
        ``lt``, ``lte``, ``in``, ``nin``.
    value:
        The value (or list of values for ``in`` / ``nin``) to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    # -- helpers for common filters ------------------------------------------

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    @classmethod
    def one_of(cls, field: str, values: list[Any]) -> MetadataFilter:
        return cls(field=field, operator="in", value=values)


class ChunkMetadata(BaseModel):
    """Fixed metadata schema stored next to every chunk vector.

    Values coming back from the vector store are coerced here, so callers
    never deal with loosely typed dicts.  ``page_number`` is stored as ``0``
    when unknown because the store does not accept nulls.
    """

    document_id: str = ""
    filename: str = ""
    chunk_index: int = 0
    page_number: int = 0
    timestamp: str = ""

    @field_validator("document_id", "filename", "timestamp", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("chunk_index", "page_number", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int:
        return 0 if value is None else int(value)


class VectorRecord(BaseModel):
    """One entry written to the vector store."""

    id: str
    vector: list[float]
    text: str
    metadata: ChunkMetadata


class VectorMatch(BaseModel):
    """One nearest-neighbour hit returned by the vector store."""

    id: str
    text: str
    metadata: ChunkMetadata
    distance: float


class Citation(BaseModel):
    """A retrieved chunk annotated with its similarity and source.

    Attributes
    ----------
    document_id:
        Owning document of the chunk.
    filename:
        Original file name of the document.
    chunk_index:
        Ordinal position of the chunk within the document.
    page_number:
        Page number when known, otherwise ``None``.
    similarity_score:
        Similarity derived from the index distance (higher = more similar).
    excerpt_text:
        The chunk content.
    """

    document_id: str
    filename: str
    chunk_index: int
    page_number: int | None = None
    similarity_score: float
    excerpt_text: str = Field(default="")

    def short_ref(self) -> str:
        """Return a compact ``[filename§chunk]`` reference string."""
        return f"[{self.filename}§{self.chunk_index}]"
