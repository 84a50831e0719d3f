"""Abstract base class for vector-store backends.

Adding a new backend (Qdrant, pgvector …) only requires subclassing
:class:`VectorStoreBase` and implementing the abstract coroutines.  The
rest of the retrieval stack is backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docqa.retrieval.models import MetadataFilter, VectorMatch, VectorRecord


class VectorStoreBase(ABC):
    """Backend-agnostic async vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    distance_metric:
        Metric the backend ranks by (``"cosine"``, ``"l2"`` or ``"ip"``).
        The retrieval layer uses it to turn distances into similarities.
    """

    def __init__(self, collection_name: str, distance_metric: str = "cosine") -> None:
        self.collection_name = collection_name
        self.distance_metric = distance_metric

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or replace *records* in one batched call."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorMatch]:
        """Return up to *k* matches ranked by ascending distance."""
        ...

    @abstractmethod
    async def delete(self, filters: list[MetadataFilter]) -> None:
        """Delete every entry matching all *filters*.  Deleting nothing is not an error."""
        ...

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored entries."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
