"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import chromadb

from docqa.config import settings
from docqa.errors import IndexUnavailable
from docqa.retrieval.base import VectorStoreBase
from docqa.retrieval.models import ChunkMetadata, MetadataFilter, VectorMatch, VectorRecord

logger = logging.getLogger(__name__)

_OP_MAP = {
    "eq": "$eq",
    "ne": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "in": "$in",
    "nin": "$nin",
}


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field: {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using the async HTTP client.

    The client and collection are created on first use, so constructing
    the store never touches the network.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        HNSW space of the collection; only applied when the collection is
        first created.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = settings.distance_metric,
    ) -> None:
        super().__init__(collection_name, distance_metric)
        self._host = host
        self._port = port
        self._client: Any = None
        self._collection: Any = None
        self._init_lock = asyncio.Lock()

    async def _get_collection(self) -> Any:
        async with self._init_lock:
            if self._collection is None:
                self._client = await chromadb.AsyncHttpClient(host=self._host, port=self._port)
                self._collection = await self._client.get_or_create_collection(
                    name=self.collection_name,
                    metadata={"hnsw:space": self.distance_metric},
                )
                logger.info(
                    "Chroma collection %r ready at %s:%d", self.collection_name, self._host, self._port
                )
        return self._collection

    # -- VectorStoreBase overrides --------------------------------------------

    async def upsert(self, records: list[VectorRecord]) -> None:
        if not records:
            return
        try:
            collection = await self._get_collection()
            await collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.vector for r in records],
                documents=[r.text for r in records],
                metadatas=[r.metadata.model_dump() for r in records],
            )
        except Exception as exc:
            logger.error("Failed to upsert %d records into Chroma", len(records), exc_info=True)
            raise IndexUnavailable() from exc

    async def query(
        self,
        vector: list[float],
        *,
        k: int = 5,
        filters: list[MetadataFilter] | None = None,
    ) -> list[VectorMatch]:
        where = _build_chroma_where(filters) if filters else None
        try:
            collection = await self._get_collection()
            results = await collection.query(
                query_embeddings=[vector],
                n_results=k,
                where=where,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as exc:
            logger.error("Chroma query failed", exc_info=True)
            raise IndexUnavailable() from exc

        ids = (results.get("ids") or [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        return [
            VectorMatch(
                id=chunk_id,
                text=content or "",
                metadata=ChunkMetadata.model_validate(meta or {}),
                distance=float(dist),
            )
            for chunk_id, content, meta, dist in zip(ids, docs, metas, distances)
        ]

    async def delete(self, filters: list[MetadataFilter]) -> None:
        where = _build_chroma_where(filters)
        if where is None:
            raise ValueError("Refusing to delete without filters")
        try:
            collection = await self._get_collection()
            await collection.delete(where=where)
        except Exception as exc:
            logger.error("Chroma delete failed for %s", where, exc_info=True)
            raise IndexUnavailable() from exc

    async def count(self) -> int:
        try:
            collection = await self._get_collection()
            return await collection.count()
        except Exception as exc:
            logger.error("Chroma count failed", exc_info=True)
            raise IndexUnavailable() from exc

    async def health_check(self) -> bool:
        try:
            await self._get_collection()
            await self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
