"""Embedding gateway — text to vectors, with bounded concurrent batching."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from docqa.config import settings
from docqa.errors import EmbeddingUnavailable

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

_HEALTH_PROBE = "ping"


def get_embedding_function() -> Embeddings:
    """Return the configured embedding model.

    When ``settings.embedding_base_url`` is set the embeddings are computed
    by a remote OpenAI-compatible endpoint (Ollama exposes one under
    ``/v1``).  Otherwise a local sentence-transformer is loaded.
    """
    if settings.embedding_base_url:
        from langchain_openai import OpenAIEmbeddings

        logger.info("Using remote embedding endpoint: %s", settings.embedding_base_url)
        return OpenAIEmbeddings(
            model=settings.embedding_model,
            base_url=settings.embedding_base_url,
            api_key=settings.openai_api_key or "EMPTY",
            # Non-OpenAI servers take raw strings, not tiktoken ids.
            check_embedding_ctx_length=False,
        )

    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(model_name=settings.embedding_model)


class EmbeddingGateway:
    """Async facade over a LangChain :class:`Embeddings` model.

    Parameters
    ----------
    embeddings:
        The embedding model.  When *None*, :func:`get_embedding_function`
        builds one from the global settings.
    batch_size:
        Number of texts embedded concurrently.  Groups are processed one
        after another so at most *batch_size* requests are in flight.
    """

    def __init__(
        self,
        embeddings: Embeddings | None = None,
        *,
        batch_size: int = settings.embedding_batch_size,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._embeddings = embeddings if embeddings is not None else get_embedding_function()
        self.batch_size = batch_size

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises
        ------
        EmbeddingUnavailable
            If the embedding model is unreachable or errors.
        """
        try:
            return await self._embeddings.aembed_query(text)
        except Exception as exc:
            logger.error("Embedding generation failed", exc_info=True)
            raise EmbeddingUnavailable() from exc

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, returning one vector per input in the same order.

        Groups of ``batch_size`` run concurrently, one group at a time.  The
        first failure in a group cancels the requests still in flight.
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            group = texts[start : start + self.batch_size]
            tasks = [asyncio.ensure_future(self.embed(text)) for text in group]
            try:
                vectors.extend(await asyncio.gather(*tasks))
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise
            logger.debug("Embedded batch %d (%d texts)", start // self.batch_size + 1, len(group))
        return vectors

    async def health_check(self) -> bool:
        """Return ``True`` when the embedding model answers a probe."""
        try:
            vector = await self._embeddings.aembed_query(_HEALTH_PROBE)
            return bool(vector)
        except Exception:
            logger.warning("Embedding health-check failed", exc_info=True)
            return False
