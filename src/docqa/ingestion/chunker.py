"""Sentence-aligned text chunking with overlap.

Text is normalised, split into sentences on terminal punctuation followed
by whitespace, then greedily packed into chunks bounded by an estimated
token budget.  Consecutive chunks share a suffix of sentences so context
carries across boundaries.

The sentence splitter is a heuristic: abbreviations (``"e.g. foo"``) and
numbers followed by a space after a period (``"v2. Next"``) are split as
if they ended a sentence.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from docqa.config import settings
from docqa.errors import EmptyDocument

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")


class Chunk(BaseModel):
    """An immutable, retrievable span of a document's text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    document_id: str
    filename: str
    content: str
    chunk_index: int = Field(ge=0)
    total_chunks_in_document: int = Field(gt=0)
    page_number: int | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk content must not be empty")
        return value


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_sentences(text: str) -> list[str]:
    """Split normalised *text* at ``.``, ``!`` or ``?`` followed by whitespace."""
    return [s for s in _SENTENCE_BOUNDARY_RE.split(text) if s.strip()]


def estimate_tokens(text: str) -> int:
    """Cheap token estimate: one token per four characters, rounded up."""
    return math.ceil(len(text) / 4)


class TextChunker:
    """Greedy sentence packer with a sentence-suffix overlap.

    Parameters
    ----------
    chunk_size:
        Budget per chunk in estimated tokens.  A soft bound: a single
        sentence larger than the budget is emitted whole as its own chunk.
    chunk_overlap:
        Budget in estimated tokens for the sentences carried from the end
        of one chunk into the start of the next.
    """

    def __init__(
        self,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
    ) -> None:
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        self.chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"Overlap ({self.chunk_overlap}) must be non-negative and less than "
                f"chunk size ({self.chunk_size})"
            )

    def chunk(
        self,
        text: str,
        document_id: str,
        filename: str,
        page_number: int | None = None,
    ) -> list[Chunk]:
        """Split *text* into ordered, overlapping chunks.

        Raises
        ------
        EmptyDocument
            If *text* has no non-whitespace character.
        """
        if not text or not text.strip():
            raise EmptyDocument("Cannot chunk empty text")

        sentences = split_sentences(normalize_whitespace(text))
        groups = self._pack(sentences)

        total = len(groups)
        chunks = [
            Chunk(
                document_id=document_id,
                filename=filename,
                content=" ".join(group),
                chunk_index=index,
                total_chunks_in_document=total,
                page_number=page_number,
            )
            for index, group in enumerate(groups)
        ]
        logger.debug("Chunked %s into %d chunks", filename, total)
        return chunks

    # -- internals ------------------------------------------------------------

    def _pack(self, sentences: list[str]) -> list[list[str]]:
        groups: list[list[str]] = []
        current: list[str] = []
        current_tokens = 0

        for sentence in sentences:
            sentence_tokens = estimate_tokens(sentence)
            if current and current_tokens + sentence_tokens > self.chunk_size:
                groups.append(current)
                current = self._overlap_suffix(current)
                current_tokens = estimate_tokens(" ".join(current)) if current else 0
            current.append(sentence)
            current_tokens += sentence_tokens

        if current:
            groups.append(current)
        return groups

    def _overlap_suffix(self, sentences: list[str]) -> list[str]:
        """Longest suffix of *sentences* that fits the overlap budget."""
        suffix: list[str] = []
        tokens = 0
        for sentence in reversed(sentences):
            sentence_tokens = estimate_tokens(sentence)
            if tokens + sentence_tokens > self.chunk_overlap:
                break
            suffix.insert(0, sentence)
            tokens += sentence_tokens
        return suffix
