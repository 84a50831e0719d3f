"""Answer synthesis — grounded generation under a time budget."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from docqa.config import settings
from docqa.errors import GenerationFailed, GenerationTimeout
from docqa.generation.prompts import build_answer_prompt, build_health_prompt
from docqa.retrieval.models import Citation

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

_HEALTH_MAX_TOKENS = 5


class Answer(BaseModel):
    """A synthesized answer with the citations it was grounded on."""

    text: str
    citations: list[Citation] = Field(default_factory=list)
    processing_time_ms: int


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _message_text(response: Any) -> str:
    content = getattr(response, "content", response)
    return content if isinstance(content, str) else str(content)


class AnswerSynthesizer:
    """Turn a question and its retrieved citations into a cited answer.

    Parameters
    ----------
    llm:
        Chat model used for generation.  When *None*,
        :func:`~docqa.generation.llm.get_llm` builds one with the
        configured decoding parameters.
    timeout:
        Time budget in seconds for one generation call.
    """

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        *,
        timeout: float = settings.llm_timeout,
        temperature: float = settings.llm_temperature,
        max_tokens: int = settings.llm_max_tokens,
    ) -> None:
        if llm is None:
            from docqa.generation.llm import get_llm

            llm = get_llm(temperature=temperature, max_tokens=max_tokens)
        self._llm = llm
        self.timeout = timeout

    async def answer(self, question: str, citations: list[Citation]) -> Answer:
        """Generate an answer grounded in *citations*.

        The generation call races the configured timeout; if the timeout
        wins, the call is cancelled locally (the remote model may keep
        working) and :class:`GenerationTimeout` is raised.

        Raises
        ------
        GenerationTimeout
            If generation exceeds ``self.timeout`` seconds.
        GenerationFailed
            If the model call errors.
        """
        start = time.perf_counter()
        messages = build_answer_prompt(question, citations)

        try:
            response = await asyncio.wait_for(self._llm.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Generation timed out after %dms", _elapsed_ms(start))
            raise GenerationTimeout(
                f"Answer generation exceeded {self.timeout:g}s"
            ) from exc
        except Exception as exc:
            logger.error("LLM generation failed after %dms", _elapsed_ms(start), exc_info=True)
            raise GenerationFailed() from exc

        elapsed = _elapsed_ms(start)
        logger.info("Generated answer in %dms", elapsed)
        return Answer(text=_message_text(response), citations=citations, processing_time_ms=elapsed)

    async def health_check(self) -> bool:
        """Return ``True`` when a tiny generation produces any text."""
        try:
            response = await asyncio.wait_for(
                self._llm.ainvoke(build_health_prompt(), max_tokens=_HEALTH_MAX_TOKENS),
                timeout=self.timeout,
            )
            return bool(_message_text(response).strip())
        except Exception:
            logger.warning("LLM health-check failed", exc_info=True)
            return False
