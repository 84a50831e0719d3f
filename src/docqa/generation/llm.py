"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **Local Ollama / vLLM** (default) — ``LLM_BASE_URL`` points at an
   OpenAI-compatible ``/v1`` endpoint, e.g. ``http://localhost:11434/v1``.
2. **OpenAI cloud** — set ``LLM_BASE_URL`` to an empty string and
   ``OPENAI_API_KEY``.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from docqa.config import settings

logger = logging.getLogger(__name__)


def get_llm(
    temperature: float = settings.llm_temperature,
    max_tokens: int = settings.llm_max_tokens,
) -> ChatOpenAI:
    """Return the configured chat model.

    A dummy API key (``"EMPTY"``) is used for local endpoints because
    Ollama does not require authentication but LangChain needs a value.
    """
    kwargs: dict = {
        "model": settings.llm_model_name,
        "temperature": temperature,
        "max_tokens": max_tokens,
        # Retries would stretch past the caller's time budget.
        "max_retries": 0,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)
