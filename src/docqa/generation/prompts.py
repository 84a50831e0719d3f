"""Prompt templates for grounded answer synthesis.

Keeping prompts in one place makes them easy to audit, version, and A/B
test.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from docqa.retrieval.models import Citation

ANSWER_SYSTEM = """\
You are a helpful AI assistant that answers questions based on provided
document context. Use ONLY the information in the context to answer the
question. If the context doesn't contain enough information, say so.
"""

ANSWER_INSTRUCTIONS = """\
Provide a detailed, accurate answer based on the context. Include specific
references to sources when appropriate (e.g., "According to Source 1...").
Keep your answer concise but informative (max 3-4 paragraphs).
"""


def build_context(citations: list[Citation]) -> str:
    """Label each citation with its ordinal, file and similarity, in ranking order."""
    return "\n\n".join(
        f"[Source {i}] ({c.filename}, similarity: {c.similarity_score:.2f})\n{c.excerpt_text}"
        for i, c in enumerate(citations, 1)
    )


def build_answer_prompt(question: str, citations: list[Citation]) -> list[BaseMessage]:
    """Assemble the messages for one grounded-answer generation call.

    Parameters
    ----------
    question:
        The user question.
    citations:
        Retrieved context, already filtered and ranked.

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.ainvoke()``.
    """
    user_msg = (
        f"Context:\n{build_context(citations)}\n\n"
        f"Question: {question}\n\n"
        f"{ANSWER_INSTRUCTIONS}\n"
        "Answer:"
    )
    return [
        SystemMessage(content=ANSWER_SYSTEM),
        HumanMessage(content=user_msg),
    ]


def build_health_prompt() -> list[BaseMessage]:
    """Minimal prompt used to probe the model."""
    return [HumanMessage(content="Test")]
