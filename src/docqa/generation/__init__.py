"""
Generation — prompt construction and grounded answer synthesis.

Public API
----------
- :class:`AnswerSynthesizer` — answer a question from retrieved citations.
- :class:`Answer` — the structured result.
"""

from docqa.generation.synthesizer import Answer, AnswerSynthesizer

__all__ = ["Answer", "AnswerSynthesizer"]
