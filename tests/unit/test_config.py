"""Unit tests for settings validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from docqa.config import Settings


def test_defaults_are_valid() -> None:
    s = Settings(_env_file=None)
    assert s.chunk_overlap < s.chunk_size
    assert 0.0 <= s.min_similarity <= 1.0
    assert s.distance_metric == "cosine"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_TIMEOUT", "5")
    monkeypatch.setenv("MIN_SIMILARITY", "0.5")
    s = Settings(_env_file=None)
    assert s.llm_timeout == 5.0
    assert s.min_similarity == 0.5


def test_overlap_must_be_below_chunk_size() -> None:
    with pytest.raises(ValidationError, match="chunk_overlap"):
        Settings(_env_file=None, chunk_size=100, chunk_overlap=100)


def test_similarity_floor_bounded() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, min_similarity=1.5)
