"""Shared configuration loaded from environment / ``.env`` file."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Chunking (budgets are estimated tokens, ~4 characters each)
    chunk_size: int = Field(default=600, gt=0, description="Chunk budget in estimated tokens")
    chunk_overlap: int = Field(default=120, ge=0, description="Overlap budget in estimated tokens")

    # Retrieval
    top_k_retrieval: int = Field(default=3, gt=0)
    min_similarity: float = Field(default=0.75, ge=0.0, le=1.0)
    distance_metric: str = Field(default="cosine", description="One of 'cosine', 'l2', 'ip'")

    # LLM
    openai_api_key: str = Field(default="", description="API key (or dummy value for local Ollama / vLLM)")
    llm_model_name: str = Field(default="llama3.2:1b", description="LLM model identifier")
    llm_base_url: str = Field(
        default="http://localhost:11434/v1",
        description=(
            "Base URL of an OpenAI-compatible chat endpoint. Defaults to a local "
            "Ollama server; leave empty to use OpenAI cloud."
        ),
    )
    llm_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=350, gt=0)
    llm_timeout: float = Field(default=30.0, gt=0, description="Generation time budget in seconds")

    # Embedding
    embedding_model: str = "nomic-embed-text"
    embedding_base_url: str = Field(
        default="http://localhost:11434/v1",
        description="OpenAI-compatible embedding endpoint; empty selects local sentence-transformers",
    )
    embedding_batch_size: int = Field(default=10, gt=0)

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "documents"

    # Uploads / queries
    max_file_size: int = 10 * 1024 * 1024
    max_question_length: int = 1000

    # Serving
    debug: bool = False
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @model_validator(mode="after")
    def _overlap_below_chunk_size(self) -> Settings:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than chunk_size ({self.chunk_size})"
            )
        return self


# Singleton: import `settings` wherever needed.
settings = Settings()
