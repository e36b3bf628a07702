"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from ``DOC_LOOKUP_*`` env vars or .env file."""

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embed_timeout_seconds: float | None = Field(
        default=None,
        description="Upper bound for a single embedding call. None waits indefinitely.",
    )
    embed_concurrency: int = Field(
        default=1,
        ge=1,
        description="Number of chunks embedded in parallel during ingestion.",
    )

    # Vector store
    store_backend: str = Field(default="chroma", description="'chroma' or 'memory'")
    persist_directory: str = "./.doc_lookup"
    collection_prefix: str = "doc-lookup"
    document_key: str = "documentStore"

    # Chunking / retrieval
    fallback_split: bool = Field(
        default=False,
        description="Split punctuation-free text on line breaks instead of rejecting it.",
    )
    relevance_threshold: float = 0.5

    # Logging
    log_level: str = "INFO"

    model_config = {"env_prefix": "DOC_LOOKUP_", "env_file": ".env", "env_file_encoding": "utf-8"}


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Singleton — import `settings` wherever needed.
settings = Settings()
