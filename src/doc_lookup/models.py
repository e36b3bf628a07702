"""Domain models shared by ingestion, storage and retrieval."""

from __future__ import annotations

import math
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, field_validator


class Chunk(BaseModel):
    """A contiguous span of source text produced by the chunker.

    Attributes
    ----------
    index:
        Ordinal position in the document (0-based, unique per document).
    text:
        Non-empty chunk content, whitespace preserved.
    """

    model_config = {"frozen": True}

    index: int = Field(ge=0)
    text: str = Field(min_length=1)


class EmbeddingRecord(BaseModel):
    """The persisted unit: chunk text plus its embedding vector.

    ``id`` equals the owning chunk's ``index``.  The text is copied in so
    retrieval never needs to join back to the chunk list.
    """

    model_config = {"frozen": True}

    id: int = Field(ge=0)
    text: str
    embedding: list[float]

    @field_validator("embedding")
    @classmethod
    def _non_empty_and_finite(cls, value: list[float]) -> list[float]:
        if not value:
            raise ValueError("embedding must contain at least one component")
        if not all(math.isfinite(x) for x in value):
            raise ValueError("embedding components must be finite")
        return value

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> EmbeddingRecord:
        return cls(id=chunk.index, text=chunk.text, embedding=list(embedding))


class NoMatchReason(str, Enum):
    """Why a query produced no match.  Normal outcomes, not failures."""

    EMPTY_STORE = "empty_store"
    BELOW_THRESHOLD = "below_threshold"


class Match(BaseModel):
    """Best-matching chunk for a query."""

    text: str
    score: float
    record_id: int


class NoMatch(BaseModel):
    """No stored chunk cleared the relevance threshold."""

    reason: NoMatchReason
    best_score: float | None = None


RetrievalOutcome = Union[Match, NoMatch]


class IngestResult(BaseModel):
    """Summary of a successful ingestion."""

    document_key: str
    chunk_count: int
    embedding_dim: int
    elapsed_seconds: float = 0.0
