"""doc-lookup — ingest one document and return its most relevant sentence for a query."""

from doc_lookup.errors import (
    DocLookupError,
    EmbeddingDimensionMismatch,
    EmbeddingUnavailable,
    EmptyDocument,
    ExtractionFailed,
    IngestionCancelled,
    StoreClosed,
    StoreUnavailable,
)
from doc_lookup.models import Chunk, EmbeddingRecord, IngestResult, Match, NoMatch, NoMatchReason

__all__ = [
    "Chunk",
    "DocLookupError",
    "EmbeddingDimensionMismatch",
    "EmbeddingRecord",
    "EmbeddingUnavailable",
    "EmptyDocument",
    "ExtractionFailed",
    "IngestResult",
    "IngestionCancelled",
    "Match",
    "NoMatch",
    "NoMatchReason",
    "StoreClosed",
    "StoreUnavailable",
]

__version__ = "0.1.0"
