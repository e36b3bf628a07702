"""Error kinds raised by the ingestion and retrieval layers.

Every exception carries a ``status_message`` — the single human-readable
string shown to the end user.  Query-time non-matches (empty store, score
below threshold) are *not* errors; see :class:`doc_lookup.models.NoMatch`.
"""

from __future__ import annotations


class DocLookupError(Exception):
    """Base class for all doc-lookup failures."""

    status_message = "Something went wrong while handling the document."


class EmptyDocument(DocLookupError):
    """The chunker produced no ingestible content."""

    status_message = "No readable text found in the document."


class ExtractionFailed(DocLookupError):
    """The text extractor could not turn the source file into text."""

    status_message = "Could not read text from the document."


class EmbeddingUnavailable(DocLookupError):
    """The embedder failed (or timed out) for a given text."""

    status_message = "The embedding model is unavailable. Please try again."


class StoreUnavailable(DocLookupError):
    """The persistence medium could not be initialised or accessed."""

    status_message = "Error: Could not access local database."


class StoreClosed(StoreUnavailable):
    """An operation was attempted on a closed store handle."""

    status_message = "Error: Cannot access document database."


class EmbeddingDimensionMismatch(DocLookupError, ValueError):
    """An embedding does not share the dimension established for the store."""

    status_message = "The document was indexed with a different embedding model."

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class IngestionCancelled(DocLookupError):
    """The caller abandoned an in-progress ingestion."""

    status_message = "Document processing was cancelled."
