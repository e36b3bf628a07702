"""Caller-facing entry points: ingest a document, answer a question.

This is the only layer that knows about the process-wide embedder and the
configured store backend; everything below it takes them as arguments.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from doc_lookup.config import settings
from doc_lookup.errors import DocLookupError
from doc_lookup.ingestion.embedder import Embedder, get_embedder
from doc_lookup.ingestion.loader import extract_text
from doc_lookup.ingestion.pipeline import ingest
from doc_lookup.models import IngestResult, Match, NoMatch, RetrievalOutcome
from doc_lookup.retrieval.engine import retrieve, retrieve_top_k
from doc_lookup.store import EmbeddingStoreBase, open_store

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "I could not find a relevant answer in the document you provided."
MATCH_MESSAGE = "Based on the document, here is the most relevant information:"


def status_message(outcome: RetrievalOutcome | IngestResult | DocLookupError) -> str:
    """Map any outcome or failure to the single string shown to the user."""
    if isinstance(outcome, DocLookupError):
        return outcome.status_message
    if isinstance(outcome, NoMatch):
        return NOT_FOUND_MESSAGE
    if isinstance(outcome, Match):
        return MATCH_MESSAGE
    if isinstance(outcome, IngestResult):
        return "Document processing complete! You can now ask me questions."
    raise TypeError(f"Unsupported outcome type: {type(outcome).__name__}")


class DocumentLookupService:
    """Ingest one active document and answer questions against it.

    Parameters
    ----------
    store:
        An open store.  When *None*, :func:`~doc_lookup.store.open_store`
        opens ``settings.document_key`` on the configured backend.
    embed:
        Embedding callable.  When *None*, the shared
        :func:`~doc_lookup.ingestion.embedder.get_embedder` model is loaded
        on first use.
    threshold:
        Relevance cutoff (defaults to ``settings.relevance_threshold``).
    """

    def __init__(
        self,
        store: EmbeddingStoreBase | None = None,
        *,
        embed: Embedder | None = None,
        threshold: float | None = None,
    ) -> None:
        self._store = store if store is not None else open_store(settings.document_key)
        self._embed = embed
        self.threshold = settings.relevance_threshold if threshold is None else threshold

    @property
    def store(self) -> EmbeddingStoreBase:
        return self._store

    @property
    def embed(self) -> Embedder:
        if self._embed is None:
            self._embed = get_embedder()
        return self._embed

    # -- public API -----------------------------------------------------------

    def ingest_document(
        self,
        document_text: str,
        *,
        cancel_event: threading.Event | None = None,
    ) -> IngestResult:
        """Replace the active document with *document_text*."""
        return ingest(document_text, self.embed, self._store, cancel_event=cancel_event)

    def ingest_file(self, path: str | Path) -> IngestResult:
        """Extract text from *path* and ingest it.

        Extraction runs first, so an unreadable file leaves the previously
        ingested document untouched.
        """
        text = extract_text(path)
        logger.info("Processing %s (%d chars)", Path(path).name, len(text))
        return self.ingest_document(text)

    def answer_question(self, query: str) -> RetrievalOutcome:
        """Return the best-matching chunk for *query*, or a :class:`NoMatch`."""
        return retrieve(query, self.embed, self._store, threshold=self.threshold)

    def top_matches(self, query: str, k: int = 3) -> list[Match]:
        return retrieve_top_k(query, self.embed, self._store, k=k, threshold=self.threshold)

    def close(self) -> None:
        self._store.close()
