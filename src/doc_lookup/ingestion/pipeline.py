"""Ingestion pipeline — chunk, embed and store one document.

The pipeline always clears the store before writing, so every ingestion is
a full replace: an earlier document (or a cancelled/failed earlier attempt)
can never leak stale chunks into retrieval.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from doc_lookup.config import settings
from doc_lookup.errors import EmbeddingUnavailable, EmptyDocument, IngestionCancelled
from doc_lookup.ingestion.chunker import build_chunks
from doc_lookup.ingestion.embedder import Embedder, embed_text
from doc_lookup.models import Chunk, EmbeddingRecord, IngestResult
from doc_lookup.store.base import EmbeddingStoreBase

logger = logging.getLogger(__name__)

# Distinguishes "not passed" from an explicit ``embed_timeout=None`` (no timeout).
_FROM_SETTINGS: Any = object()


def ingest(
    document_text: str,
    embed: Embedder,
    store: EmbeddingStoreBase,
    *,
    fallback_split: bool | None = None,
    max_workers: int | None = None,
    embed_timeout: float | None = _FROM_SETTINGS,
    cancel_event: threading.Event | None = None,
) -> IngestResult:
    """Replace the store's contents with the embedded chunks of *document_text*.

    Parameters
    ----------
    document_text:
        Plain text of the document.
    embed:
        Embedding callable; must return unit-normalised vectors.
    store:
        Open store handle for the target document.
    fallback_split:
        Forwarded to the chunker (defaults to ``settings.fallback_split``).
    max_workers:
        Number of chunks embedded concurrently
        (defaults to ``settings.embed_concurrency``).
    embed_timeout:
        Per-chunk embedding timeout in seconds.  Omitted, it defaults to
        ``settings.embed_timeout_seconds``; an explicit ``None`` disables it.
    cancel_event:
        When set by the caller, ingestion stops at the next chunk boundary.

    Returns
    -------
    IngestResult
        Chunk count and embedding dimension of the stored document.

    Raises
    ------
    EmptyDocument
        The text yields no chunks.  The store is left empty.
    EmbeddingUnavailable
        Any chunk failed or timed out.  The store may hold a partial document.
    IngestionCancelled
        *cancel_event* was set.  The store may hold a partial document.
    ValueError
        *max_workers* is less than 1.
    """
    if fallback_split is None:
        fallback_split = settings.fallback_split
    if max_workers is None:
        max_workers = settings.embed_concurrency
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")
    if embed_timeout is _FROM_SETTINGS:
        embed_timeout = settings.embed_timeout_seconds

    t0 = time.monotonic()
    with store.lock:
        store.clear()

        chunks = build_chunks(document_text, fallback_split=fallback_split)
        if not chunks:
            raise EmptyDocument("Document contains no sentence-terminated text")

        logger.info(
            "Embedding %d chunks for %r (workers=%d)",
            len(chunks),
            store.document_key,
            max_workers,
        )
        if max_workers <= 1 and embed_timeout is None:
            _embed_sequential(chunks, embed, store, cancel_event)
        else:
            _embed_pooled(chunks, embed, store, max_workers, embed_timeout, cancel_event)

        dimension = store.dimension or 0

    elapsed = time.monotonic() - t0
    logger.info(
        "Ingested %d chunks (dim=%d) into %r in %.2fs",
        len(chunks),
        dimension,
        store.document_key,
        elapsed,
    )
    return IngestResult(
        document_key=store.document_key,
        chunk_count=len(chunks),
        embedding_dim=dimension,
        elapsed_seconds=round(elapsed, 3),
    )


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise IngestionCancelled("Ingestion cancelled by caller")


def _embed_sequential(
    chunks: list[Chunk],
    embed: Embedder,
    store: EmbeddingStoreBase,
    cancel_event: threading.Event | None,
) -> None:
    for chunk in chunks:
        _check_cancelled(cancel_event)
        store.put(EmbeddingRecord.from_chunk(chunk, embed_text(embed, chunk.text)))


def _embed_pooled(
    chunks: list[Chunk],
    embed: Embedder,
    store: EmbeddingStoreBase,
    max_workers: int,
    timeout: float | None,
    cancel_event: threading.Event | None,
) -> None:
    _check_cancelled(cancel_event)
    pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="embed")
    try:
        futures = [(chunk, pool.submit(embed_text, embed, chunk.text)) for chunk in chunks]
        # Writes are keyed by id, so completion order does not matter.
        for chunk, future in futures:
            _check_cancelled(cancel_event)
            try:
                vector = future.result(timeout=timeout)
            except concurrent.futures.TimeoutError as exc:
                raise EmbeddingUnavailable(
                    f"Embedding chunk {chunk.index} timed out after {timeout}s"
                ) from exc
            store.put(EmbeddingRecord.from_chunk(chunk, vector))
    finally:
        # A hung embedder must not block the caller past its timeout.
        pool.shutdown(wait=False, cancel_futures=True)
