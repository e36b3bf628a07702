"""Retrieval engine — exhaustive dot-product scan with a relevance cutoff.

Usage::

    from doc_lookup.retrieval.engine import retrieve

    outcome = retrieve("Are dogs mammals?", embed, store)
    if isinstance(outcome, Match):
        print(outcome.score, outcome.text)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from doc_lookup.config import settings
from doc_lookup.errors import EmbeddingDimensionMismatch
from doc_lookup.ingestion.embedder import Embedder, embed_text
from doc_lookup.models import EmbeddingRecord, Match, NoMatch, NoMatchReason, RetrievalOutcome
from doc_lookup.store.base import EmbeddingStoreBase

logger = logging.getLogger(__name__)


def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    """Similarity of two unit-normalised vectors (equals cosine similarity)."""
    if len(a) != len(b):
        raise EmbeddingDimensionMismatch(len(b), len(a))
    return math.fsum(x * y for x, y in zip(a, b))


def rank(
    query_vector: Sequence[float],
    records: Sequence[EmbeddingRecord],
) -> list[tuple[EmbeddingRecord, float]]:
    """Score every record against *query_vector*.

    Returns ``(record, score)`` pairs, best first; equal scores keep
    ``id``-ascending order.
    """
    scanned = sorted(records, key=lambda r: r.id)
    scored = [(record, dot_product(query_vector, record.embedding)) for record in scanned]
    # sort() is stable, so ties stay in id order.
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored


def best_match(
    query_vector: Sequence[float],
    records: Sequence[EmbeddingRecord],
) -> tuple[EmbeddingRecord | None, float]:
    """Single-pass maximum; the first record seen in ``id`` order wins ties."""
    best: EmbeddingRecord | None = None
    best_score = -math.inf
    for record in sorted(records, key=lambda r: r.id):
        score = dot_product(query_vector, record.embedding)
        if score > best_score:
            best, best_score = record, score
    return best, best_score


def _read_records(store: EmbeddingStoreBase) -> list[EmbeddingRecord]:
    with store.lock:
        return store.get_all()


def retrieve(
    query: str,
    embed: Embedder,
    store: EmbeddingStoreBase,
    threshold: float | None = None,
) -> RetrievalOutcome:
    """Return the stored chunk most similar to *query*.

    Parameters
    ----------
    query:
        Free-text question.
    embed:
        The same embedder that was used at ingestion time.
    store:
        Open store handle for the active document.
    threshold:
        Minimum similarity, exclusive (defaults to
        ``settings.relevance_threshold``).  A score equal to the threshold
        is *not* a match.

    Returns
    -------
    Match | NoMatch
        ``NoMatch(EMPTY_STORE)`` when nothing is stored,
        ``NoMatch(BELOW_THRESHOLD)`` when the best score does not clear
        *threshold*.
    """
    if threshold is None:
        threshold = settings.relevance_threshold

    query_vector = embed_text(embed, query)
    records = _read_records(store)
    if not records:
        logger.info("Query against empty store %r", store.document_key)
        return NoMatch(reason=NoMatchReason.EMPTY_STORE)

    record, score = best_match(query_vector, records)
    if record is None:
        return NoMatch(reason=NoMatchReason.BELOW_THRESHOLD)
    logger.debug("Best score %.4f for record %s (threshold=%.2f)", score, record.id, threshold)

    if score > threshold:
        return Match(text=record.text, score=score, record_id=record.id)
    return NoMatch(reason=NoMatchReason.BELOW_THRESHOLD, best_score=score)


def retrieve_top_k(
    query: str,
    embed: Embedder,
    store: EmbeddingStoreBase,
    k: int = 3,
    threshold: float | None = None,
) -> list[Match]:
    """Up to *k* matches strictly above *threshold*, best first."""
    if k <= 0:
        raise ValueError("k must be positive")
    if threshold is None:
        threshold = settings.relevance_threshold

    query_vector = embed_text(embed, query)
    records = _read_records(store)
    return [
        Match(text=record.text, score=score, record_id=record.id)
        for record, score in rank(query_vector, records)[:k]
        if score > threshold
    ]
