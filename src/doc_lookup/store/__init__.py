"""
Store — persistence of embedding records for the active document.

Public surface
--------------
- :class:`EmbeddingStoreBase` — abstract backend.
- :class:`InMemoryEmbeddingStore` — process-local backend.
- :class:`ChromaEmbeddingStore` — default on-disk Chroma backend.
- :func:`open_store` — factory honouring ``settings.store_backend``.
"""

from __future__ import annotations

from doc_lookup.config import settings
from doc_lookup.errors import StoreUnavailable
from doc_lookup.store.base import EmbeddingStoreBase, document_lock
from doc_lookup.store.memory_store import InMemoryEmbeddingStore

__all__ = [
    "ChromaEmbeddingStore",
    "EmbeddingStoreBase",
    "InMemoryEmbeddingStore",
    "document_lock",
    "open_store",
]


def open_store(document_key: str | None = None, *, backend: str | None = None) -> EmbeddingStoreBase:
    """Create or open the store for *document_key*.

    Idempotent: opening the same key twice yields handles over the same
    records.  Raises :class:`StoreUnavailable` for an unknown backend or a
    medium that cannot be initialised.
    """
    document_key = document_key or settings.document_key
    backend = backend or settings.store_backend

    if backend == "memory":
        return InMemoryEmbeddingStore(document_key)
    if backend == "chroma":
        from doc_lookup.store.chroma_store import ChromaEmbeddingStore

        return ChromaEmbeddingStore(document_key)
    raise StoreUnavailable(f"Unsupported store backend: {backend!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaEmbeddingStore to avoid pulling in chromadb at import time."""
    if name == "ChromaEmbeddingStore":
        from doc_lookup.store.chroma_store import ChromaEmbeddingStore

        return ChromaEmbeddingStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
