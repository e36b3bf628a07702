"""Chroma implementation of the embedding-store abstraction."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterator
from contextlib import contextmanager

import chromadb

from doc_lookup.config import settings
from doc_lookup.errors import DocLookupError, StoreUnavailable
from doc_lookup.models import EmbeddingRecord
from doc_lookup.store.base import EmbeddingStoreBase

logger = logging.getLogger(__name__)


def collection_name_for(document_key: str, prefix: str = settings.collection_prefix) -> str:
    """Map an arbitrary document key to a valid Chroma collection name."""
    digest = hashlib.sha256(document_key.encode("utf-8")).hexdigest()[:16]
    return f"{prefix}-{digest}"


@contextmanager
def _backend_errors(action: str, collection_name: str) -> Iterator[None]:
    """Re-raise any Chroma failure as :class:`StoreUnavailable`."""
    try:
        yield
    except DocLookupError:
        raise
    except Exception as exc:
        raise StoreUnavailable(f"Chroma {action} failed for {collection_name}") from exc


class ChromaEmbeddingStore(EmbeddingStoreBase):
    """Chroma-backed embedding store, one collection per document key.

    The collection is looked up by name on every operation, so a handle keeps
    working after another handle on the same key has cleared (and thereby
    recreated) the collection.

    Parameters
    ----------
    document_key:
        Logical document name; hashed into the collection name.
    client:
        Optional pre-created Chroma client (e.g. ``chromadb.EphemeralClient()``
        in tests).  If not provided, a ``PersistentClient`` rooted at
        ``settings.persist_directory`` is created.
    persist_directory:
        On-disk location used when no *client* is given.
    """

    def __init__(
        self,
        document_key: str,
        *,
        client: chromadb.ClientAPI | None = None,
        persist_directory: str = settings.persist_directory,
    ) -> None:
        super().__init__(document_key)
        self.collection_name = collection_name_for(document_key)
        with _backend_errors("open", self.collection_name):
            self._client = client or chromadb.PersistentClient(path=persist_directory)
            self._collection()
        logger.debug("Opened collection %s for %r", self.collection_name, document_key)

    def _collection(self):  # noqa: ANN202
        # Vectors are unit-normalised, so inner product is cosine similarity.
        return self._client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "ip", "document_key": self.document_key},
        )

    # -- EmbeddingStoreBase overrides -----------------------------------------

    def _clear(self) -> None:
        # Chroma pins a collection's dimension on first insert; recreate it so
        # the next document may use a different embedding model.
        with _backend_errors("clear", self.collection_name):
            if self.collection_name in _collection_names(self._client):
                self._client.delete_collection(self.collection_name)
            self._collection()
        logger.debug("Cleared collection %s", self.collection_name)

    def _put_many(self, records: list[EmbeddingRecord]) -> None:
        with _backend_errors("upsert", self.collection_name):
            self._collection().upsert(
                ids=[str(r.id) for r in records],
                embeddings=[r.embedding for r in records],
                documents=[r.text for r in records],
                metadatas=[{"chunk_index": r.id} for r in records],
            )

    def _get_all(self) -> list[EmbeddingRecord]:
        with _backend_errors("get", self.collection_name):
            result = self._collection().get(include=["documents", "embeddings"])
            ids = result.get("ids") or []
            if not ids:
                return []

            records: list[EmbeddingRecord] = []
            for record_id, text, embedding in zip(ids, result["documents"], result["embeddings"]):
                records.append(
                    EmbeddingRecord(
                        id=int(record_id),
                        text=text or "",
                        embedding=[float(x) for x in embedding],
                    )
                )
            return records

    def _peek_dimension(self) -> int | None:
        with _backend_errors("peek", self.collection_name):
            peek = self._collection().get(limit=1, include=["embeddings"])
            if not peek.get("ids"):
                return None
            return len(peek["embeddings"][0])

    def _close(self) -> None:
        self._client = None

    # -- extras ---------------------------------------------------------------

    def count(self) -> int:
        self._ensure_open()
        with _backend_errors("count", self.collection_name):
            return self._collection().count()

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        if self.closed:
            return False
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False


def _collection_names(client: chromadb.ClientAPI) -> set[str]:
    # list_collections() yields names (chromadb >= 0.6) or Collection objects.
    return {getattr(c, "name", c) for c in client.list_collections()}
