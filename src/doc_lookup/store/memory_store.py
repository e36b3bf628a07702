"""In-process embedding store backed by a dict."""

from __future__ import annotations

from doc_lookup.models import EmbeddingRecord
from doc_lookup.store.base import EmbeddingStoreBase

# Records survive handle close/reopen for the lifetime of the process.
_documents: dict[str, dict[int, EmbeddingRecord]] = {}


class InMemoryEmbeddingStore(EmbeddingStoreBase):
    """Process-local store; every handle on a key shares the same records."""

    def __init__(self, document_key: str) -> None:
        super().__init__(document_key)
        _documents.setdefault(document_key, {})

    @property
    def _records(self) -> dict[int, EmbeddingRecord]:
        # Re-resolved on every access so drop_all() never leaves a handle stale.
        return _documents.setdefault(self.document_key, {})

    def _clear(self) -> None:
        self._records.clear()

    def _put_many(self, records: list[EmbeddingRecord]) -> None:
        stored = self._records
        for record in records:
            stored[record.id] = record

    def _get_all(self) -> list[EmbeddingRecord]:
        return list(self._records.values())

    def _peek_dimension(self) -> int | None:
        for record in self._records.values():
            return record.dimension
        return None


def drop_all() -> None:
    """Forget every in-memory document (used by tests)."""
    _documents.clear()
