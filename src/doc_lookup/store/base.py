"""Abstract base class for embedding-store backends.

Adding a new backend only requires subclassing :class:`EmbeddingStoreBase`
and implementing the ``_clear`` / ``_put_many`` / ``_get_all`` /
``_peek_dimension`` hooks.  Closed-handle checks and the dimension invariant
live here so every backend enforces them the same way.

Several handles may be open on the same document key, so nothing about the
stored records is cached on a handle: the established dimension is always
read back from the backing data.
"""

from __future__ import annotations

import threading
import weakref
from abc import ABC, abstractmethod
from collections.abc import Iterable

from doc_lookup.errors import EmbeddingDimensionMismatch, StoreClosed
from doc_lookup.models import EmbeddingRecord

# Entries disappear once no store handle references the lock.
_locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def document_lock(document_key: str) -> threading.RLock:
    """Return the process-wide lock guarding *document_key*.

    Ingestion holds it for the whole clear-and-repopulate pass; retrieval
    holds it while scanning, so the two never interleave.
    """
    with _locks_guard:
        lock = _locks.get(document_key)
        if lock is None:
            lock = threading.RLock()
            _locks[document_key] = lock
        return lock


class EmbeddingStoreBase(ABC):
    """Keyed collection of :class:`EmbeddingRecord` for one active document.

    Parameters
    ----------
    document_key:
        Logical name of the document whose records this handle holds.
    """

    def __init__(self, document_key: str) -> None:
        self.document_key = document_key
        self._closed = False
        self._lock = document_lock(document_key)

    # -- public API -----------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dimension(self) -> int | None:
        """Embedding length shared by all stored records (``None`` when empty)."""
        self._ensure_open()
        return self._peek_dimension()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def clear(self) -> None:
        """Remove every record of the active document."""
        self._ensure_open()
        self._clear()

    def put(self, record: EmbeddingRecord) -> None:
        """Insert or overwrite *record* by ``id``."""
        self.put_many([record])

    def put_many(self, records: Iterable[EmbeddingRecord]) -> None:
        """Bulk :meth:`put`; validates every dimension before writing any."""
        self._ensure_open()
        batch = list(records)
        if not batch:
            return
        with self._lock:
            dimension = self._peek_dimension()
            if dimension is None:
                dimension = batch[0].dimension
            for record in batch:
                if record.dimension != dimension:
                    raise EmbeddingDimensionMismatch(dimension, record.dimension)
            self._put_many(batch)

    def get_all(self) -> list[EmbeddingRecord]:
        """Return every stored record.  Order is unspecified."""
        self._ensure_open()
        return self._get_all()

    def count(self) -> int:
        return len(self.get_all())

    def health_check(self) -> bool:
        """Return ``True`` when the handle is open and the backend is usable."""
        return not self._closed

    def close(self) -> None:
        """Release the handle.  Further calls raise :class:`StoreClosed`."""
        if self._closed:
            return
        self._close()
        self._closed = True

    def __enter__(self) -> EmbeddingStoreBase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- backend hooks --------------------------------------------------------

    @abstractmethod
    def _clear(self) -> None: ...

    @abstractmethod
    def _put_many(self, records: list[EmbeddingRecord]) -> None: ...

    @abstractmethod
    def _get_all(self) -> list[EmbeddingRecord]: ...

    @abstractmethod
    def _peek_dimension(self) -> int | None:
        """Embedding length of any one stored record, ``None`` when empty."""

    def _close(self) -> None:
        """Release backend resources.  Optional, no-op by default."""

    # -- internals ------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosed(f"Store for {self.document_key!r} is closed")
