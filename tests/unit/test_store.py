"""Unit tests for the embedding-store backends."""

from __future__ import annotations

import gc
import uuid

import pytest

from doc_lookup.errors import EmbeddingDimensionMismatch, StoreClosed, StoreUnavailable
from doc_lookup.models import EmbeddingRecord
from doc_lookup.store import InMemoryEmbeddingStore, document_lock, open_store
from doc_lookup.store import base
from doc_lookup.store.base import EmbeddingStoreBase


def _record(record_id: int, text: str = "text.", embedding: list[float] | None = None) -> EmbeddingRecord:
    return EmbeddingRecord(id=record_id, text=text, embedding=embedding or [1.0, 0.0, 0.0])


def _require_chroma():
    try:
        import chromadb

        from doc_lookup.store.chroma_store import ChromaEmbeddingStore
    except Exception:
        pytest.skip("chromadb not importable in this environment")
    return chromadb, ChromaEmbeddingStore


class _StoreContract:
    """Behaviour every backend must share.  Subclasses provide ``store``."""

    def test_starts_empty(self, store: EmbeddingStoreBase) -> None:
        assert store.get_all() == []
        assert store.count() == 0
        assert store.dimension is None

    def test_put_then_get_all(self, store: EmbeddingStoreBase) -> None:
        store.put(_record(0, "Cats are mammals."))
        store.put(_record(1, " Dogs are mammals too."))
        records = sorted(store.get_all(), key=lambda r: r.id)
        assert [r.id for r in records] == [0, 1]
        assert records[1].text == " Dogs are mammals too."
        assert records[0].embedding == pytest.approx([1.0, 0.0, 0.0])

    def test_put_overwrites_by_id(self, store: EmbeddingStoreBase) -> None:
        store.put(_record(0, "old."))
        store.put(_record(0, "new."))
        records = store.get_all()
        assert len(records) == 1
        assert records[0].text == "new."

    def test_put_many(self, store: EmbeddingStoreBase) -> None:
        store.put_many([_record(i) for i in range(5)])
        assert store.count() == 5
        assert store.dimension == 3

    def test_clear_removes_everything(self, store: EmbeddingStoreBase) -> None:
        store.put_many([_record(i) for i in range(3)])
        store.clear()
        assert store.get_all() == []
        assert store.dimension is None

    def test_dimension_mismatch_rejected(self, store: EmbeddingStoreBase) -> None:
        store.put(_record(0))
        with pytest.raises(EmbeddingDimensionMismatch) as info:
            store.put(_record(1, embedding=[1.0, 0.0]))
        assert info.value.expected == 3
        assert info.value.actual == 2
        assert store.count() == 1

    def test_mixed_batch_rejected_before_writing(self, store: EmbeddingStoreBase) -> None:
        with pytest.raises(EmbeddingDimensionMismatch):
            store.put_many([_record(0), _record(1, embedding=[1.0])])
        assert store.get_all() == []

    def test_new_dimension_allowed_after_clear(self, store: EmbeddingStoreBase) -> None:
        store.put(_record(0))
        store.clear()
        store.put(_record(0, embedding=[0.6, 0.8]))
        assert store.dimension == 2

    def test_closed_store_rejects_operations(self, store: EmbeddingStoreBase) -> None:
        store.close()
        assert store.closed
        with pytest.raises(StoreClosed):
            store.get_all()
        with pytest.raises(StoreClosed):
            store.put(_record(0))
        with pytest.raises(StoreClosed):
            store.clear()

    def test_close_is_idempotent(self, store: EmbeddingStoreBase) -> None:
        store.close()
        store.close()
        assert store.closed

    # -- several handles on one document key --------------------------------

    def test_sibling_sees_records_written_after_it_opened(self, store, sibling) -> None:
        store.put(_record(0, "first."))
        assert [(r.id, r.text) for r in sibling.get_all()] == [(0, "first.")]
        assert sibling.dimension == 3

    def test_sibling_keeps_working_after_clear(self, store, sibling) -> None:
        store.put(_record(0, "old."))
        store.clear()
        assert sibling.get_all() == []
        assert sibling.count() == 0
        sibling.put(_record(1, "new."))
        assert [(r.id, r.text) for r in store.get_all()] == [(1, "new.")]

    def test_dimension_enforced_across_handles(self, store, sibling) -> None:
        assert sibling.dimension is None
        store.put(_record(0))
        with pytest.raises(EmbeddingDimensionMismatch) as info:
            sibling.put(_record(1, embedding=[1.0, 0.0]))
        assert info.value.expected == 3
        assert store.count() == 1

    def test_sibling_may_use_new_dimension_after_clear(self, store, sibling) -> None:
        sibling.put(_record(0))
        store.clear()
        sibling.put(_record(0, embedding=[0.6, 0.8]))
        assert store.dimension == 2

    def test_handles_share_a_lock(self, store, sibling) -> None:
        assert store.lock is sibling.lock


class TestInMemoryStore(_StoreContract):
    @pytest.fixture()
    def store(self, memory_store: InMemoryEmbeddingStore) -> InMemoryEmbeddingStore:
        return memory_store

    @pytest.fixture()
    def sibling(self, memory_store: InMemoryEmbeddingStore) -> InMemoryEmbeddingStore:
        return InMemoryEmbeddingStore(memory_store.document_key)

    def test_reopen_sees_previous_records(self) -> None:
        with InMemoryEmbeddingStore("reopen") as first:
            first.put(_record(0))
        second = InMemoryEmbeddingStore("reopen")
        assert [r.id for r in second.get_all()] == [0]
        assert second.dimension == 3

    def test_documents_are_isolated(self) -> None:
        InMemoryEmbeddingStore("a").put(_record(0))
        assert InMemoryEmbeddingStore("b").get_all() == []

    def test_context_manager_closes(self) -> None:
        with InMemoryEmbeddingStore("ctx") as store:
            pass
        assert store.closed


class TestChromaStore(_StoreContract):
    @pytest.fixture()
    def client(self):
        chromadb, _ = _require_chroma()
        return chromadb.EphemeralClient()

    @pytest.fixture()
    def store(self, client):
        _, ChromaEmbeddingStore = _require_chroma()
        handle = ChromaEmbeddingStore(f"doc-{uuid.uuid4().hex}", client=client)
        yield handle
        handle.close()

    @pytest.fixture()
    def sibling(self, store, client):
        _, ChromaEmbeddingStore = _require_chroma()
        handle = ChromaEmbeddingStore(store.document_key, client=client)
        yield handle
        handle.close()

    def test_reopen_sees_previous_records(self, tmp_path) -> None:
        _, ChromaEmbeddingStore = _require_chroma()

        key = f"doc-{uuid.uuid4().hex}"
        with ChromaEmbeddingStore(key, persist_directory=str(tmp_path)) as first:
            first.put(_record(4, "persisted."))
        second = ChromaEmbeddingStore(key, persist_directory=str(tmp_path))
        assert [(r.id, r.text) for r in second.get_all()] == [(4, "persisted.")]
        assert second.dimension == 3

    def test_health_check(self, store) -> None:
        assert store.health_check() is True
        store.close()
        assert store.health_check() is False

    def test_backend_failure_on_open_is_store_unavailable(self) -> None:
        _, ChromaEmbeddingStore = _require_chroma()
        with pytest.raises(StoreUnavailable):
            ChromaEmbeddingStore("broken", client=_BrokenClient())

    def test_backend_failure_during_read_is_store_unavailable(self, store) -> None:
        store._client = _BrokenClient()
        with pytest.raises(StoreUnavailable) as info:
            store.get_all()
        assert isinstance(info.value.__cause__, RuntimeError)
        with pytest.raises(StoreUnavailable):
            store.put(_record(0))

    def test_collection_name_is_valid(self) -> None:
        try:
            from doc_lookup.store.chroma_store import collection_name_for
        except Exception:
            pytest.skip("chromadb not importable in this environment")

        name = collection_name_for("My Document: v2 / draft.pdf")
        assert 3 <= len(name) <= 63
        assert name.replace("-", "").isalnum()


class _BrokenClient:
    """Stands in for a Chroma client whose backend has gone away."""

    def get_or_create_collection(self, **kwargs):
        raise RuntimeError("backend gone")

    def list_collections(self):
        raise RuntimeError("backend gone")

    def heartbeat(self):
        raise RuntimeError("backend gone")


class TestOpenStore:
    def test_memory_backend(self) -> None:
        store = open_store("factory-doc", backend="memory")
        assert isinstance(store, InMemoryEmbeddingStore)
        assert store.document_key == "factory-doc"

    def test_open_is_idempotent(self) -> None:
        open_store("same", backend="memory").put(_record(0))
        assert open_store("same", backend="memory").count() == 1

    def test_unknown_backend(self) -> None:
        with pytest.raises(StoreUnavailable, match="Unsupported store backend"):
            open_store("x", backend="sqlite")

    def test_defaults_to_configured_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from doc_lookup.config import settings

        monkeypatch.setattr(settings, "document_key", "configured")
        assert open_store(backend="memory").document_key == "configured"


def test_document_lock_is_shared_per_key() -> None:
    assert document_lock("k") is document_lock("k")
    assert document_lock("k") is not document_lock("other")


def test_document_lock_released_with_last_handle() -> None:
    store = InMemoryEmbeddingStore("short-lived")
    assert "short-lived" in base._locks
    del store
    gc.collect()
    assert "short-lived" not in base._locks
