"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
import re
from collections.abc import Iterator

import pytest

from doc_lookup.store.memory_store import InMemoryEmbeddingStore, drop_all


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embedders for deterministic testing ────────────────────────────


class KeywordEmbedder:
    """Bag-of-words embedder over a fixed vocabulary, L2-normalised.

    Texts sharing words with the query score higher; a text with no
    vocabulary words maps to the last ("other") axis.
    """

    def __init__(self, vocabulary: list[str]) -> None:
        self.vocabulary = [w.lower() for w in vocabulary]
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        words = re.findall(r"[a-z]+", text.lower())
        vector = [float(words.count(w)) for w in self.vocabulary] + [0.0]
        if not any(vector):
            vector[-1] = 1.0
        norm = math.sqrt(sum(x * x for x in vector))
        return [x / norm for x in vector]


class TableEmbedder:
    """Returns pre-assigned vectors for exact texts."""

    def __init__(self, table: dict[str, list[float]]) -> None:
        self.table = table
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.table[text]


@pytest.fixture(autouse=True)
def _fresh_memory_store() -> Iterator[None]:
    drop_all()
    yield
    drop_all()


@pytest.fixture()
def memory_store() -> Iterator[InMemoryEmbeddingStore]:
    store = InMemoryEmbeddingStore("test-document")
    yield store
    store.close()


@pytest.fixture()
def table_embedder() -> type[TableEmbedder]:
    return TableEmbedder


@pytest.fixture()
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder(["cats", "dogs", "mammals", "birds", "fly", "too"])
