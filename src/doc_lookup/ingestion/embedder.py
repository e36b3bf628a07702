"""Embedding model access.

The sentence-transformer model is expensive to load, so a single
:class:`HuggingFaceEmbedder` is created lazily on first use and shared by
reference between the ingestion and query paths.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable

from langchain_huggingface import HuggingFaceEmbeddings

from doc_lookup.config import settings
from doc_lookup.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

Embedder = Callable[[str], list[float]]
"""Anything that maps a text to a fixed-length, unit-normalised vector."""


class HuggingFaceEmbedder:
    """Callable wrapper around a normalised ``HuggingFaceEmbeddings`` model.

    Parameters
    ----------
    model_name:
        HuggingFace model id used for text → embedding conversion.
    """

    def __init__(self, model_name: str = settings.embedding_model) -> None:
        self.model_name = model_name
        self._model = HuggingFaceEmbeddings(
            model_name=model_name,
            encode_kwargs={"normalize_embeddings": True},
        )

    def __call__(self, text: str) -> list[float]:
        try:
            return list(self._model.embed_query(text))
        except Exception as exc:
            raise EmbeddingUnavailable(f"{self.model_name} failed to embed text") from exc

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model_name={self.model_name!r})"


_embedder: HuggingFaceEmbedder | None = None
_embedder_lock = threading.Lock()


def get_embedder() -> HuggingFaceEmbedder:
    """Return the process-wide embedder, loading the model on first call."""
    global _embedder
    if _embedder is None:
        with _embedder_lock:
            if _embedder is None:
                logger.info("Loading embedding model %s", settings.embedding_model)
                try:
                    _embedder = HuggingFaceEmbedder(settings.embedding_model)
                except Exception as exc:
                    raise EmbeddingUnavailable(
                        f"Could not load embedding model {settings.embedding_model!r}"
                    ) from exc
    return _embedder


def reset_embedder() -> None:
    """Drop the shared embedder so the next :func:`get_embedder` reloads it."""
    global _embedder
    with _embedder_lock:
        _embedder = None


def embed_text(embed: Embedder, text: str) -> list[float]:
    """Call *embed* and normalise every failure to :class:`EmbeddingUnavailable`."""
    try:
        vector = embed(text)
    except EmbeddingUnavailable:
        raise
    except Exception as exc:
        raise EmbeddingUnavailable(f"Embedder failed for text {text[:40]!r}") from exc
    if vector is None or len(vector) == 0:
        raise EmbeddingUnavailable(f"Embedder returned no vector for text {text[:40]!r}")
    values = [float(x) for x in vector]
    if not all(math.isfinite(x) for x in values):
        raise EmbeddingUnavailable(f"Embedder returned non-finite values for text {text[:40]!r}")
    return values
