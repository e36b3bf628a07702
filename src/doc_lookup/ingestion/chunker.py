"""Sentence-boundary text chunking."""

from __future__ import annotations

import re

from doc_lookup.models import Chunk

# A run of non-terminators followed by its (possibly empty) terminator run.
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*")
_TERMINATORS = frozenset(".!?")


def chunk_text(text: str, *, fallback_split: bool = False) -> list[str]:
    """Split *text* into sentence-like units.

    Each unit keeps its trailing ``.``/``!``/``?`` run and any whitespace
    that precedes the next sentence, so ``"A. B."`` becomes ``["A.", " B."]``.

    Parameters
    ----------
    text:
        Raw document text.
    fallback_split:
        When the text carries no terminal punctuation at all, return its
        non-blank lines instead of an empty list.

    Returns
    -------
    list[str]
        Non-empty units in document order.  Empty when *text* contains no
        sentence-terminal punctuation (and *fallback_split* is off).
    """
    if not _TERMINATORS.intersection(text):
        if fallback_split:
            return [line for line in text.splitlines() if line.strip()]
        return []
    return _SENTENCE_RE.findall(text)


def build_chunks(text: str, *, fallback_split: bool = False) -> list[Chunk]:
    """Same as :func:`chunk_text` but wraps each unit in an indexed :class:`Chunk`."""
    return [
        Chunk(index=i, text=piece)
        for i, piece in enumerate(chunk_text(text, fallback_split=fallback_split))
    ]
