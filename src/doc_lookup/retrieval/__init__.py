"""
Retrieval — exhaustive similarity search over the active document.

Public surface
--------------
- :func:`retrieve` — best match above the relevance threshold.
- :func:`retrieve_top_k` — up to *k* matches above the threshold.
- :func:`rank` / :func:`dot_product` — scoring primitives.
"""

from doc_lookup.retrieval.engine import best_match, dot_product, rank, retrieve, retrieve_top_k

__all__ = [
    "best_match",
    "dot_product",
    "rank",
    "retrieve",
    "retrieve_top_k",
]
