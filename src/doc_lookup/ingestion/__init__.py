"""
Ingestion — text extraction, chunking, and embedding into the store.

This module turns one raw document (PDF or plain text) into embedded,
sentence-level records in the active document store.
"""
