"""FastAPI application exposing document ingestion and lookup as a REST API."""

from __future__ import annotations

import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from doc_lookup.config import configure_logging
from doc_lookup.errors import (
    DocLookupError,
    EmbeddingDimensionMismatch,
    EmptyDocument,
    ExtractionFailed,
)
from doc_lookup.models import Match
from doc_lookup.service import DocumentLookupService, status_message

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(
    title="Document Lookup API",
    version="0.1.0",
    description="Ingest one document and look up its most relevant sentence.",
)


@lru_cache(maxsize=1)
def get_service() -> DocumentLookupService:
    """Process-wide service; overridden in tests via ``app.dependency_overrides``."""
    return DocumentLookupService()


# ── Request / Response schemas ────────────────────────────────────────
class IngestRequest(BaseModel):
    """Plain text of the document to make active."""

    text: str


class IngestResponse(BaseModel):
    message: str
    chunk_count: int
    embedding_dim: int


class QueryRequest(BaseModel):
    """Incoming question from the user."""

    query: str


class QueryResponse(BaseModel):
    """Best-matching chunk, or a not-found message."""

    found: bool
    message: str
    text: str | None = None
    score: float | None = None
    reason: str | None = None


_UNPROCESSABLE = (EmptyDocument, ExtractionFailed, EmbeddingDimensionMismatch)


# ── Error mapping ─────────────────────────────────────────────────────
@app.exception_handler(DocLookupError)
async def doc_lookup_error_handler(request: Request, exc: DocLookupError) -> JSONResponse:
    status_code = 422 if isinstance(exc, _UNPROCESSABLE) else 503
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "message": status_message(exc)},
    )


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/documents", response_model=IngestResponse)
def ingest_document(
    request: IngestRequest,
    service: DocumentLookupService = Depends(get_service),
) -> IngestResponse:
    """Replace the active document."""
    result = service.ingest_document(request.text)
    return IngestResponse(
        message=status_message(result),
        chunk_count=result.chunk_count,
        embedding_dim=result.embedding_dim,
    )


@app.post("/query", response_model=QueryResponse)
def query(
    request: QueryRequest,
    service: DocumentLookupService = Depends(get_service),
) -> QueryResponse:
    """Look up the most relevant chunk of the active document."""
    outcome = service.answer_question(request.query)
    if isinstance(outcome, Match):
        return QueryResponse(
            found=True,
            message=status_message(outcome),
            text=outcome.text,
            score=outcome.score,
        )
    return QueryResponse(
        found=False,
        message=status_message(outcome),
        score=outcome.best_score,
        reason=outcome.reason.value,
    )


@app.get("/ready")
def ready(service: DocumentLookupService = Depends(get_service)) -> JSONResponse:
    """Readiness probe: 503 until the configured store is reachable."""
    if service.store.health_check():
        return JSONResponse(status_code=200, content={"status": "ready"})
    return JSONResponse(status_code=503, content={"status": "unavailable"})


@app.post("/documents/file", response_model=IngestResponse)
def ingest_file(
    file: UploadFile = File(...),
    service: DocumentLookupService = Depends(get_service),
) -> IngestResponse:
    """Replace the active document with an uploaded PDF or text file."""
    # The loader picks PDF or plain-text parsing from the suffix.
    suffix = Path(file.filename or "").suffix
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(file.file.read())
        tmp_path = tmp.name
    try:
        result = service.ingest_file(tmp_path)
    finally:
        os.unlink(tmp_path)
    return IngestResponse(
        message=status_message(result),
        chunk_count=result.chunk_count,
        embedding_dim=result.embedding_dim,
    )
