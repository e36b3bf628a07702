"""Text extraction — thin wrappers around LangChain document loaders."""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader, TextLoader

from doc_lookup.errors import ExtractionFailed

logger = logging.getLogger(__name__)


def extract_text(path: str | Path) -> str:
    """Extract the plain text of a single document.

    PDFs go through ``PyPDFLoader`` (one LangChain ``Document`` per page);
    anything else is read as plain text.  Page texts are joined with a space.

    Raises
    ------
    ExtractionFailed
        If the file is missing or the loader cannot parse it.
    """
    path = Path(path)
    try:
        if path.suffix.lower() == ".pdf":
            loader = PyPDFLoader(str(path))
        else:
            loader = TextLoader(str(path), autodetect_encoding=True)
        pages = loader.load()
    except Exception as exc:
        raise ExtractionFailed(f"Could not extract text from {path.name}") from exc

    logger.info("Extracted %d page(s) from %s", len(pages), path.name)
    return " ".join(page.page_content for page in pages)
