"""
Document ingestion: SharePoint library -> text -> chunks -> vector index.

Responsibility: Run the full-refresh batch job. The index is cleared first and
every chunk is re-derived and re-inserted; there is no incremental mode and no
partial-failure recovery, so a failure mid-run can leave the index empty or
partially populated. Called by the API layer and scripts/seed_database.py.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from docagent.core.errors import IngestionError
from docagent.ingest.loader import extract_text
from docagent.ingest.sharepoint import DocumentRef
from docagent.services.text_processing import clean_text, split_into_chunks

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Outcome of one ingestion run."""

    documents: int
    chunks: int
    sources: list[str] = field(default_factory=list)


def chunk_document(ref: DocumentRef, text: str, chunk_size: int, overlap: int) -> list[dict[str, Any]]:
    """Clean and chunk one document's text; attach its metadata to each chunk."""
    chunks = split_into_chunks(clean_text(text), chunk_size=chunk_size, overlap=overlap)
    return [
        {
            "text": chunk,
            "metadata": {
                "document_id": ref.id,
                "document_name": ref.name,
                "web_url": ref.web_url,
                "last_modified": ref.last_modified,
                "chunk_index": i,
            },
        }
        for i, chunk in enumerate(chunks)
    ]


def run_ingestion(source: Any, store: Any, chunk_size: int = 1000, overlap: int = 200) -> IngestionReport:
    """
    Rebuild the index from the document source.

    source: list_documents() / fetch_document_content(ref).
    store: clear() / add_chunks(chunks).

    Raises IngestionError when no document produced any text, and lets
    DocumentSourceError and store errors propagate (the job aborts).
    """
    store.clear()
    logger.info("[ingestion] cleared existing documents")

    documents = source.list_documents()
    logger.info("[ingestion] found %d documents in SharePoint", len(documents))

    all_chunks: list[dict[str, Any]] = []
    sources: list[str] = []
    for ref in documents:
        logger.info("[ingestion] processing: %s", ref.name)
        raw, content_type = source.fetch_document_content(ref)
        text = extract_text(raw, content_type, ref.name)
        chunks = chunk_document(ref, text, chunk_size, overlap)
        if chunks:
            sources.append(ref.name)
        all_chunks.extend(chunks)
        logger.info("[ingestion] %s -> %d chunks", ref.name, len(chunks))

    if not all_chunks:
        raise IngestionError("No chunks were produced from the document library; nothing to upload")

    stored = store.add_chunks(all_chunks)
    logger.info("[ingestion] inserted %d chunks from %d documents", stored, len(documents))
    return IngestionReport(documents=len(documents), chunks=stored, sources=sources)
