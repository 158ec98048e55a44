#!/usr/bin/env python3
"""
Rebuild the vector index from the SharePoint document library.

Clears the collection, then fetches every document, extracts and chunks its
text, embeds the chunks and inserts them. Requires MILVUS_URI, MILVUS_TOKEN,
HF_API_KEY, TENANT_ID, CLIENT_ID, CLIENT_SECRET and SITE_ID in .env.

Run from project root:

    python scripts/seed_database.py
"""

import logging
import sys
from pathlib import Path

# Project root on path so "docagent" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from docagent.core.config import CHUNK_OVERLAP, CHUNK_SIZE, LOG_LEVEL
from docagent.services.agent_service import build_document_source, build_vector_store
from docagent.services.ingestion_service import run_ingestion

logger = logging.getLogger("seed_database")


def main() -> int:
    logging.basicConfig(level=LOG_LEVEL)
    store = build_vector_store()
    source = build_document_source()
    try:
        store.open()
        report = run_ingestion(source, store, chunk_size=CHUNK_SIZE, overlap=CHUNK_OVERLAP)
    except Exception:
        logger.exception("Error seeding database")
        return 1
    finally:
        source.close()
        store.close()
    print(f"Inserted {report.chunks} chunks from {report.documents} documents.")
    print("Database seeding completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
