"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Request

from docagent.api.handlers import handle_ingest, handle_query, handle_thread_messages
from docagent.schemas.ingest import IngestResponse
from docagent.schemas.query import QueryRequest, QueryResponse, ThreadMessagesResponse
from docagent.services.agent_service import AgentRuntime

logger = logging.getLogger(__name__)
router = APIRouter()


def _runtime(request: Request) -> AgentRuntime:
    return request.app.state.runtime


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Document Q&A agent running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Ingestion ---

@router.get("/sources", tags=["ingestion"], summary="List documents in the knowledge base")
def get_sources(request: Request) -> dict:
    """Return document names currently in the vector index."""
    try:
        sources = _runtime(request).list_sources()
    except Exception as e:
        logger.warning("Failed to list sources: %s", e)
        sources = []
    return {"sources": sources}


@router.post(
    "/ingest",
    response_model=IngestResponse,
    tags=["ingestion"],
    summary="Rebuild the index from SharePoint",
    description="Full refresh: clears the index, then fetches, extracts, chunks and embeds every document. 422 when nothing could be ingested, 503 when SharePoint or the vector store is unavailable.",
)
async def post_ingest(request: Request) -> IngestResponse:
    return await handle_ingest(_runtime(request))


# --- Query ---

@router.post(
    "/query",
    response_model=QueryResponse,
    tags=["query"],
    summary="Ask the agent on a thread",
    description="Send a question and a thread_id; the thread's history is restored from its checkpoint and saved after the answer. 400 on invalid input, 422 when the iteration limit is hit, 502 when the model fails, 503 when the checkpoint store fails.",
)
def post_query(body: QueryRequest, request: Request) -> QueryResponse:
    return handle_query(_runtime(request), body)


@router.get(
    "/threads/{thread_id}/messages",
    response_model=ThreadMessagesResponse,
    tags=["query"],
    summary="Persisted messages of a thread",
)
def get_thread_messages(thread_id: str, request: Request) -> ThreadMessagesResponse:
    return handle_thread_messages(_runtime(request), thread_id)
