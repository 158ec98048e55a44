"""
API handlers: call the runtime, map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import asyncio
import logging

from fastapi import HTTPException

from docagent.core.errors import (
    CheckpointStoreError,
    DocumentSourceError,
    IngestionError,
    IterationLimitExceeded,
    ModelInvocationError,
    ServiceUnavailableError,
)
from docagent.schemas.ingest import IngestResponse
from docagent.schemas.messages import messages_to_dicts
from docagent.schemas.query import QueryRequest, QueryResponse, ThreadMessagesResponse
from docagent.services.agent_service import AgentRuntime

logger = logging.getLogger(__name__)


def handle_query(runtime: AgentRuntime, body: QueryRequest) -> QueryResponse:
    """Run one agent turn. Never returns a partial answer: failures become HTTP errors."""
    logger.info("[api:query] IN  thread_id=%s question=%r", body.thread_id, body.question)
    try:
        answer = runtime.run(body.thread_id, body.question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except IterationLimitExceeded as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    except ModelInvocationError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    except CheckpointStoreError as e:
        logger.exception("Checkpoint store failed")
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message) from e
    logger.info("[api:query] OUT thread_id=%s answer_len=%d", body.thread_id, len(answer))
    return QueryResponse(answer=answer, thread_id=body.thread_id)


def handle_thread_messages(runtime: AgentRuntime, thread_id: str) -> ThreadMessagesResponse:
    try:
        messages = runtime.history(thread_id)
    except CheckpointStoreError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return ThreadMessagesResponse(thread_id=thread_id, messages=messages_to_dicts(messages))


async def handle_ingest(runtime: AgentRuntime) -> IngestResponse:
    """Run the full-refresh job in a worker thread so the event loop is not blocked."""
    try:
        report = await asyncio.to_thread(runtime.ingest)
    except IngestionError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    except (DocumentSourceError, ServiceUnavailableError) as e:
        raise HTTPException(status_code=503, detail=e.message) from e
    return IngestResponse(documents=report.documents, chunks=report.chunks, sources=report.sources)
