"""Schemas for the query and thread endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Request body for POST /query. History is stored server-side by thread_id."""

    question: str = Field(..., min_length=1, description="User question for the agent.")
    thread_id: str = Field(..., min_length=1, description="Conversation thread; state is checkpointed under this id.")


class QueryResponse(BaseModel):
    """Response for POST /query."""

    answer: str = Field(..., description="Final answer from the agent.")
    thread_id: str = Field(..., description="Thread the answer was produced on.")


class ThreadMessagesResponse(BaseModel):
    """Persisted message history for one thread."""

    thread_id: str
    messages: list[dict[str, Any]] = Field(default_factory=list, description="Messages in causal order.")
