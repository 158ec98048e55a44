"""
Shared fakes: a scripted chat model and an in-memory vector store.

Tests never reach OpenAI, Hugging Face, Milvus or Microsoft Graph.
"""

from typing import Any

import pytest

from docagent.agent.loop import AgentLoop
from docagent.agent.tools import ToolRegistry, build_document_search_tool
from docagent.core.checkpoint_store import InMemoryCheckpointStore
from docagent.schemas.messages import AIMessage, ToolCall
from docagent.services.retrieval_service import Retriever


class ScriptedChatModel:
    """Returns queued replies in order; an Exception in the queue is raised instead."""

    model = "scripted"

    def __init__(self, replies: list[Any]) -> None:
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def invoke(self, system: str, messages: list, tools: list) -> AIMessage:
        self.calls.append({"system": system, "messages": list(messages), "tools": tools})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self) -> None:
        pass


class FakeVectorStore:
    """Records searches and returns canned hits."""

    def __init__(self, hits: list[dict[str, Any]] | None = None, error: Exception | None = None) -> None:
        self.hits = hits or []
        self.error = error
        self.searches: list[tuple[str, int]] = []

    def similarity_search(self, query: str, k: int) -> list[dict[str, Any]]:
        self.searches.append((query, k))
        if self.error is not None:
            raise self.error
        return self.hits[:k]


def tool_call_reply(name: str, arguments: dict[str, Any], call_id: str = "call_1", content: str = "") -> AIMessage:
    return AIMessage(content=content, tool_calls=[ToolCall(id=call_id, name=name, arguments=arguments)])


REFUND_HIT = {
    "text": "Customers may request refunds within 30 days of purchase.",
    "metadata": {"document_name": "Refund Policy.docx", "chunk_index": 0},
    "score": 0.91,
}


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore([REFUND_HIT])


@pytest.fixture
def registry(vector_store: FakeVectorStore) -> ToolRegistry:
    return ToolRegistry([build_document_search_tool(Retriever(vector_store))])


@pytest.fixture
def checkpoints() -> InMemoryCheckpointStore:
    return InMemoryCheckpointStore()


@pytest.fixture
def make_loop(registry: ToolRegistry, checkpoints: InMemoryCheckpointStore):
    def _make(replies: list[Any], **kwargs: Any) -> tuple[AgentLoop, ScriptedChatModel]:
        model = ScriptedChatModel(replies)
        return AgentLoop(model, registry, checkpoints, **kwargs), model
    return _make
