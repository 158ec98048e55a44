"""
Agent runtime: build the agent's collaborators from configuration and own their lifecycle.

Responsibility: Wire checkpoint store, vector store, retriever, tool registry,
chat model and loop; open them at process start and close them at shutdown.
Called by the API and scripts; no HTTP here.
"""

import logging
from typing import Any

from docagent.agent.llm import ChatModel
from docagent.agent.loop import AgentLoop
from docagent.agent.tools import ToolRegistry, build_document_search_tool
from docagent.core import config
from docagent.core.checkpoint_store import CheckpointStore, InMemoryCheckpointStore, SqliteCheckpointStore
from docagent.ingest.sharepoint import SharePointClient
from docagent.schemas.messages import Message
from docagent.services.ingestion_service import IngestionReport, run_ingestion
from docagent.services.retrieval_service import Retriever
from docagent.services.vector_store import Embedder, VectorStore

logger = logging.getLogger(__name__)


def build_checkpoint_store(path: str) -> CheckpointStore:
    if path:
        return SqliteCheckpointStore(path)
    logger.warning("CHECKPOINT_DB_PATH is empty; threads are kept in memory only")
    return InMemoryCheckpointStore()


def build_vector_store() -> VectorStore:
    embedder = Embedder(
        api_key=config.HF_API_KEY,
        model=config.HF_EMBED_MODEL,
        batch_size=config.EMBED_BATCH_SIZE,
        timeout=config.EMBED_API_TIMEOUT,
    )
    return VectorStore(
        embedder,
        uri=config.MILVUS_URI,
        token=config.MILVUS_TOKEN,
        collection_name=config.COLLECTION_NAME,
        dim=config.VECTOR_DIM,
    )


def build_document_source() -> SharePointClient:
    return SharePointClient(
        tenant_id=config.TENANT_ID,
        client_id=config.CLIENT_ID,
        client_secret=config.CLIENT_SECRET,
        site_id=config.SITE_ID,
        graph_base_url=config.GRAPH_BASE_URL,
        scope=config.GRAPH_SCOPE,
        timeout=config.GRAPH_HTTP_TIMEOUT,
    )


class AgentRuntime:
    """Holds one agent loop and the handles it depends on."""

    def __init__(
        self,
        loop: AgentLoop,
        vector_store: Any,
        checkpoints: CheckpointStore,
        chat_model: Any,
    ) -> None:
        self.loop = loop
        self.vector_store = vector_store
        self.checkpoints = checkpoints
        self.chat_model = chat_model

    @classmethod
    def from_config(cls) -> "AgentRuntime":
        checkpoints = build_checkpoint_store(config.CHECKPOINT_DB_PATH)
        vector_store = build_vector_store()
        retriever = Retriever(vector_store, default_count=config.SEARCH_DEFAULT_K, max_count=config.SEARCH_MAX_K)
        tools = ToolRegistry([build_document_search_tool(retriever)])
        chat_model = ChatModel(
            api_key=config.OPENAI_API_KEY,
            model=config.OPENAI_LLM_MODEL,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.AGENT_MAX_TOKENS,
        )
        loop = AgentLoop(
            chat_model,
            tools,
            checkpoints,
            max_iterations=config.MAX_ITERATIONS,
            parallel_tool_calls=config.PARALLEL_TOOL_CALLS,
        )
        return cls(loop, vector_store, checkpoints, chat_model)

    def open(self) -> None:
        self.vector_store.open()
        logger.info("[runtime] opened (model=%s)", getattr(self.chat_model, "model", "?"))

    def close(self) -> None:
        self.vector_store.close()
        self.checkpoints.close()
        self.chat_model.close()
        logger.info("[runtime] closed")

    def run(self, thread_id: str, query: str) -> str:
        return self.loop.run(thread_id, query)

    def history(self, thread_id: str) -> list[Message]:
        return self.loop.history(thread_id)

    def list_sources(self) -> list[str]:
        return self.vector_store.list_sources()

    def ingest(self, source: Any = None) -> IngestionReport:
        """Full-refresh ingestion from the SharePoint library (or the given source)."""
        own_source = source is None
        source = source or build_document_source()
        try:
            return run_ingestion(source, self.vector_store, chunk_size=config.CHUNK_SIZE, overlap=config.CHUNK_OVERLAP)
        finally:
            if own_source:
                source.close()
