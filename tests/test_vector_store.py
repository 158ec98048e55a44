"""
Unit tests for the Milvus-backed vector store and HF embedder (clients mocked).
"""

from unittest.mock import MagicMock, patch

import httpx
import pytest

from docagent.core.errors import ServiceUnavailableError
from docagent.services.vector_store import Embedder, VectorStore


class FixedEmbedder:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(texts)
        return [[1.0, 0.0] for _ in texts]


@pytest.fixture
def milvus() -> MagicMock:
    client = MagicMock()
    client.has_collection.return_value = True
    return client


def test_similarity_search_maps_hits(milvus: MagicMock) -> None:
    milvus.search.return_value = [[
        {"id": 2, "distance": 0.42, "entity": {"text": "b", "document_name": "b.pdf", "chunk_index": 1}},
        {"id": 1, "distance": 0.87, "entity": {"text": "a", "document_name": "a.docx", "chunk_index": 0}},
    ]]
    store = VectorStore(FixedEmbedder(), uri="", token="", client=milvus)
    hits = store.similarity_search("refunds", 5)

    assert [h["text"] for h in hits] == ["a", "b"]
    assert hits[0] == {"text": "a", "metadata": {"document_name": "a.docx", "chunk_index": 0}, "score": 0.87}
    assert milvus.search.call_args.kwargs["limit"] == 5


def test_add_chunks_inserts_metadata(milvus: MagicMock) -> None:
    store = VectorStore(FixedEmbedder(), uri="", token="", collection_name="docs", client=milvus)
    n = store.add_chunks([{"text": "hello", "metadata": {"document_id": "d1", "chunk_index": 0, "extra": "x"}}])
    assert n == 1
    rows = milvus.insert.call_args.kwargs["data"]
    assert rows == [{"vector": [1.0, 0.0], "text": "hello", "document_id": "d1", "chunk_index": 0}]
    milvus.flush.assert_called_once_with(collection_name="docs")


def test_clear_drops_and_recreates(milvus: MagicMock) -> None:
    milvus.has_collection.side_effect = [True, False]
    store = VectorStore(FixedEmbedder(), uri="", token="", client=milvus)
    store.clear()
    milvus.drop_collection.assert_called_once()
    milvus.create_collection.assert_called_once()


def test_open_requires_settings() -> None:
    with pytest.raises(ServiceUnavailableError):
        VectorStore(FixedEmbedder(), uri="", token="").open()


def test_embedder_requires_key() -> None:
    with pytest.raises(ServiceUnavailableError):
        Embedder(api_key="", model="m")


def test_embedder_normalizes_vectors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[[3.0, 4.0], [0.0, 0.0]])

    real_client = httpx.Client
    with patch("docagent.services.vector_store.httpx.Client", lambda timeout: real_client(transport=httpx.MockTransport(handler))):
        vectors = Embedder(api_key="k", model="m").embed_texts(["a", "b"])
    assert vectors == [[0.6, 0.8], [0.0, 0.0]]
