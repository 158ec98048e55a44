"""
Unit tests for the full-refresh ingestion job, with fake source and store.
"""

import pytest

from docagent.core.errors import DocumentSourceError, IngestionError
from docagent.ingest.sharepoint import DocumentRef
from docagent.services.ingestion_service import chunk_document, run_ingestion


class FakeSource:
    def __init__(self, documents: dict[str, tuple[bytes, str]], fail_on: str | None = None) -> None:
        self.documents = documents
        self.fail_on = fail_on

    def list_documents(self) -> list[DocumentRef]:
        return [
            DocumentRef(id=f"id-{name}", name=name, web_url=f"https://sp/{name}", last_modified="2024-05-01T10:00:00Z")
            for name in self.documents
        ]

    def fetch_document_content(self, ref: DocumentRef) -> tuple[bytes, str]:
        if ref.name == self.fail_on:
            raise DocumentSourceError(f"cannot read {ref.name}")
        return self.documents[ref.name]


class RecordingStore:
    def __init__(self) -> None:
        self.events: list[str] = []
        self.chunks: list[dict] = []

    def clear(self) -> None:
        self.events.append("clear")

    def add_chunks(self, chunks: list[dict]) -> int:
        self.events.append("add")
        self.chunks.extend(chunks)
        return len(chunks)


def test_full_refresh_clears_then_inserts() -> None:
    source = FakeSource({
        "policy.txt": (b"Refunds are accepted within 30 days.", "text/plain"),
        "empty.txt": (b"   ", "text/plain"),
    })
    store = RecordingStore()
    report = run_ingestion(source, store, chunk_size=1000, overlap=200)

    assert store.events == ["clear", "add"]
    assert report.documents == 2
    assert report.chunks == 1
    assert report.sources == ["policy.txt"]
    assert store.chunks[0] == {
        "text": "Refunds are accepted within 30 days.",
        "metadata": {
            "document_id": "id-policy.txt",
            "document_name": "policy.txt",
            "web_url": "https://sp/policy.txt",
            "last_modified": "2024-05-01T10:00:00Z",
            "chunk_index": 0,
        },
    }


def test_nothing_to_ingest_raises() -> None:
    store = RecordingStore()
    with pytest.raises(IngestionError):
        run_ingestion(FakeSource({}), store)
    assert store.events == ["clear"]


def test_source_failure_aborts_job() -> None:
    source = FakeSource({"a.txt": (b"text", "text/plain"), "b.txt": (b"more", "text/plain")}, fail_on="b.txt")
    store = RecordingStore()
    with pytest.raises(DocumentSourceError):
        run_ingestion(source, store)
    assert store.events == ["clear"]


def test_chunk_indexes_are_sequential() -> None:
    ref = DocumentRef(id="d1", name="long.txt")
    text = " ".join(f"word{i}" for i in range(100))
    chunks = chunk_document(ref, text, chunk_size=60, overlap=10)
    assert len(chunks) > 1
    assert [c["metadata"]["chunk_index"] for c in chunks] == list(range(len(chunks)))
    assert all(c["metadata"]["document_id"] == "d1" for c in chunks)
