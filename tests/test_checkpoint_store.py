"""
Unit tests for checkpoint stores: round trip, isolation and restart survival.
"""

import sqlite3

import pytest

from docagent.core.checkpoint_store import CheckpointStore, InMemoryCheckpointStore, SqliteCheckpointStore
from docagent.core.errors import CheckpointStoreError
from docagent.schemas.messages import AIMessage, HumanMessage, ToolCall, ToolMessage

CONVERSATION = [
    HumanMessage(content="What is the refund policy?"),
    AIMessage(tool_calls=[ToolCall(id="call_1", name="document_search", arguments={"query": "refund policy", "n": 3})]),
    ToolMessage(tool_call_id="call_1", name="document_search", content='[{"passage": "refunds within 30 days"}]'),
    AIMessage(content="FINAL ANSWER: Refunds within 30 days."),
]


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryCheckpointStore()
    return SqliteCheckpointStore(tmp_path / "checkpoints.db")


class TestRoundTrip:
    def test_unknown_thread_is_empty(self, store) -> None:
        assert store.load("never-seen") == []

    def test_save_then_load(self, store) -> None:
        store.save("t1", CONVERSATION)
        assert store.load("t1") == CONVERSATION

    def test_save_replaces_previous_log(self, store) -> None:
        store.save("t1", CONVERSATION)
        store.save("t1", CONVERSATION[:1])
        assert store.load("t1") == CONVERSATION[:1]

    def test_threads_are_partitioned(self, store) -> None:
        store.save("t1", CONVERSATION)
        store.save("t2", CONVERSATION[:2])
        assert store.load("t1") == CONVERSATION
        assert store.load("t2") == CONVERSATION[:2]

    def test_loaded_list_is_a_copy(self, store) -> None:
        store.save("t1", CONVERSATION[:1])
        loaded = store.load("t1")
        loaded.append(AIMessage(content="not saved"))
        assert store.load("t1") == CONVERSATION[:1]


class TestSqlite:
    def test_survives_new_instance(self, tmp_path) -> None:
        path = tmp_path / "checkpoints.db"
        SqliteCheckpointStore(path).save("t1", CONVERSATION)
        assert SqliteCheckpointStore(path).load("t1") == CONVERSATION

    def test_corrupt_payload_raises(self, tmp_path) -> None:
        path = tmp_path / "checkpoints.db"
        store = SqliteCheckpointStore(path)
        conn = sqlite3.connect(str(path))
        conn.execute("INSERT INTO checkpoints (thread_id, messages, updated_at) VALUES ('t1', 'not json', 'now')")
        conn.commit()
        conn.close()
        with pytest.raises(CheckpointStoreError):
            store.load("t1")

    def test_unusable_path_raises(self, tmp_path) -> None:
        # A directory cannot be opened as a database file
        with pytest.raises(CheckpointStoreError):
            SqliteCheckpointStore(tmp_path)


def test_incomplete_store_cannot_be_built() -> None:
    class LoadOnly(CheckpointStore):
        def load(self, thread_id):
            return []

    with pytest.raises(TypeError):
        LoadOnly()
