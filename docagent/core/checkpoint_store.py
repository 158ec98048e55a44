"""
Checkpoint stores: durable per-thread conversation state.

A checkpoint is the full message log of a thread. save() replaces the stored
log with the given one; load() returns an empty list for unknown threads.
Reads and writes for one thread are serialized by the store; callers must not
run two turns on the same thread concurrently (no compare-and-swap).
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from docagent.core.errors import CheckpointStoreError
from docagent.schemas.messages import Message, dump_messages, load_messages

logger = logging.getLogger(__name__)

_TABLE = "checkpoints"


class CheckpointStore(ABC):
    """Interface: load / save a thread's messages."""

    @abstractmethod
    def load(self, thread_id: str) -> list[Message]:
        """Stored messages of thread_id, or [] for a new thread."""

    @abstractmethod
    def save(self, thread_id: str, messages: list[Message]) -> None:
        """Replace the stored messages of thread_id."""

    def close(self) -> None:
        pass


class InMemoryCheckpointStore(CheckpointStore):
    """Process-local store keyed by thread_id. Lost on restart."""

    def __init__(self) -> None:
        self._threads: dict[str, list[Message]] = {}
        self._lock = threading.Lock()

    def load(self, thread_id: str) -> list[Message]:
        with self._lock:
            messages = list(self._threads.get(thread_id) or [])
        logger.info("[checkpoint:memory:load] thread_id=%s messages=%d", thread_id[:16], len(messages))
        return messages

    def save(self, thread_id: str, messages: list[Message]) -> None:
        with self._lock:
            self._threads[thread_id] = list(messages)
        logger.info("[checkpoint:memory:save] thread_id=%s messages=%d", thread_id[:16], len(messages))


class SqliteCheckpointStore(CheckpointStore):
    """
    SQLite-backed store. Table: checkpoints (thread_id, messages, updated_at).

    Survives process restarts. Opens a connection per operation; writes go
    through a lock so saves for the same thread never interleave.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self._path))

    def _init_db(self) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_TABLE} (
                        thread_id TEXT PRIMARY KEY,
                        messages TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise CheckpointStoreError("", f"Cannot open checkpoint database {self._path}: {e}") from e

    def load(self, thread_id: str) -> list[Message]:
        try:
            with self._lock:
                conn = self._get_conn()
                try:
                    row = conn.execute(
                        f"SELECT messages FROM {_TABLE} WHERE thread_id = ?", (thread_id,)
                    ).fetchone()
                finally:
                    conn.close()
        except sqlite3.Error as e:
            raise CheckpointStoreError(thread_id, f"Checkpoint load failed: {e}") from e
        if row is None:
            logger.info("[checkpoint:sqlite:load] thread_id=%s new thread", thread_id[:16])
            return []
        try:
            messages = load_messages(row[0])
        except ValidationError as e:
            raise CheckpointStoreError(thread_id, f"Stored checkpoint is corrupt: {e}") from e
        logger.info("[checkpoint:sqlite:load] thread_id=%s messages=%d", thread_id[:16], len(messages))
        return messages

    def save(self, thread_id: str, messages: list[Message]) -> None:
        payload = dump_messages(messages)
        try:
            with self._lock:
                conn = self._get_conn()
                try:
                    conn.execute(
                        f"""
                        INSERT INTO {_TABLE} (thread_id, messages, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(thread_id) DO UPDATE SET
                            messages = excluded.messages,
                            updated_at = excluded.updated_at
                        """,
                        (thread_id, payload, datetime.now(timezone.utc).isoformat()),
                    )
                    conn.commit()
                finally:
                    conn.close()
        except sqlite3.Error as e:
            raise CheckpointStoreError(thread_id, f"Checkpoint save failed: {e}") from e
        logger.info("[checkpoint:sqlite:save] thread_id=%s messages=%d bytes=%d", thread_id[:16], len(messages), len(payload))
