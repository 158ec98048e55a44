"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (vector store, embeddings, LLM)
is misconfigured or unreachable so the API can return 503 with a user-facing message.
The agent loop raises ModelInvocationError, IterationLimitExceeded and
CheckpointStoreError to its caller; UnknownToolError and RetrievalServiceError
are recovered inside the loop as tool result payloads.
"""


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. vector store, embeddings API) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ModelInvocationError(Exception):
    """The language model call failed. Not retried."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnknownToolError(Exception):
    """The model asked for a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.message = f"Unknown tool: {name!r}"
        super().__init__(self.message)


class IterationLimitExceeded(Exception):
    """No final answer within the configured number of tool phases."""

    def __init__(self, thread_id: str, limit: int) -> None:
        self.thread_id = thread_id
        self.limit = limit
        self.message = f"No final answer after {limit} tool iterations (thread {thread_id!r})"
        super().__init__(self.message)


class RetrievalServiceError(Exception):
    """Embedding or similarity search failed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CheckpointStoreError(Exception):
    """Loading or saving a thread checkpoint failed."""

    def __init__(self, thread_id: str, message: str) -> None:
        self.thread_id = thread_id
        self.message = message
        super().__init__(f"{message} (thread {thread_id!r})")


class DocumentSourceError(Exception):
    """The document library could not be listed or read."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IngestionError(Exception):
    """The ingestion job produced nothing to store."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
