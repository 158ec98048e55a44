"""
Retrieval: semantic search over the document index for the agent's search tool.

Responsibility: Validate the requested result count, query the vector store,
return passages ordered by relevance. No caching; every call re-embeds the query.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from docagent.core.errors import RetrievalServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class RetrievedPassage:
    """One search hit."""

    passage: str
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float = 0.0


class Retriever:
    """Wraps a vector store with count validation and error translation."""

    def __init__(self, vector_store: Any, default_count: int = 10, max_count: int = 50) -> None:
        if default_count < 1 or max_count < default_count:
            raise ValueError(f"invalid result counts default={default_count} max={max_count}")
        self.vector_store = vector_store
        self.default_count = default_count
        self.max_count = max_count

    def resolve_count(self, result_count: Any) -> int:
        """Invalid or non-positive counts fall back to the default; large ones are capped."""
        if isinstance(result_count, bool) or not isinstance(result_count, int) or result_count < 1:
            if result_count != self.default_count:
                logger.info("[retrieval:resolve_count] %r -> default %d", result_count, self.default_count)
            return self.default_count
        return min(result_count, self.max_count)

    def search(self, query: str, result_count: Any = 10) -> list[RetrievedPassage]:
        """
        Return up to result_count passages, highest relevance first.

        Raises ValueError on an empty query and RetrievalServiceError when the
        embedding or search call fails.
        """
        q = (query or "").strip()
        if not q:
            raise ValueError("query is required")
        k = self.resolve_count(result_count)
        logger.info("[retrieval:search] IN  query=%r k=%d", q, k)
        try:
            hits = self.vector_store.similarity_search(q, k)
        except ServiceUnavailableError as e:
            raise RetrievalServiceError(e.message) from e
        except Exception as e:
            logger.warning("[retrieval:search] failed: %s", e)
            raise RetrievalServiceError(f"Document search failed: {e}") from e
        passages = [
            RetrievedPassage(
                passage=h.get("text") or "",
                metadata=dict(h.get("metadata") or {}),
                score=float(h.get("score", 0.0)),
            )
            for h in hits[:k]
        ]
        logger.info(
            "[retrieval:search] OUT passages=%d sources=%s",
            len(passages),
            [p.metadata.get("document_name") for p in passages[:5]],
        )
        return passages


def serialize_results(results: list[RetrievedPassage]) -> str:
    """JSON text handed back to the model through the tool boundary."""
    return json.dumps([asdict(r) for r in results], default=str)
