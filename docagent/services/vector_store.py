"""
Vector store client: Milvus Cloud connection, embeddings (HF Inference API), and chunk storage.

Responsibility: Embed texts via all-MiniLM-L6-v2, store chunks with document
metadata, answer similarity queries with scores.
"""

import logging
from typing import Any

import httpx

from docagent.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

HF_ROUTER_URL = "https://router.huggingface.co/hf-inference/models/{model}/pipeline/feature-extraction"
HF_STANDARD_URL = "https://api-inference.huggingface.co/models/{model}"

# Metadata keys stored next to each vector
METADATA_FIELDS = ["document_id", "document_name", "web_url", "last_modified", "chunk_index"]


class Embedder:
    """Batch embeddings over the Hugging Face Inference API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        batch_size: int = 32,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ServiceUnavailableError(
                "HF_API_KEY must be set in .env. Get a token from https://huggingface.co/settings/tokens"
            )
        self.api_key = api_key
        self.model = model
        self.batch_size = batch_size
        self.timeout = timeout

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """
        Return one normalized vector per text (unit length, for cosine similarity).

        The router endpoint is tried first; a 403 there falls back to the
        standard inference URL.
        """
        if not texts:
            return []

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        api_urls = [HF_ROUTER_URL.format(model=self.model), HF_STANDARD_URL.format(model=self.model)]
        all_embeddings: list[list[float]] = []

        with httpx.Client(timeout=self.timeout) as client:
            for i in range(0, len(texts), self.batch_size):
                batch = texts[i : i + self.batch_size]
                payload = {"inputs": batch, "options": {"wait_for_model": True}}
                response = None
                last_error: str | None = None

                for api_url in api_urls:
                    try:
                        response = client.post(api_url, json=payload, headers=headers)
                    except httpx.HTTPError as e:
                        last_error = str(e)
                        if api_url == api_urls[-1]:
                            raise
                        continue
                    if response.status_code == 403 and api_url == api_urls[0]:
                        last_error = response.text
                        continue
                    break

                if response is None or response.status_code != 200:
                    msg = response.text if response is not None else last_error
                    if response is not None and response.status_code == 401:
                        raise ServiceUnavailableError("Invalid HF API key. Check HF_API_KEY")
                    raise RuntimeError(f"HF API error: {msg}")

                result = response.json()
                if isinstance(result, list) and result and isinstance(result[0], list):
                    batch_emb = result
                else:
                    batch_emb = [
                        item if isinstance(item, list) else [item]
                        for item in (result if isinstance(result, list) else [result])
                    ]

                for vec in batch_emb:
                    norm = sum(x * x for x in vec) ** 0.5
                    if norm == 0:
                        norm = 1.0
                    all_embeddings.append([x / norm for x in vec])

        logger.info("[vector_store:embed] texts=%d vectors=%d", len(texts), len(all_embeddings))
        return all_embeddings


class VectorStore:
    """
    Milvus collection holding chunk text, metadata and vectors.

    open() connects (and creates the collection when missing); close() releases
    the client. Nothing is connected at construction time.
    """

    def __init__(
        self,
        embedder: Embedder,
        uri: str,
        token: str,
        collection_name: str = "documents",
        dim: int = 384,
        client: Any = None,
    ) -> None:
        self.embedder = embedder
        self.uri = uri
        self.token = token
        self.collection_name = collection_name
        self.dim = dim
        self._client = client

    def open(self) -> None:
        if self._client is None:
            if not self.uri or not self.token:
                raise ServiceUnavailableError("MILVUS_URI and MILVUS_TOKEN must be set in .env")
            from pymilvus import MilvusClient

            self._client = MilvusClient(uri=self.uri, token=self.token)
            logger.info("Milvus connection established")
        self._ensure_collection()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Milvus connection closed")

    @property
    def client(self) -> Any:
        if self._client is None:
            self.open()
        return self._client

    def _ensure_collection(self) -> None:
        if not self._client.has_collection(self.collection_name):
            self._client.create_collection(
                collection_name=self.collection_name,
                dimension=self.dim,
                primary_field_name="id",
                vector_field_name="vector",
                metric_type="COSINE",
                auto_id=True,
            )
            logger.info("Collection %s created (dim=%s)", self.collection_name, self.dim)

    def similarity_search(self, query: str, k: int) -> list[dict[str, Any]]:
        """
        Embed the query and return up to k hits as {"text", "metadata", "score"},
        highest score first. Hits with equal scores keep the order Milvus returned.
        """
        logger.info("[vector_store:search] IN  query=%r k=%d", query, k)
        query_vec = self.embedder.embed_texts([query])
        if not query_vec:
            return []
        results = self.client.search(
            collection_name=self.collection_name,
            data=query_vec,
            limit=k,
            output_fields=["text", *METADATA_FIELDS],
        )
        hits = results[0] if results else []
        out = []
        for h in hits:
            entity = h.get("entity") or h
            out.append({
                "text": entity.get("text", ""),
                "metadata": {f: entity.get(f) for f in METADATA_FIELDS if entity.get(f) is not None},
                "score": float(h.get("distance", h.get("score", 0.0))),
            })
        out.sort(key=lambda r: -r["score"])
        logger.info("[vector_store:search] OUT hits=%d first_scores=%s", len(out), [round(r["score"], 4) for r in out[:5]])
        return out

    def add_chunks(self, chunks: list[dict[str, Any]]) -> int:
        """
        Embed each chunk and insert it with its metadata, then flush the collection.
        Each chunk is {"text": str, "metadata": {...}}. Returns rows inserted.
        """
        if not chunks:
            return 0
        embeddings = self.embedder.embed_texts([c["text"] for c in chunks])
        rows = []
        for c, emb in zip(chunks, embeddings):
            meta = c.get("metadata") or {}
            row = {"vector": emb, "text": c["text"]}
            for f in METADATA_FIELDS:
                if meta.get(f) is not None:
                    row[f] = meta[f]
            rows.append(row)
        self.client.insert(collection_name=self.collection_name, data=rows)
        self.client.flush(collection_name=self.collection_name)
        logger.info("Embedded and stored %d chunks", len(rows))
        return len(rows)

    def clear(self) -> None:
        """Drop and recreate the collection so the index starts empty."""
        if self.client.has_collection(self.collection_name):
            self.client.drop_collection(collection_name=self.collection_name)
            logger.info("Knowledge base cleared: collection %s dropped", self.collection_name)
        self._ensure_collection()

    def list_sources(self, limit: int = 16_384) -> list[str]:
        """Distinct document names in the collection."""
        if not self.client.has_collection(self.collection_name):
            return []
        results = self.client.query(
            collection_name=self.collection_name,
            filter="",
            limit=limit,
            output_fields=["document_name"],
        )
        return sorted({(r.get("document_name") or "").strip() for r in results if (r.get("document_name") or "").strip()})
