"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Only the runtime wiring reads this module; components take their
settings as constructor arguments.
"""

import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# Chunking defaults (tuning these affects retrieval quality)
CHUNK_SIZE: int = 1000
CHUNK_OVERLAP: int = 200

# Milvus Cloud (from env)
MILVUS_URI: str = os.getenv("MILVUS_URI", "").strip()
MILVUS_TOKEN: str = os.getenv("MILVUS_TOKEN", "").strip()
COLLECTION_NAME: str = os.getenv("MILVUS_COLLECTION", "documents").strip() or "documents"

# Hugging Face (embeddings)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_EMBED_MODEL: str = "sentence-transformers/all-MiniLM-L6-v2"
# all-MiniLM-L6-v2 = 384
VECTOR_DIM: int = 384
EMBED_BATCH_SIZE: int = 32
EMBED_API_TIMEOUT: float = 30.0

# Retrieval tool
SEARCH_DEFAULT_K: int = 10
SEARCH_MAX_K: int = 50

# OpenAI (agent LLM)
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)
LLM_TEMPERATURE: float = 0.0
AGENT_MAX_TOKENS: int = 1024

# Agent loop
MAX_ITERATIONS: int = 15
PARALLEL_TOOL_CALLS: bool = os.getenv("PARALLEL_TOOL_CALLS", "").strip().lower() in ("1", "true", "yes")

# Checkpoints: empty path keeps threads in memory only
CHECKPOINT_DB_PATH: str = os.getenv("CHECKPOINT_DB_PATH", "data/checkpoints.db").strip()

# SharePoint / Microsoft Graph (document source)
TENANT_ID: str = os.getenv("TENANT_ID", "").strip()
CLIENT_ID: str = os.getenv("CLIENT_ID", "").strip()
CLIENT_SECRET: str = os.getenv("CLIENT_SECRET", "").strip()
SITE_ID: str = os.getenv("SITE_ID", "").strip()
GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE: str = "https://graph.microsoft.com/.default"
GRAPH_HTTP_TIMEOUT: float = 60.0
