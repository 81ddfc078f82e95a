# ============================================
# Configuration Module
# ============================================
"""
Runtime settings for the memory retrieval pipeline.

Settings are read from environment variables (optionally via a .env file)
with defaults suitable for local development.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from memory_rag.exceptions import ConfigurationError
from memory_rag.utils.gcp_utils import is_production


TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUE_VALUES


@dataclass
class RetrievalSettings:
    """
    Pipeline configuration.

    Attributes:
        project_id: GCP project ID; doubles as the provider credential
        location: GCP region
        environment: Deployment environment (dev/test/prod)
        allow_missing_credentials: Opt-in to random embeddings when the
            provider is unavailable (ignored in production)
        embedding_model: Vertex AI text embedding model
        embedding_dimension: Vector dimension shared with the knowledge store
        expansion_model: Vertex AI model used to paraphrase queries
        vector_store_backend: "bigquery" or "memory"
        bigquery_dataset: Dataset holding the knowledge table
        bigquery_table: Knowledge table name
        top_k: Default results per variant
        expansion_count: Default number of query variations
        timeout: Default deadline in seconds for one retrieval run
        max_workers: Thread pool size for variant fan-out
        log_level: Root logging level
    """

    project_id: Optional[str] = None
    location: str = "us-central1"
    environment: str = "dev"
    allow_missing_credentials: bool = False
    embedding_model: str = "text-embedding-004"
    embedding_dimension: int = 768
    expansion_model: str = "gemini-1.5-flash"
    vector_store_backend: str = "bigquery"
    bigquery_dataset: str = "memory"
    bigquery_table: str = "knowledge"
    top_k: int = 5
    expansion_count: int = 2
    timeout: Optional[float] = None
    max_workers: int = 4
    log_level: str = "INFO"

    def __post_init__(self):
        if self.embedding_dimension <= 0:
            raise ConfigurationError(
                f"Embedding dimension must be positive, got {self.embedding_dimension}"
            )
        if self.top_k <= 0:
            raise ConfigurationError(f"top_k must be positive, got {self.top_k}")
        if self.expansion_count < 0:
            raise ConfigurationError(
                f"expansion_count cannot be negative, got {self.expansion_count}"
            )
        if self.max_workers <= 0:
            raise ConfigurationError(f"max_workers must be positive, got {self.max_workers}")

    @property
    def is_production(self) -> bool:
        return is_production(self.environment)

    @property
    def fallback_enabled(self) -> bool:
        """Random-vector fallback is only ever allowed outside production."""
        return self.allow_missing_credentials and not self.is_production

    @classmethod
    def from_env(cls) -> "RetrievalSettings":
        load_dotenv()
        return cls(
            project_id=os.getenv("GCP_PROJECT_ID") or None,
            location=os.getenv("GCP_REGION", "us-central1"),
            environment=os.getenv("ENVIRONMENT", "dev"),
            allow_missing_credentials=_env_bool("ALLOW_MISSING_CREDENTIALS"),
            embedding_model=os.getenv("VERTEX_TEXT_EMBEDDING_MODEL", "text-embedding-004"),
            embedding_dimension=_env_int("EMBEDDING_DIMENSION", 768),
            expansion_model=os.getenv("VERTEX_EXPANSION_MODEL", "gemini-1.5-flash"),
            vector_store_backend=os.getenv("VECTOR_STORE_BACKEND", "bigquery"),
            bigquery_dataset=os.getenv("BIGQUERY_DATASET", "memory"),
            bigquery_table=os.getenv("BIGQUERY_KNOWLEDGE_TABLE", "knowledge"),
            top_k=_env_int("RAG_TOP_K", 5),
            expansion_count=_env_int("RAG_EXPANSION_COUNT", 2),
            timeout=_env_float("RAG_TIMEOUT_SECONDS"),
            max_workers=_env_int("RAG_MAX_WORKERS", 4),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
