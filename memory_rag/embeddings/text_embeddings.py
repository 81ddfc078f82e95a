# ============================================
# Text Embeddings Module
# ============================================
"""
Generate text embeddings for memory search.

This module provides:
    - EmbeddingProvider: capability interface for remote embedding models
    - VertexEmbeddingProvider: Vertex AI text-embedding adapter
    - EmbeddingService: dimension-checked generation with a development-only
      random-vector fallback

The default model (text-embedding-004) produces 768-dimensional vectors.
The configured dimension must match the vectors stored in the knowledge
table; a mismatch is treated as a configuration error.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np
from google.api_core.retry import Retry
from vertexai.language_models import TextEmbeddingInput, TextEmbeddingModel

from memory_rag.exceptions import ConfigurationError, EmbeddingGenerationError
from memory_rag.utils.config import RetrievalSettings
from memory_rag.utils.gcp_utils import initialize_vertex_ai
from memory_rag.utils.logging_utils import preview

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingResponse:
    """Vector returned by a provider, with optional token usage."""

    vector: list[float]
    token_count: Optional[int] = None


class EmbeddingProvider(ABC):
    """Abstract interface for text -> embedding vector conversion."""

    @abstractmethod
    def embed(self, text: str, model_id: str) -> EmbeddingResponse:
        """Embed a single text with the given model."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the provider has the credentials it needs."""


class VertexEmbeddingProvider(EmbeddingProvider):
    """
    Text embedding provider backed by Vertex AI.

    Attributes:
        project_id: GCP project ID
        location: GCP region
        task_type: Vertex AI embedding task type
        output_dimensionality: Requested vector size (None = model default)
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: str = "us-central1",
        task_type: str = "RETRIEVAL_QUERY",
        output_dimensionality: Optional[int] = None,
        retry: Optional[Retry] = None,
    ):
        """
        Initialize the provider. Vertex AI is initialized lazily on first use.

        Args:
            project_id: GCP project ID
            location: GCP region
            task_type: Embedding task type
            output_dimensionality: Requested vector size
            retry: Optional retry policy for the remote call (off by default)
        """
        self.project_id = project_id
        self.location = location
        self.task_type = task_type
        self.output_dimensionality = output_dimensionality
        self._retry = retry
        self._models: dict[str, TextEmbeddingModel] = {}
        self._lock = threading.Lock()

    def is_configured(self) -> bool:
        return bool(self.project_id)

    def _load_model(self, model_id: str) -> TextEmbeddingModel:
        with self._lock:
            if model_id not in self._models:
                if not self._models:
                    initialize_vertex_ai(self.project_id, self.location)
                self._models[model_id] = TextEmbeddingModel.from_pretrained(model_id)
            return self._models[model_id]

    def embed(self, text: str, model_id: str) -> EmbeddingResponse:
        model = self._load_model(model_id)
        inputs = [TextEmbeddingInput(text=text, task_type=self.task_type)]

        def call():
            kwargs = {}
            if self.output_dimensionality:
                kwargs["output_dimensionality"] = self.output_dimensionality
            return model.get_embeddings(inputs, **kwargs)

        if self._retry is not None:
            call = self._retry(call)

        embeddings = call()
        if not embeddings:
            raise EmbeddingGenerationError(f"Vertex AI returned no embedding for model {model_id}")

        embedding = embeddings[0]
        statistics = getattr(embedding, "statistics", None)
        token_count = getattr(statistics, "token_count", None)
        return EmbeddingResponse(vector=list(embedding.values), token_count=token_count)


class EmbeddingService:
    """
    Generates fixed-dimension query embeddings.

    When the provider has no credentials (or fails) and fallback is enabled,
    a pseudorandom vector with components drawn uniformly from [-1, 1] is
    returned instead. Fallback must only be enabled outside production.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        model_id: str = "text-embedding-004",
        dimension: int = 768,
        fallback_enabled: bool = False,
        rng: Optional[np.random.Generator] = None,
    ):
        if dimension <= 0:
            raise ConfigurationError(f"Embedding dimension must be positive, got {dimension}")
        self.provider = provider
        self.model_id = model_id
        self.dimension = dimension
        self.fallback_enabled = fallback_enabled
        self._rng = rng or np.random.default_rng()
        self._rng_lock = threading.Lock()

    def generate(self, text: str) -> list[float]:
        """
        Generate the embedding for a text.

        Args:
            text: Non-empty text to embed

        Returns:
            Vector of length `dimension`

        Raises:
            EmbeddingGenerationError: Empty input or provider failure
            ConfigurationError: Missing credential without fallback, or a
                dimension mismatch with the configured model
        """
        if not text or not text.strip():
            raise EmbeddingGenerationError("Cannot generate an embedding for empty text")

        logger.debug(f"Generating embedding for \"{preview(text, 30)}\" using {self.model_id}")

        if not self.provider.is_configured():
            if self.fallback_enabled:
                logger.warning(
                    "No embedding provider credential configured. "
                    "Falling back to random embeddings for development."
                )
                return self.random_embedding()
            raise ConfigurationError(
                "Missing embedding provider credential (GCP_PROJECT_ID). "
                "Random fallback embeddings are only available outside production "
                "with ALLOW_MISSING_CREDENTIALS=true."
            )

        try:
            response = self.provider.embed(text, self.model_id)
        except ConfigurationError:
            raise
        except Exception as e:
            if self.fallback_enabled:
                logger.warning(
                    f"Embedding provider failed ({e}). Falling back to random embeddings."
                )
                return self.random_embedding()
            raise EmbeddingGenerationError(
                f"Failed to generate embedding with {self.model_id}: {e}"
            ) from e

        if len(response.vector) != self.dimension:
            raise ConfigurationError(
                f"Embedding model {self.model_id} returned {len(response.vector)} dimensions, "
                f"but the knowledge store expects {self.dimension}"
            )

        logger.debug(
            f"Embedding generated. Token usage: "
            f"{response.token_count if response.token_count is not None else 'N/A'}"
        )
        return response.vector

    def random_embedding(self) -> list[float]:
        """Pseudorandom vector of the configured dimension, values in [-1, 1]."""
        with self._rng_lock:
            values = self._rng.uniform(-1.0, 1.0, size=self.dimension)
        return values.tolist()


def build_embedding_service(settings: RetrievalSettings) -> EmbeddingService:
    """Create the Vertex-backed embedding service described by settings."""
    provider = VertexEmbeddingProvider(
        project_id=settings.project_id,
        location=settings.location,
        output_dimensionality=settings.embedding_dimension,
    )
    return EmbeddingService(
        provider,
        model_id=settings.embedding_model,
        dimension=settings.embedding_dimension,
        fallback_enabled=settings.fallback_enabled,
    )


def embed_text(text: str) -> list[float]:
    """Generate embedding for a single text using settings from the environment."""
    service = build_embedding_service(RetrievalSettings.from_env())
    return service.generate(text)


if __name__ == "__main__":
    sample_text = "What is E.V.E.?"
    print(f"Embedding text: {sample_text}")

    # Note: Requires GCP credentials, or ALLOW_MISSING_CREDENTIALS=true in dev
    # embedding = embed_text(sample_text)
    # print(f"Embedding dimension: {len(embedding)}")
