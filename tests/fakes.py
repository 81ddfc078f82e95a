# ============================================
# Fake Providers for Tests
# ============================================
"""
In-process fakes for the embedding, completion and similarity-search
interfaces, so the pipeline can be exercised without GCP credentials.
"""

import time
from typing import Optional, Union

import numpy as np

from memory_rag.embeddings.text_embeddings import (
    EmbeddingProvider,
    EmbeddingResponse,
    EmbeddingService,
)
from memory_rag.models import SearchResult
from memory_rag.retrieval.query_expansion import CompletionProvider
from memory_rag.retrieval.vector_search import SimilaritySearchClient


DIMENSION = 4


class KeyedEmbeddingProvider(EmbeddingProvider):
    """Returns a fixed vector per text; unknown texts get a constant vector."""

    def __init__(
        self,
        vectors: Optional[dict] = None,
        dimension: int = DIMENSION,
        configured: bool = True,
        failing: tuple = (),
    ):
        self.vectors = vectors or {}
        self.dimension = dimension
        self.configured = configured
        self.failing = set(failing)
        self.calls: list[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def embed(self, text: str, model_id: str) -> EmbeddingResponse:
        self.calls.append(text)
        if text in self.failing:
            raise RuntimeError("embedding backend unavailable")
        vector = self.vectors.get(text, [0.5] * self.dimension)
        return EmbeddingResponse(vector=list(vector), token_count=len(text.split()))


class ScriptedSearchClient(SimilaritySearchClient):
    """
    Returns canned results keyed by query vector.

    A response may be a list of results or an exception to raise. Optional
    per-vector delays simulate slow network calls.
    """

    def __init__(
        self,
        responses: Optional[dict] = None,
        delays: Optional[dict] = None,
        default: Union[list, Exception, None] = None,
    ):
        self.responses = {tuple(k): v for k, v in (responses or {}).items()}
        self.delays = {tuple(k): v for k, v in (delays or {}).items()}
        self.default = default if default is not None else []
        self.calls: list[tuple] = []

    def search(self, query_vector, top_k, entity_filter=None):
        key = tuple(query_vector)
        self.calls.append((key, top_k, entity_filter))
        delay = self.delays.get(key)
        if delay:
            time.sleep(delay)
        response = self.responses.get(key, self.default)
        if isinstance(response, Exception):
            raise response
        return list(response)[:top_k]


class FakeCompletionProvider(CompletionProvider):
    """Returns fixed text or raises a fixed error, optionally after a delay."""

    def __init__(
        self,
        text: str = "",
        error: Optional[Exception] = None,
        configured: bool = True,
        delay: float = 0.0,
    ):
        self.text = text
        self.error = error
        self.configured = configured
        self.delay = delay
        self.prompts: list[tuple] = []

    def is_configured(self) -> bool:
        return self.configured

    def complete(self, prompt, model_id, temperature=0.5, max_output_tokens=256):
        self.prompts.append((prompt, model_id, temperature, max_output_tokens))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


def one_hot(index: int, dimension: int = DIMENSION) -> list[float]:
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


def make_result(record_id: str, similarity: float, content: Optional[str] = None) -> SearchResult:
    return SearchResult(id=record_id, content=content or f"content of {record_id}", similarity=similarity)


def make_service(provider: EmbeddingProvider, fallback_enabled: bool = False) -> EmbeddingService:
    return EmbeddingService(
        provider,
        model_id="test-embedding",
        dimension=DIMENSION,
        fallback_enabled=fallback_enabled,
        rng=np.random.default_rng(7),
    )


def axis(index: int, dimension: int = DIMENSION) -> tuple:
    """Hashable form of one_hot, for keying scripted search responses."""
    return tuple(one_hot(index, dimension))
