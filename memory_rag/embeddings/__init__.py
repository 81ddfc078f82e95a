# ============================================
# Embeddings Module
# ============================================
"""
Generate query embeddings for semantic memory search.

Components:
    - text_embeddings: Vertex AI text-embedding provider and EmbeddingService

Embedding models:
    - Text: text-embedding-004 (768 dimensions)
"""

from .text_embeddings import (
    EmbeddingProvider,
    EmbeddingResponse,
    EmbeddingService,
    VertexEmbeddingProvider,
    build_embedding_service,
    embed_text,
)

__all__ = [
    "EmbeddingProvider",
    "EmbeddingResponse",
    "EmbeddingService",
    "VertexEmbeddingProvider",
    "build_embedding_service",
    "embed_text",
]
