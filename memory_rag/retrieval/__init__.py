# ============================================
# Retrieval Module
# ============================================
"""
Semantic memory retrieval.

Components:
    - vector_search: Similarity search interface, BigQuery and in-memory adapters
    - query_expansion: LLM-based query paraphrasing
    - fan_out: Concurrent multi-variant search with ordered merge
    - ranking: Final result ordering

Features:
    - Query expansion for wider recall
    - Entity-scoped search
    - Partial-failure tolerant merging
"""

from .vector_search import (
    SimilaritySearchClient,
    BigQueryVectorSearchClient,
    InMemoryVectorSearchClient,
    build_search_client,
)
from .query_expansion import (
    CompletionProvider,
    VertexCompletionProvider,
    QueryExpander,
    ExpansionResult,
)
from .fan_out import FanOutSearchCoordinator
from .ranking import rank_results

__all__ = [
    "SimilaritySearchClient",
    "BigQueryVectorSearchClient",
    "InMemoryVectorSearchClient",
    "build_search_client",
    "CompletionProvider",
    "VertexCompletionProvider",
    "QueryExpander",
    "ExpansionResult",
    "FanOutSearchCoordinator",
    "rank_results",
]
