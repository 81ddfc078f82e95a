# ============================================
# Data Model Module
# ============================================
"""
Shared data types for the memory retrieval pipeline.

Similarity convention:
    Every SearchResult.similarity is a raw cosine similarity in [-1, 1],
    where higher means more relevant. Backends that report a cosine
    distance d convert it as 1 - d before building results.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union


MetadataValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]
Metadata = Dict[str, MetadataValue]


@dataclass(frozen=True)
class KnowledgeRecord:
    """
    A stored memory unit, read-only from the pipeline's point of view.

    Attributes:
        id: Opaque unique identifier
        content: Text body
        embedding: Fixed-length vector matching the embedding model dimension
        entity_id: Optional entity this knowledge is associated with
        source: Optional provenance string
        metadata: Optional structured key/value map
        created_at: Insertion timestamp
    """

    id: str
    content: str
    embedding: list[float]
    entity_id: Optional[str] = None
    source: Optional[str] = None
    metadata: Optional[Metadata] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SearchResult:
    """A knowledge record annotated with its similarity to a query vector."""

    id: str
    content: str
    similarity: float
    entity_id: Optional[str] = None
    source: Optional[str] = None
    created_at: Optional[datetime] = None
    metadata: Optional[Metadata] = None

    @classmethod
    def from_record(cls, record: KnowledgeRecord, similarity: float) -> "SearchResult":
        return cls(
            id=record.id,
            content=record.content,
            similarity=similarity,
            entity_id=record.entity_id,
            source=record.source,
            created_at=record.created_at,
            metadata=record.metadata,
        )


class VariantOrigin(Enum):
    """Where a query variant came from."""

    ORIGINAL = "original"
    EXPANSION = "expansion"


@dataclass(frozen=True)
class QueryVariant:
    text: str
    origin: VariantOrigin


@dataclass
class SearchOptions:
    """
    Per-call retrieval options.

    Attributes:
        top_k: Results requested from the store per variant
        expansion_count: Maximum number of LLM-generated variants
        model_id: Model used for query expansion (None = configured default)
        entity_filter: Restrict matches to this entity id
        timeout: Overall deadline in seconds (None = no deadline)
    """

    top_k: int = 5
    expansion_count: int = 2
    model_id: Optional[str] = None
    entity_filter: Optional[str] = None
    timeout: Optional[float] = None


@dataclass
class RetrievalOutcome:
    """
    Merged, unranked output of a fan-out search.

    Attributes:
        results: Deduplicated results in first-seen variant order
        variants: Query variants that were searched, original first
        diagnostic: Non-fatal error summary, if any
        error: Structured "no results" error when every variant failed
        variant_errors: Per-variant failure messages in variant order
    """

    results: list[SearchResult]
    variants: list[QueryVariant] = field(default_factory=list)
    diagnostic: Optional[str] = None
    error: Optional[Exception] = None
    variant_errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class AugmentationOutcome:
    """
    Final result handed back to the chat orchestrator.

    augmented_prompt equals the base prompt exactly when ranked_results
    is empty.
    """

    augmented_prompt: str
    ranked_results: list[SearchResult] = field(default_factory=list)
    diagnostic: Optional[str] = None

    @property
    def search_results(self) -> Optional[list[SearchResult]]:
        """Ranked results, or None when nothing was retrieved."""
        return self.ranked_results or None
