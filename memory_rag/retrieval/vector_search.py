# ============================================
# Vector Search Module
# ============================================
"""
Similarity search over stored knowledge records.

This module provides:
    - SimilaritySearchClient: capability interface for top-K search
    - BigQueryVectorSearchClient: BigQuery VECTOR_SEARCH adapter
    - InMemoryVectorSearchClient: numpy cosine search for development/tests
    - build_search_client: backend factory

All adapters report similarity as raw cosine similarity in [-1, 1]
(higher = more relevant). None of them retry failed calls.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

import numpy as np
from google.api_core import exceptions
from google.cloud import bigquery

from memory_rag.exceptions import ConfigurationError, SearchError, SearchFunctionMissingError
from memory_rag.models import KnowledgeRecord, SearchResult

logger = logging.getLogger(__name__)


def validate_top_k(top_k: Any) -> int:
    """Reject anything that is not a positive integer."""
    if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k <= 0:
        raise ValueError(f"top_k must be a positive integer, got {top_k!r}")
    return top_k


class SimilaritySearchClient(ABC):
    """
    Abstract interface for vector similarity search.

    Implementations return at most top_k results ordered by descending
    relevance and never modify the store.
    """

    @abstractmethod
    def search(
        self,
        query_vector: list[float],
        top_k: int,
        entity_filter: Optional[str] = None,
    ) -> list[SearchResult]:
        """
        Search for the records most similar to a query vector.

        Args:
            query_vector: Query embedding
            top_k: Maximum number of results (positive)
            entity_filter: Only match records with this entity_id

        Raises:
            ValueError: If top_k is not a positive integer
            SearchError: On any backend failure
        """


class BigQueryVectorSearchClient(SimilaritySearchClient):
    """
    Similarity search backed by BigQuery VECTOR_SEARCH.

    Expects a knowledge table with columns:
        id STRING, content STRING, embedding ARRAY<FLOAT64>,
        entity_id STRING, source STRING, metadata JSON, created_at TIMESTAMP

    Attributes:
        table_id: Fully qualified table id (project.dataset.table)
        timeout: Seconds to wait for query results
    """

    def __init__(
        self,
        client: bigquery.Client,
        table_id: str,
        timeout: Optional[float] = None,
    ):
        if not table_id or "`" in table_id:
            raise ConfigurationError(f"Invalid knowledge table id: {table_id!r}")
        self._client = client
        self.table_id = table_id
        self.timeout = timeout

    def _build_query(self, top_k: int, entity_filter: Optional[str]) -> str:
        if entity_filter is None:
            base_table = f"TABLE `{self.table_id}`"
        else:
            base_table = f"(SELECT * FROM `{self.table_id}` WHERE entity_id = @entity_id)"

        return f"""
            SELECT
                base.id AS id,
                base.content AS content,
                base.entity_id AS entity_id,
                base.source AS source,
                base.metadata AS metadata,
                base.created_at AS created_at,
                1 - distance AS similarity
            FROM VECTOR_SEARCH(
                {base_table},
                'embedding',
                (SELECT @query_vector AS embedding),
                top_k => {top_k},
                distance_type => 'COSINE'
            )
            ORDER BY similarity DESC, id
        """

    def search(
        self,
        query_vector: list[float],
        top_k: int,
        entity_filter: Optional[str] = None,
    ) -> list[SearchResult]:
        validate_top_k(top_k)

        params = [bigquery.ArrayQueryParameter("query_vector", "FLOAT64", list(query_vector))]
        if entity_filter is not None:
            params.append(bigquery.ScalarQueryParameter("entity_id", "STRING", entity_filter))
        job_config = bigquery.QueryJobConfig(query_parameters=params)

        try:
            job = self._client.query(self._build_query(top_k, entity_filter), job_config=job_config)
            rows = list(job.result(timeout=self.timeout))
        except exceptions.NotFound as e:
            raise SearchFunctionMissingError(self._missing_message(e)) from e
        except exceptions.BadRequest as e:
            if "function not found" in str(e).lower():
                raise SearchFunctionMissingError(self._missing_message(e)) from e
            raise SearchError(f"BigQuery vector search error: {e}") from e
        except exceptions.GoogleAPIError as e:
            raise SearchError(f"BigQuery vector search error: {e}") from e
        except TimeoutError as e:
            raise SearchError(
                f"BigQuery vector search timed out after {self.timeout} seconds"
            ) from e
        except Exception as e:
            # transport and google.auth failures
            raise SearchError(f"BigQuery vector search error: {type(e).__name__}: {e}") from e

        try:
            results = [self._row_to_result(row) for row in rows]
        except (TypeError, ValueError) as e:
            raise SearchError(f"Malformed row returned by BigQuery vector search: {e}") from e
        logger.info(f"Vector search found {len(results)} matches in {self.table_id}")
        return results[:top_k]

    def _missing_message(self, error: Exception) -> str:
        return (
            f"Vector search on `{self.table_id}` does not exist. Please ensure the "
            f"knowledge table is created with an `embedding` ARRAY<FLOAT64> column "
            f"and VECTOR_SEARCH is available in the dataset region. ({error})"
        )

    @staticmethod
    def _row_to_result(row) -> SearchResult:
        metadata = row.get("metadata")
        if isinstance(metadata, str):
            try:
                metadata = json.loads(metadata)
            except ValueError:
                logger.debug(f"Ignoring non-JSON metadata on record {row.get('id')}")
                metadata = None
        if metadata is not None and not isinstance(metadata, dict):
            metadata = None

        return SearchResult(
            id=str(row.get("id")),
            content=row.get("content") or "",
            similarity=float(row.get("similarity")),
            entity_id=row.get("entity_id"),
            source=row.get("source"),
            created_at=row.get("created_at"),
            metadata=metadata,
        )


class InMemoryVectorSearchClient(SimilaritySearchClient):
    """
    Exact cosine-similarity search over records held in memory.

    Ties keep insertion order, so results are deterministic for an
    unchanged record set.
    """

    def __init__(self, dimension: int, records: Optional[Iterable[KnowledgeRecord]] = None):
        if dimension <= 0:
            raise ConfigurationError(f"Embedding dimension must be positive, got {dimension}")
        self.dimension = dimension
        self._records: dict[str, KnowledgeRecord] = {}
        if records:
            self.add(records)

    def add(self, records: Iterable[KnowledgeRecord]) -> None:
        """Add records, replacing any with the same id."""
        for record in records:
            if len(record.embedding) != self.dimension:
                raise ConfigurationError(
                    f"Record {record.id} has {len(record.embedding)} dimensions, "
                    f"expected {self.dimension}"
                )
            self._records[record.id] = record

    def count(self) -> int:
        return len(self._records)

    def search(
        self,
        query_vector: list[float],
        top_k: int,
        entity_filter: Optional[str] = None,
    ) -> list[SearchResult]:
        validate_top_k(top_k)
        if len(query_vector) != self.dimension:
            raise ConfigurationError(
                f"Query vector has {len(query_vector)} dimensions, expected {self.dimension}"
            )

        candidates = [
            r for r in self._records.values()
            if entity_filter is None or r.entity_id == entity_filter
        ]
        if not candidates:
            return []

        query = np.asarray(query_vector, dtype=float)
        matrix = np.asarray([r.embedding for r in candidates], dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        similarities = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        # stable sort on the negated scores keeps insertion order for ties
        order = np.argsort(-similarities, kind="stable")[:top_k]
        return [
            SearchResult.from_record(candidates[i], float(similarities[i]))
            for i in order
        ]


def build_search_client(backend: str = "bigquery", **kwargs: Any) -> SimilaritySearchClient:
    """
    Factory: create a SimilaritySearchClient of the requested type.

    Args:
        backend: "bigquery" or "memory"
        **kwargs: Backend-specific configuration

    Raises:
        ValueError: Unknown backend
    """
    if backend == "bigquery":
        return BigQueryVectorSearchClient(**kwargs)
    if backend == "memory":
        return InMemoryVectorSearchClient(**kwargs)
    raise ValueError(
        f"Unknown vector store backend: {backend!r}. Supported: 'bigquery', 'memory'"
    )


if __name__ == "__main__":
    print("Vector Search Client")
    print("Requires a BigQuery knowledge table with an embedding column")
    print("Set GCP_PROJECT_ID, BIGQUERY_DATASET and BIGQUERY_KNOWLEDGE_TABLE in environment")
