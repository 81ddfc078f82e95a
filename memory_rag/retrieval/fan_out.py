# ============================================
# Fan-Out Search Module
# ============================================
"""
Concurrent semantic search across a query and its expansions.

Each query variant is embedded and searched on a worker thread. After the
join, per-variant batches are merged in variant order (original query
first, then expansions in generation order) so that deduplication and
tie-breaking never depend on which network call finished first.

Per-variant failures of any kind are recorded and skipped. Only
ConfigurationError escapes this module. With a deadline set, query
expansion is bounded by it as well.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Optional

from memory_rag.embeddings.text_embeddings import EmbeddingService
from memory_rag.exceptions import (
    AggregateNoResultsError,
    ConfigurationError,
    EmbeddingGenerationError,
    SearchError,
    SearchTimeoutError,
)
from memory_rag.models import (
    QueryVariant,
    RetrievalOutcome,
    SearchOptions,
    SearchResult,
    VariantOrigin,
)
from memory_rag.retrieval.query_expansion import ExpansionResult, QueryExpander
from memory_rag.retrieval.vector_search import SimilaritySearchClient, validate_top_k
from memory_rag.utils.logging_utils import preview

logger = logging.getLogger(__name__)


@dataclass
class VariantBatch:
    """Outcome of searching a single query variant."""

    position: int
    variant: QueryVariant
    results: list[SearchResult] = field(default_factory=list)
    error: Optional[str] = None


class FanOutSearchCoordinator:
    """
    Orchestrates expansion, embedding and search for one user query.

    Usage::

        coordinator = FanOutSearchCoordinator(
            embedding_service=embedder,
            search_client=bigquery_search,
            expander=expander,
        )
        outcome = coordinator.run("What is E.V.E.?", SearchOptions(top_k=5))
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        search_client: SimilaritySearchClient,
        expander: Optional[QueryExpander] = None,
        default_model_id: str = "gemini-1.5-flash",
        max_workers: int = 4,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.embedding_service = embedding_service
        self.search_client = search_client
        self.expander = expander
        self.default_model_id = default_model_id
        self.max_workers = max_workers
        self._clock = clock

    def run(self, original_query: str, options: Optional[SearchOptions] = None) -> RetrievalOutcome:
        """
        Search memory for a query and all of its expansions.

        Args:
            original_query: The user's query
            options: top_k, expansion count, model, entity filter, deadline

        Returns:
            RetrievalOutcome with merged (unranked) results and diagnostics

        Raises:
            ConfigurationError: Missing production credentials or dimension mismatch
            ValueError: If options.top_k is not a positive integer
        """
        options = options or SearchOptions()
        validate_top_k(options.top_k)
        deadline = None if options.timeout is None else self._clock() + options.timeout

        variants = [QueryVariant(text=original_query, origin=VariantOrigin.ORIGINAL)]
        expansion_diagnostic = None
        if self.expander is not None and options.expansion_count > 0:
            expansion = self._expand(original_query, options, deadline)
            variants.extend(expansion.variants[:options.expansion_count])
            expansion_diagnostic = expansion.diagnostic

        batches = self._dispatch(variants, options, deadline)
        return self._merge(variants, batches, expansion_diagnostic)

    def _expand(
        self,
        original_query: str,
        options: SearchOptions,
        deadline: Optional[float],
    ) -> ExpansionResult:
        model_id = options.model_id or self.default_model_id
        if deadline is None:
            return self.expander.expand(original_query, options.expansion_count, model_id)

        # the model call has no request timeout of its own; expand() never raises
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="memory-expand")
        try:
            future = executor.submit(
                self.expander.expand, original_query, options.expansion_count, model_id
            )
            done, _ = wait([future], timeout=max(0.0, deadline - self._clock()))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if future in done:
            return future.result()
        diagnostic = (
            f"Error generating query variations with {model_id}: "
            "deadline exceeded before the model responded"
        )
        logger.warning(diagnostic)
        return ExpansionResult(diagnostic=diagnostic)

    def search_knowledge(
        self,
        query: str,
        top_k: int = 5,
        entity_filter: Optional[str] = None,
    ) -> RetrievalOutcome:
        """Single-query semantic search without expansion."""
        return self.run(
            query,
            SearchOptions(top_k=top_k, expansion_count=0, entity_filter=entity_filter),
        )

    def _dispatch(
        self,
        variants: list[QueryVariant],
        options: SearchOptions,
        deadline: Optional[float],
    ) -> list[VariantBatch]:
        batches: list[Optional[VariantBatch]] = [None] * len(variants)
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(variants)),
            thread_name_prefix="memory-search",
        )
        try:
            futures = {
                executor.submit(self._search_variant, position, variant, options, deadline): position
                for position, variant in enumerate(variants)
            }
            wait_timeout = None if deadline is None else max(0.0, deadline - self._clock())
            done, pending = wait(futures, timeout=wait_timeout)
            if pending:
                logger.warning("Retrieval deadline reached; returning partial results")
            # futures only raise ConfigurationError; see _search_variant
            for future in sorted(done, key=futures.get):
                batches[futures[future]] = future.result()
        finally:
            # never block past the deadline on calls already in flight
            executor.shutdown(wait=deadline is None, cancel_futures=True)

        for position, batch in enumerate(batches):
            if batch is None:
                batches[position] = VariantBatch(
                    position=position,
                    variant=variants[position],
                    error=(
                        f"Semantic search failed for \"{preview(variants[position].text)}\": "
                        "deadline exceeded before the search completed"
                    ),
                )
        return batches

    def _check_deadline(self, deadline: Optional[float], step: str) -> None:
        if deadline is not None and self._clock() >= deadline:
            raise SearchTimeoutError(f"deadline exceeded before {step} started")

    def _search_variant(
        self,
        position: int,
        variant: QueryVariant,
        options: SearchOptions,
        deadline: Optional[float],
    ) -> VariantBatch:
        label = preview(variant.text)
        logger.info(f"Attempting semantic search for \"{label}\"")

        try:
            self._check_deadline(deadline, "embedding")
            vector = self.embedding_service.generate(variant.text)
            self._check_deadline(deadline, "search")
            results = self.search_client.search(vector, options.top_k, options.entity_filter)
        except EmbeddingGenerationError as e:
            error = (
                f"Semantic search failed for \"{label}\": "
                f"Failed to generate embedding for search query: {e}"
            )
            logger.error(error)
            return VariantBatch(position=position, variant=variant, error=error)
        except SearchError as e:
            error = f"Semantic search failed for \"{label}\": {e}"
            logger.error(error)
            return VariantBatch(position=position, variant=variant, error=error)
        except ConfigurationError:
            raise
        except Exception as e:
            error = f"Semantic search failed for \"{label}\": {type(e).__name__}: {e}"
            logger.exception(error)
            return VariantBatch(position=position, variant=variant, error=error)

        if results:
            logger.info(f"Found {len(results)} results for \"{label}\"")
            logger.debug(
                "Similarity scores of returned matches: "
                + ", ".join(f"{r.similarity:.4f}" for r in results)
            )
        else:
            logger.info(f"No results found for \"{label}\"")
        return VariantBatch(position=position, variant=variant, results=list(results))

    def _merge(
        self,
        variants: list[QueryVariant],
        batches: list[VariantBatch],
        expansion_diagnostic: Optional[str],
    ) -> RetrievalOutcome:
        merged: dict[str, SearchResult] = {}
        variant_errors: list[str] = []

        for batch in sorted(batches, key=lambda b: b.position):
            if batch.error:
                variant_errors.append(batch.error)
                continue
            for result in batch.results:
                # first-seen variant wins, its similarity is kept
                if result.id not in merged:
                    merged[result.id] = result

        last_error = variant_errors[-1] if variant_errors else None
        if not merged:
            if last_error is None:
                logger.info("No relevant knowledge found after trying all queries.")
                return RetrievalOutcome(
                    results=[],
                    variants=variants,
                    diagnostic=expansion_diagnostic,
                )
            error = AggregateNoResultsError(expansion_diagnostic, last_error)
            logger.error(str(error))
            return RetrievalOutcome(
                results=[],
                variants=variants,
                diagnostic=str(error),
                error=error,
                variant_errors=variant_errors,
            )

        logger.info(f"Merged {len(merged)} unique knowledge results from {len(variants)} queries")
        return RetrievalOutcome(
            results=list(merged.values()),
            variants=variants,
            diagnostic=expansion_diagnostic,
            variant_errors=variant_errors,
        )
