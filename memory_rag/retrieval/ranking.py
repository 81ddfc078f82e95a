# ============================================
# Result Ranking Module
# ============================================
"""
Final ordering of merged search results.
"""

from typing import Iterable

from memory_rag.models import SearchResult


def rank_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """
    Sort results by similarity, highest first.

    Python's sort is stable, so results with equal similarity keep the
    order in which they were merged (original query first, then
    expansions in generation order).

    Args:
        results: Deduplicated results in first-seen order

    Returns:
        New list ordered by descending similarity
    """
    return sorted(results, key=lambda r: r.similarity, reverse=True)
