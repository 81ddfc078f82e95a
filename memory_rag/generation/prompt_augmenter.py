# ============================================
# Prompt Augmenter Module
# ============================================
"""
Fold retrieved memory into a system prompt.

The context block lists only human-readable content, wrapped in explicit
header/footer markers so the downstream model can tell retrieved memory
apart from the rest of the prompt. Ids, scores and embeddings are never
included.
"""

from typing import Sequence

from memory_rag.models import SearchResult


CONTEXT_HEADER = "Relevant Information Retrieved from Memory:"
CONTEXT_FOOTER = "--- End of Retrieved Information ---"


def format_knowledge_context(results: Sequence[SearchResult]) -> str:
    """
    Build the retrieved-memory block.

    Args:
        results: Ranked search results

    Returns:
        Context block starting with a blank line separator, or "" if empty
    """
    if not results:
        return ""

    retrieved_context = "\n".join(f"- {r.content}" for r in results)
    return f"\n\n{CONTEXT_HEADER}\n{retrieved_context}\n{CONTEXT_FOOTER}\n"


def augment_prompt(base_prompt: str, ranked_results: Sequence[SearchResult]) -> str:
    """Append the memory block to base_prompt; unchanged when nothing was found."""
    if not ranked_results:
        return base_prompt
    return base_prompt + format_knowledge_context(ranked_results)
