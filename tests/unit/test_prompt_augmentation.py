# ============================================
# Unit Tests for Ranking and Prompt Augmentation
# ============================================
"""
Tests for result ordering and context block formatting.
"""

from memory_rag.generation.prompt_augmenter import (
    CONTEXT_FOOTER,
    CONTEXT_HEADER,
    augment_prompt,
    format_knowledge_context,
)
from memory_rag.retrieval.ranking import rank_results
from tests.fakes import make_result


BASE_PROMPT = "You are a helpful assistant."


class TestRankResults:
    """Tests for the similarity ranking."""

    def test_sorts_descending(self):
        results = [make_result("a", 0.2), make_result("b", 0.9), make_result("c", 0.5)]

        assert [r.id for r in rank_results(results)] == ["b", "c", "a"]

    def test_ties_keep_first_seen_order(self):
        results = [
            make_result("zeta", 0.5),
            make_result("alpha", 0.7),
            make_result("beta", 0.5),
            make_result("gamma", 0.5),
        ]

        assert [r.id for r in rank_results(results)] == ["alpha", "zeta", "beta", "gamma"]

    def test_handles_negative_cosine(self):
        results = [make_result("neg", -0.4), make_result("pos", 0.1)]

        assert [r.id for r in rank_results(results)] == ["pos", "neg"]

    def test_empty_input(self):
        assert rank_results([]) == []

    def test_does_not_mutate_input(self):
        results = [make_result("a", 0.1), make_result("b", 0.9)]

        rank_results(results)

        assert [r.id for r in results] == ["a", "b"]


class TestPromptAugmenter:
    """Tests for the retrieved-memory context block."""

    def test_empty_results_return_base_prompt(self):
        assert augment_prompt(BASE_PROMPT, []) == BASE_PROMPT

    def test_appends_bulleted_block(self):
        results = [make_result("k1", 0.9, "First fact."), make_result("k2", 0.8, "Second fact.")]

        augmented = augment_prompt(BASE_PROMPT, results)

        assert augmented == (
            f"{BASE_PROMPT}\n\n{CONTEXT_HEADER}\n- First fact.\n- Second fact.\n{CONTEXT_FOOTER}\n"
        )

    def test_block_omits_ids_and_scores(self):
        results = [make_result("secret-id-123", 0.8765, "Visible content.")]

        block = format_knowledge_context(results)

        assert "Visible content." in block
        assert "secret-id-123" not in block
        assert "0.8765" not in block

    def test_block_is_wrapped_with_markers(self):
        block = format_knowledge_context([make_result("k1", 0.5, "Fact.")])

        assert block.index(CONTEXT_HEADER) < block.index("- Fact.") < block.index(CONTEXT_FOOTER)

    def test_format_empty(self):
        assert format_knowledge_context([]) == ""
