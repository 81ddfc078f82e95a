# ============================================
# RAG Pipeline Module
# ============================================
"""
Retrieval-augmented system prompts for the memory-backed assistant.

This module orchestrates:
    1. Query expansion and concurrent semantic search
    2. Deduplicated, similarity-ranked merge of results
    3. Context block construction and prompt augmentation

Retrieval failures never crash the chat flow: the caller always receives
either an augmented prompt or the unmodified base prompt, plus an
optional diagnostic. Only configuration errors are raised.
"""

import argparse
import logging
import sys
from typing import Any, Optional, Sequence

from memory_rag.embeddings.text_embeddings import build_embedding_service
from memory_rag.exceptions import ConfigurationError
from memory_rag.generation.prompt_augmenter import augment_prompt
from memory_rag.models import AugmentationOutcome, SearchOptions
from memory_rag.retrieval.fan_out import FanOutSearchCoordinator
from memory_rag.retrieval.query_expansion import QueryExpander, VertexCompletionProvider
from memory_rag.retrieval.ranking import rank_results
from memory_rag.retrieval.vector_search import (
    SimilaritySearchClient,
    build_search_client,
)
from memory_rag.utils.config import RetrievalSettings
from memory_rag.utils.gcp_utils import create_bigquery_client, qualified_table_id
from memory_rag.utils.logging_utils import configure_logging, preview

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = (
    "You are E.V.E (Elevated Virtual Essence), a helpful AI assistant integrated "
    "with a persistent memory system. Use the available tools to manage entities, "
    "relations, and knowledge in your memory when appropriate to answer user "
    "queries or store information."
)


class MemoryAugmentationPipeline:
    """
    Augments system prompts with knowledge retrieved from memory.

    Combines the fan-out search coordinator with ranking and prompt
    formatting. All remote clients are injected through the coordinator.
    """

    def __init__(
        self,
        coordinator: FanOutSearchCoordinator,
        settings: Optional[RetrievalSettings] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            coordinator: Configured fan-out search coordinator
            settings: Source of default search options
        """
        self.coordinator = coordinator
        self.settings = settings or RetrievalSettings()

    def default_options(self) -> SearchOptions:
        return SearchOptions(
            top_k=self.settings.top_k,
            expansion_count=self.settings.expansion_count,
            model_id=self.settings.expansion_model,
            timeout=self.settings.timeout,
        )

    def augment_system_prompt(
        self,
        base_prompt: str,
        user_query: str,
        options: Optional[SearchOptions] = None,
    ) -> AugmentationOutcome:
        """
        Retrieve relevant memory for a query and append it to a prompt.

        Args:
            base_prompt: System prompt to augment
            user_query: The user's latest message
            options: Search options (defaults from settings)

        Returns:
            AugmentationOutcome with the (possibly unchanged) prompt, the
            ranked results and any diagnostic

        Raises:
            ConfigurationError: Missing production credentials or a
                dimension mismatch with the knowledge store
        """
        if not user_query or not user_query.strip():
            logger.info("RAG: No user query found")
            return AugmentationOutcome(augmented_prompt=base_prompt)

        logger.info(f"RAG: Augmenting system prompt for \"{preview(user_query)}\"")
        outcome = self.coordinator.run(user_query, options or self.default_options())

        ranked = rank_results(outcome.results)
        augmented = augment_prompt(base_prompt, ranked)

        if ranked:
            logger.info(f"Returning {len(ranked)} unique knowledge results after expansion.")
        else:
            logger.info("RAG: System prompt was not augmented (no relevant knowledge found)")

        return AugmentationOutcome(
            augmented_prompt=augmented,
            ranked_results=ranked,
            diagnostic=outcome.diagnostic,
        )


def extract_user_query(messages: Sequence[dict[str, Any]]) -> str:
    """
    Extract the user's query from the last message of a conversation.

    Content may be a plain string or a list of parts; the first text part
    is used. Returns "" when the last message is not from the user.
    """
    if not messages:
        return ""

    last_message = messages[-1]
    if last_message.get("role") != "user":
        return ""

    content = last_message.get("content")
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        for part in content:
            if isinstance(part, dict) and part.get("type") == "text" and "text" in part:
                return part["text"]

    return ""


def build_search_client_from_settings(settings: RetrievalSettings) -> SimilaritySearchClient:
    """Create the configured vector store client."""
    if settings.vector_store_backend == "memory":
        return build_search_client("memory", dimension=settings.embedding_dimension)

    if settings.vector_store_backend == "bigquery":
        if not settings.project_id:
            raise ConfigurationError(
                "GCP_PROJECT_ID is required for the BigQuery vector store"
            )
        return build_search_client(
            "bigquery",
            client=create_bigquery_client(settings.project_id),
            table_id=qualified_table_id(
                settings.project_id, settings.bigquery_dataset, settings.bigquery_table
            ),
            timeout=settings.timeout,
        )

    return build_search_client(settings.vector_store_backend)


def build_pipeline(settings: Optional[RetrievalSettings] = None) -> MemoryAugmentationPipeline:
    """
    Composition root: wire Vertex AI and the vector store into a pipeline.

    Args:
        settings: Pipeline settings (default from environment)
    """
    settings = settings or RetrievalSettings.from_env()

    coordinator = FanOutSearchCoordinator(
        embedding_service=build_embedding_service(settings),
        search_client=build_search_client_from_settings(settings),
        expander=QueryExpander(
            VertexCompletionProvider(project_id=settings.project_id, location=settings.location)
        ),
        default_model_id=settings.expansion_model,
        max_workers=settings.max_workers,
    )
    return MemoryAugmentationPipeline(coordinator, settings)


def augment_system_prompt(
    base_prompt: str,
    user_query: str,
    options: Optional[SearchOptions] = None,
) -> AugmentationOutcome:
    """
    Convenience function to augment a prompt using settings from the environment.

    Args:
        base_prompt: System prompt to augment
        user_query: The user's latest message
        options: Search options

    Returns:
        AugmentationOutcome
    """
    pipeline = build_pipeline()
    return pipeline.augment_system_prompt(base_prompt, user_query, options)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Augment a system prompt with knowledge retrieved from memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  memory-rag "What is E.V.E.?"
  memory-rag "What is E.V.E.?" --top-k 3 --expansion-count 0
  memory-rag "project status" --entity 4f1c... --timeout 5
        """
    )
    parser.add_argument("query", help="User query to search memory for")
    parser.add_argument(
        "--base-prompt",
        default=DEFAULT_SYSTEM_PROMPT,
        help="System prompt to augment"
    )
    parser.add_argument("--top-k", type=int, default=None, help="Results per query variant")
    parser.add_argument(
        "--expansion-count",
        type=int,
        default=None,
        help="Number of LLM query variations (0 disables expansion)"
    )
    parser.add_argument("--model", default=None, help="Model used for query expansion")
    parser.add_argument("--entity", default=None, help="Only search knowledge for this entity id")
    parser.add_argument("--timeout", type=float, default=None, help="Deadline in seconds")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    args = parser.parse_args(argv)

    try:
        settings = RetrievalSettings.from_env()
        configure_logging(settings.log_level, verbose=args.verbose)
        pipeline = build_pipeline(settings)

        options = pipeline.default_options()
        if args.top_k is not None:
            options.top_k = args.top_k
        if args.expansion_count is not None:
            options.expansion_count = args.expansion_count
        if args.model:
            options.model_id = args.model
        if args.entity:
            options.entity_filter = args.entity
        if args.timeout is not None:
            options.timeout = args.timeout

        outcome = pipeline.augment_system_prompt(args.base_prompt, args.query, options)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except ValueError as e:
        logger.error(f"Invalid option: {e}")
        return 2

    print(outcome.augmented_prompt)
    if outcome.diagnostic:
        print(f"\n[diagnostic] {outcome.diagnostic}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
