# ============================================
# Query Expansion Module
# ============================================
"""
LLM-based query paraphrasing to widen retrieval recall.

This module provides:
    - CompletionProvider: capability interface for text completion
    - VertexCompletionProvider: Vertex AI Gemini adapter
    - QueryExpander: best-effort generation of alternate phrasings

Expansion never aborts retrieval. Any failure yields an empty variant
list plus a diagnostic string, and the pipeline continues with the
original query alone.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from vertexai.generative_models import GenerativeModel

from memory_rag.exceptions import ExpansionError
from memory_rag.models import QueryVariant, VariantOrigin
from memory_rag.utils.gcp_utils import initialize_vertex_ai
from memory_rag.utils.logging_utils import preview

logger = logging.getLogger(__name__)


EXPANSION_PROMPT_TEMPLATE = (
    "Generate {count} alternative ways to phrase the following user query, "
    "focusing on capturing the core intent. Each variation should be on a new line. "
    "Do not add any introductory text, just the variations.\n\n"
    "Original Query: \"{query}\"\n\n"
    "Variations:"
)

# Output budget per requested variation
TOKENS_PER_VARIATION = 100


class CompletionProvider(ABC):
    """Abstract interface for single-shot text completion."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model_id: str,
        temperature: float = 0.5,
        max_output_tokens: int = 256,
    ) -> str:
        """Return the model's text for a prompt."""

    def is_configured(self) -> bool:
        return True


class VertexCompletionProvider(CompletionProvider):
    """
    Completion provider backed by Vertex AI generative models.

    Attributes:
        project_id: GCP project ID
        location: GCP region
    """

    def __init__(self, project_id: Optional[str] = None, location: str = "us-central1"):
        self.project_id = project_id
        self.location = location
        self._models: dict[str, GenerativeModel] = {}
        self._lock = threading.Lock()

    def is_configured(self) -> bool:
        return bool(self.project_id)

    def _load_model(self, model_id: str) -> GenerativeModel:
        with self._lock:
            if model_id not in self._models:
                if not self._models:
                    initialize_vertex_ai(self.project_id, self.location)
                self._models[model_id] = GenerativeModel(model_id)
            return self._models[model_id]

    def complete(
        self,
        prompt: str,
        model_id: str,
        temperature: float = 0.5,
        max_output_tokens: int = 256,
    ) -> str:
        if not self.is_configured():
            raise ExpansionError("Missing GCP_PROJECT_ID; cannot call Vertex AI")

        model = self._load_model(model_id)
        response = model.generate_content(
            prompt,
            generation_config={
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            },
        )

        # .text raises ValueError when the response has no usable candidate
        try:
            return response.text
        except ValueError as e:
            raise ExpansionError(f"Malformed response from {model_id}: {e}") from e


@dataclass
class ExpansionResult:
    """Expansion variants (original excluded) and an optional diagnostic."""

    variants: list[QueryVariant] = field(default_factory=list)
    diagnostic: Optional[str] = None


def parse_variations(text: str, original_query: str, count: int) -> list[str]:
    """
    Turn raw model output into at most `count` usable variations.

    Lines are trimmed, blanks dropped, and lines equal to the original
    query (case-insensitive) removed before truncating.
    """
    original = original_query.strip().lower()
    lines = [line.strip() for line in text.splitlines()]
    variations = [line for line in lines if line and line.lower() != original]
    return variations[:max(count, 0)]


class QueryExpander:
    """Generates alternate phrasings of a query with a language model."""

    def __init__(self, provider: CompletionProvider, temperature: float = 0.5):
        self.provider = provider
        self.temperature = temperature

    def build_prompt(self, original_query: str, count: int) -> str:
        return EXPANSION_PROMPT_TEMPLATE.format(count=count, query=original_query)

    def expand(self, original_query: str, count: int, model_id: str) -> ExpansionResult:
        """
        Generate up to `count` variations of a query.

        Args:
            original_query: The user's query
            count: Maximum number of variations
            model_id: Model used for the completion call

        Returns:
            ExpansionResult with EXPANSION-tagged variants, or an empty list
            and a diagnostic if the model call failed
        """
        if count <= 0:
            return ExpansionResult()

        logger.info(
            f"Generating query variations for \"{preview(original_query)}\" using model: {model_id}"
        )

        try:
            if not self.provider.is_configured():
                raise ExpansionError("completion provider credential is not configured")
            text = self.provider.complete(
                self.build_prompt(original_query, count),
                model_id,
                temperature=self.temperature,
                max_output_tokens=TOKENS_PER_VARIATION * count,
            )
            if not isinstance(text, str):
                raise ExpansionError(f"expected text from {model_id}, got {type(text).__name__}")
        except Exception as e:
            diagnostic = f"Error generating query variations with {model_id}: {e}"
            logger.error(diagnostic)
            return ExpansionResult(diagnostic=diagnostic)

        variations = parse_variations(text, original_query, count)
        if variations:
            logger.info(f"Generated {len(variations)} variations: {variations}")
        else:
            logger.info("LLM did not generate usable query variations.")

        return ExpansionResult(
            variants=[QueryVariant(text=v, origin=VariantOrigin.EXPANSION) for v in variations]
        )
