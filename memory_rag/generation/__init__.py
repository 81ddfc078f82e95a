# ============================================
# Generation Module
# ============================================
"""
Prompt augmentation with retrieved memory.

Components:
    - prompt_augmenter: Context block formatting
    - rag_pipeline: Consumer-facing augmentation pipeline and CLI

Features:
    - Source-attributed memory block appended to the system prompt
    - Graceful fallback to the base prompt when nothing is retrieved
"""

from .prompt_augmenter import augment_prompt, format_knowledge_context
from .rag_pipeline import (
    DEFAULT_SYSTEM_PROMPT,
    MemoryAugmentationPipeline,
    augment_system_prompt,
    build_pipeline,
    extract_user_query,
)

__all__ = [
    "augment_prompt",
    "format_knowledge_context",
    "DEFAULT_SYSTEM_PROMPT",
    "MemoryAugmentationPipeline",
    "augment_system_prompt",
    "build_pipeline",
    "extract_user_query",
]
