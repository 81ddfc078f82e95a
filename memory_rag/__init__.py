# ============================================
# Memory RAG - Source Package
# ============================================
"""
Semantic memory retrieval and prompt augmentation.

Modules:
    - embeddings: Query embedding generation via Vertex AI
    - retrieval: Query expansion, vector search and fan-out merging
    - generation: Prompt augmentation pipeline
    - utils: Settings, logging and GCP utilities
"""

__version__ = "0.1.0"
__author__ = "E.V.E. Memory Team"
