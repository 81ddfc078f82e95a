# ============================================
# Test Suite for Memory RAG
# ============================================
"""
Tests for memory retrieval and prompt augmentation.

Unit tests run against in-process fakes (tests/fakes.py); integration
tests talk to Vertex AI and BigQuery and are skipped without a project.

    pytest tests/unit/
    pytest -m integration tests/integration/
    pytest --cov=memory_rag tests/
"""
