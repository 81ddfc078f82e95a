# ============================================
# Unit Tests
# ============================================
"""
Unit tests for the retrieval pipeline. No GCP project or network access
is needed: Vertex AI and BigQuery are replaced by fakes or mocks.
"""
