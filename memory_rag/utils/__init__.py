# ============================================
# Utilities Module
# ============================================
"""
Shared utilities for configuration, logging and GCP clients.

Components:
    - config: Environment-driven RetrievalSettings
    - gcp_utils: Vertex AI / BigQuery bootstrap and environment helpers
    - logging_utils: Logging configuration for entry points
"""

from .config import RetrievalSettings
from .gcp_utils import (
    initialize_vertex_ai,
    create_bigquery_client,
    get_project_id,
    is_production,
)
from .logging_utils import configure_logging

__all__ = [
    "RetrievalSettings",
    "initialize_vertex_ai",
    "create_bigquery_client",
    "get_project_id",
    "is_production",
    "configure_logging",
]
