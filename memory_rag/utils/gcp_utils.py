# ============================================
# GCP Utilities Module
# ============================================
"""
GCP client construction and environment helpers.

This module provides:
    - Vertex AI initialization
    - BigQuery client construction
    - Environment detection (dev/test/prod)

Clients are built explicitly by the composition root and passed to the
components that need them; nothing here is cached at module level.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from google.cloud import bigquery
import vertexai

from memory_rag.exceptions import ConfigurationError


# Load environment variables
load_dotenv()

PRODUCTION_ENVIRONMENTS = frozenset({"prod", "production"})


def get_project_id() -> str:
    """
    Project that owns the knowledge table and the Vertex AI models.

    Raises:
        ConfigurationError: GCP_PROJECT_ID is unset or blank
    """
    project_id = (os.getenv("GCP_PROJECT_ID") or "").strip()
    if not project_id:
        raise ConfigurationError(
            "GCP_PROJECT_ID is not set; memory retrieval needs a project for "
            "Vertex AI and BigQuery."
        )
    return project_id


def get_region() -> str:
    """Region for Vertex AI calls."""
    return os.getenv("GCP_REGION", "us-central1")


def get_environment() -> str:
    """Get the current environment (dev/test/prod)."""
    return os.getenv("ENVIRONMENT", "dev")


def is_production(environment: Optional[str] = None) -> bool:
    """Return True when the given (or current) environment is production."""
    env = environment if environment is not None else get_environment()
    return env.strip().lower() in PRODUCTION_ENVIRONMENTS


def initialize_vertex_ai(
    project_id: Optional[str] = None,
    location: Optional[str] = None,
) -> None:
    """Point the Vertex AI SDK at a project and region (defaults from env)."""
    vertexai.init(project=project_id or get_project_id(), location=location or get_region())


def create_bigquery_client(project_id: Optional[str] = None) -> bigquery.Client:
    """BigQuery client billed to the given (or configured) project."""
    return bigquery.Client(project=project_id or get_project_id())


def qualified_table_id(project_id: str, dataset: str, table: str) -> str:
    """
    Build a fully qualified BigQuery table id.

    Example:
        qualified_table_id("eve", "memory", "knowledge") -> "eve.memory.knowledge"
    """
    for part_name, part in (("project", project_id), ("dataset", dataset), ("table", table)):
        if not part or "`" in part:
            raise ConfigurationError(f"Invalid BigQuery {part_name} name: {part!r}")
    return f"{project_id}.{dataset}.{table}"


if __name__ == "__main__":
    print("Memory retrieval GCP settings:")
    print(f"  Project ID: {os.getenv('GCP_PROJECT_ID', 'NOT SET')}")
    print(f"  Region: {get_region()}")
    print(f"  Environment: {get_environment()}")
    print(f"  Production: {is_production()}")
