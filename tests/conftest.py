# ============================================
# Pytest Configuration and Fixtures
# ============================================
"""
Shared fixtures and configuration for all tests.
"""

from pathlib import Path

import pytest

from memory_rag.models import KnowledgeRecord
from tests.fakes import one_hot


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (deselect with '-m \"not integration\"')",
    )
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow running",
    )


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_env(monkeypatch):
    """Fixture to mock environment variables."""
    env_vars = {
        "GCP_PROJECT_ID": "test-project",
        "GCP_REGION": "us-central1",
        "ENVIRONMENT": "test",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    return env_vars


@pytest.fixture
def eve_records():
    """Five knowledge records about the E.V.E. project in a 4-d space."""
    return [
        KnowledgeRecord(
            id="k1",
            content="E.V.E. is a virtual assistant with persistent memory.",
            embedding=[0.9, 0.1, 0.1, 0.0],
            entity_id="eve",
            source="readme",
        ),
        KnowledgeRecord(
            id="k2",
            content="E.V.E. stores knowledge as vector embeddings.",
            embedding=[0.8, 0.2, 0.0, 0.1],
            entity_id="eve",
        ),
        KnowledgeRecord(
            id="k3",
            content="E.V.E. augments prompts with retrieved memory.",
            embedding=[0.7, 0.0, 0.3, 0.0],
            entity_id="eve",
            metadata={"tags": ["rag"], "confidence": 0.8},
        ),
        KnowledgeRecord(
            id="k4",
            content="E.V.E. stands for Elevated Virtual Essence.",
            embedding=[0.1, 0.9, 0.0, 0.0],
            entity_id="eve",
        ),
        KnowledgeRecord(
            id="k5",
            content="The E.V.E. project tracks entities and their relations.",
            embedding=[0.0, 0.1, 0.9, 0.0],
            entity_id="project",
        ),
    ]


@pytest.fixture
def eve_vectors():
    """Query embeddings for the E.V.E. scenario."""
    return {
        "What is E.V.E.?": one_hot(0),
        "What does E.V.E. stand for?": one_hot(1),
        "Describe the E.V.E. project": one_hot(2),
    }
