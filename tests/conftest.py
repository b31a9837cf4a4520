"""Shared fixtures for plan-kg tests."""

import pytest
import pytest_asyncio

from plan_kg.config import KGConfig
from plan_kg.storage.duckdb import DuckDBGraphStorage


@pytest_asyncio.fixture
async def storage():
    """Initialized in-memory graph storage."""
    store = DuckDBGraphStorage()
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def memory_config():
    """Config using only in-memory indexes and the offline embedding provider."""
    return KGConfig(
        default_recipe=None,
        lexical_backend="memory",
        embedding_backend="memory",
        embedding_provider="hashing",
        embedding_dimensions=128,
        search_limit=10,
        over_retrieve_factor=3,
    )
