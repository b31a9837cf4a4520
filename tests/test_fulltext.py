"""
Tests for DuckDBLexicalIndex (BM25 via DuckDB's fts extension).

Skipped when the fts extension cannot be installed or loaded.
"""

import duckdb
import pytest
import pytest_asyncio

from plan_kg.storage.duckdb import DuckDBGraphStorage, DuckDBLexicalIndex


@pytest_asyncio.fixture
async def fts_storage():
    store = DuckDBGraphStorage()
    await store.initialize()
    try:
        await store.rebuild_fulltext_index()
    except duckdb.Error as e:
        await store.close()
        pytest.skip(f"DuckDB fts extension unavailable: {e}")
    yield store
    await store.close()


class TestDuckDBLexicalIndex:
    """Tests for BM25 lexical search over entities."""

    @pytest.mark.asyncio
    async def test_canonical_id_match_ranks_first(self, fts_storage):
        await fts_storage.upsert_entity("plan", "plan:0042", "Search rework")
        await fts_storage.upsert_entity("plan", "plan:0043", "Billing cleanup")
        lexical = DuckDBLexicalIndex(fts_storage)

        results = await lexical.search("plan 0042", limit=5)

        assert results[0][0] == "plan:0042"
        assert all(score >= 0 for _, score in results)
        assert results == sorted(results, key=lambda item: (-item[1], item[0]))

    @pytest.mark.asyncio
    async def test_name_match(self, fts_storage):
        await fts_storage.upsert_entity("feature", "feature:auth", "OAuth login flow")
        await fts_storage.upsert_entity("feature", "feature:billing", "Invoice export")
        lexical = DuckDBLexicalIndex(fts_storage)

        results = await lexical.search("login", limit=5)
        assert [cid for cid, _ in results] == ["feature:auth"]

    @pytest.mark.asyncio
    async def test_index_refreshes_after_writes(self, fts_storage):
        """Entities written after the first search are found by the next one."""
        await fts_storage.upsert_entity("plan", "plan:0001", "Indexer")
        lexical = DuckDBLexicalIndex(fts_storage)
        assert await lexical.search("watcher") == []

        await fts_storage.upsert_entity("plan", "plan:0002", "File watcher")
        results = await lexical.search("watcher")
        assert [cid for cid, _ in results] == ["plan:0002"]

    @pytest.mark.asyncio
    async def test_empty_query_and_limit(self, fts_storage):
        await fts_storage.upsert_entity("plan", "plan:0001", "Indexer")
        lexical = DuckDBLexicalIndex(fts_storage)
        assert await lexical.search("   ") == []
        assert await lexical.search("indexer", limit=0) == []
