"""Tests for InMemoryLexicalIndex and InMemoryEmbeddingStore."""

import pytest

from plan_kg.providers.embedding.hashing import HashingEmbeddingProvider
from plan_kg.storage.memory import InMemoryEmbeddingStore, InMemoryLexicalIndex
from plan_kg.types import Entity


class TestInMemoryLexicalIndex:
    """Tests for term-overlap lexical search."""

    @pytest.mark.asyncio
    async def test_scores_fraction_of_query_terms(self):
        lexical = InMemoryLexicalIndex()
        lexical.add("plan:0042", "plan:0042 Search rework")
        lexical.add("plan:0043", "plan:0043 Billing cleanup")

        results = await lexical.search("plan 0042")
        assert results == [("plan:0042", 1.0), ("plan:0043", 0.5)]

    @pytest.mark.asyncio
    async def test_no_match_and_limit(self):
        lexical = InMemoryLexicalIndex()
        lexical.add("a", "alpha beta")
        lexical.add("b", "alpha gamma")

        assert await lexical.search("delta") == []
        assert await lexical.search("alpha", limit=1) == [("a", 1.0)]
        assert await lexical.search("alpha", limit=0) == []

    @pytest.mark.asyncio
    async def test_add_entity_and_remove(self):
        lexical = InMemoryLexicalIndex()
        lexical.add_entity(Entity(id=1, type="file", canonical_id="file:auth.ts", name="auth.ts"))
        assert len(lexical) == 1
        assert (await lexical.search("auth"))[0][0] == "file:auth.ts"

        lexical.remove("file:auth.ts")
        lexical.remove("file:missing.ts")
        assert await lexical.search("auth") == []


class TestInMemoryEmbeddingStore:
    """Tests for the dict-backed embedding store."""

    @pytest.mark.asyncio
    async def test_get_set(self):
        store = InMemoryEmbeddingStore()
        assert await store.get("plan:0001") is None
        await store.set("plan:0001", [0.1, 0.2])
        assert await store.get("plan:0001") == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_find_similar_ordering(self):
        store = InMemoryEmbeddingStore()
        await store.set("same", [1.0, 0.0])
        await store.set("diag", [1.0, 1.0])
        await store.set("orth", [0.0, 1.0])
        await store.set("also-same", [2.0, 0.0])

        results = await store.find_similar([1.0, 0.0], limit=10)
        ids = [cid for cid, _ in results]

        # Ties broken by canonical id
        assert ids == ["also-same", "same", "diag", "orth"]
        assert results[0][1] == pytest.approx(1.0)
        assert results[2][1] == pytest.approx(0.7071, abs=1e-3)
        assert results[3][1] == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.asyncio
    async def test_find_similar_limit_and_empty(self):
        store = InMemoryEmbeddingStore()
        assert await store.find_similar([1.0, 0.0]) == []

        await store.set("a", [1.0, 0.0])
        await store.set("b", [0.0, 1.0])
        assert len(await store.find_similar([1.0, 0.0], limit=1)) == 1
        assert await store.find_similar([0.0, 0.0]) == []

    @pytest.mark.asyncio
    async def test_embed_requires_provider(self):
        with pytest.raises(RuntimeError):
            await InMemoryEmbeddingStore().embed("text")

    @pytest.mark.asyncio
    async def test_embed_with_provider(self):
        store = InMemoryEmbeddingStore(HashingEmbeddingProvider(dimensions=32))
        vector = await store.embed("search rework")
        assert len(vector) == 32
