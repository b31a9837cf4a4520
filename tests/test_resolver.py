"""Tests for duplicate and similarity detection."""

import pytest

from plan_kg.providers.embedding.hashing import HashingEmbeddingProvider
from plan_kg.resolution import EntityResolver, compute_similarity
from plan_kg.storage.memory import InMemoryEmbeddingStore
from plan_kg.types import Entity
from plan_kg.utils.similarity import cosine_similarity, jaccard_similarity, tokenize


def _entity(canonical_id, name, id=1):
    return Entity(id=id, type="feature", canonical_id=canonical_id, name=name)


class TestSimilarityUtils:
    """Tests for token and vector similarity helpers."""

    def test_tokenize(self):
        assert tokenize("Add OAuth login-flow to UI") == {"add", "oauth", "login", "flow"}

    def test_jaccard(self):
        assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
        assert jaccard_similarity(set(), set()) == 0.0

    def test_cosine(self):
        assert cosine_similarity([1.0, 0.0], [2.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 1.0, 5.0], [1.0, 1.0]) == pytest.approx(1.0)
        assert cosine_similarity(None, [1.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


class TestComputeSimilarity:
    """Tests for the combined entity score."""

    def test_same_canonical_id(self):
        a = _entity("feature:auth", "OAuth login flow")
        score = compute_similarity(a, a, [1.0, 0.0], [1.0, 0.0], 1.0)
        assert score.exact == 1.0
        assert score.combined == pytest.approx(1.0)
        assert score.is_duplicate

    def test_all_signals_agree(self):
        a = _entity("feature:auth", "OAuth login flow", id=1)
        b = _entity("feature:login", "OAuth login flow", id=2)
        score = compute_similarity(a, b, [1.0, 0.0], [1.0, 0.0], 1.0)
        assert score.exact == 0.0
        assert score.combined == pytest.approx(1.0)
        assert score.is_duplicate

    def test_name_only(self):
        a = _entity("feature:auth", "OAuth login flow", id=1)
        b = _entity("feature:login", "OAuth login flow", id=2)
        score = compute_similarity(a, b, None, None)
        assert score.lexical == 1.0
        assert score.semantic == 0.0
        assert score.combined == pytest.approx(0.2 / 0.6)
        assert not score.is_duplicate

    def test_combined_is_clamped(self):
        a = _entity("feature:a", "alpha", id=1)
        b = _entity("feature:b", "beta", id=2)
        score = compute_similarity(a, b, [1.0, 0.0], [-1.0, 0.0])
        assert score.combined == 0.0


class TestEntityResolver:
    """Tests for EntityResolver over stored entities."""

    async def _features(self, storage, embeddings, specs):
        plan = await storage.upsert_entity("plan", "plan:0001", "Auth")
        created = {}
        for cid, name, vector, linked in specs:
            entity = await storage.upsert_entity("feature", cid, name)
            await embeddings.set(cid, vector)
            if linked:
                await storage.upsert_relationship(plan.id, entity.id, "CONTAINS")
            created[cid] = entity
        return created

    @pytest.mark.asyncio
    async def test_duplicates_are_linked(self, storage):
        embeddings = InMemoryEmbeddingStore()
        await self._features(
            storage,
            embeddings,
            [
                ("feature:auth", "OAuth login flow", [1.0, 0.0], True),
                ("feature:login", "OAuth login flow", [1.0, 0.0], True),
                ("feature:invoice", "Invoice export", [0.0, 1.0], False),
            ],
        )
        resolver = EntityResolver(storage, embeddings)

        result = await resolver.resolve_all()

        assert len(result.duplicates) == 1
        assert result.similar == []
        pair = {result.duplicates[0].a.canonical_id, result.duplicates[0].b.canonical_id}
        assert pair == {"feature:auth", "feature:login"}
        assert result.suggestions[0].startswith("DUPLICATE:")

        links = await storage.get_relationships_by_type("SIMILAR_TO")
        assert len(links) == 1
        assert links[0].confidence == pytest.approx(1.0)
        assert set(links[0].metadata) == {"lexical", "semantic", "structural", "detected_at"}

        # Re-running finds the same pair and does not add a second edge
        again = await resolver.resolve_all()
        assert len(again.duplicates) == 1
        assert len(await storage.get_relationships_by_type("SIMILAR_TO")) == 1

    @pytest.mark.asyncio
    async def test_similar_features(self, storage):
        embeddings = InMemoryEmbeddingStore()
        await self._features(
            storage,
            embeddings,
            [
                ("feature:auth", "OAuth login flow", [1.0, 0.0], True),
                ("feature:login", "OAuth login page", [1.0, 0.0], True),
            ],
        )

        result = await EntityResolver(storage, embeddings).resolve_all()

        assert result.duplicates == []
        assert len(result.similar) == 1
        assert result.similar[0].score.combined == pytest.approx(0.5 / 0.6)
        assert result.suggestions[0].startswith("SIMILAR:")

    @pytest.mark.asyncio
    async def test_fewer_than_two_entities(self, storage):
        embeddings = InMemoryEmbeddingStore()
        await self._features(storage, embeddings, [("feature:auth", "OAuth", [1.0], False)])
        result = await EntityResolver(storage, embeddings).resolve_all()
        assert result.duplicates == [] and result.similar == [] and result.suggestions == []

    @pytest.mark.asyncio
    async def test_check_new_feature_with_embeddings(self, storage):
        embeddings = InMemoryEmbeddingStore(HashingEmbeddingProvider(dimensions=64))
        await storage.upsert_entity("feature", "feature:auth", "OAuth login flow")
        await embeddings.set("feature:auth", await embeddings.embed("OAuth login flow"))
        # Same text but not a feature
        await storage.upsert_entity("plan", "plan:0001", "OAuth login flow")
        await embeddings.set("plan:0001", await embeddings.embed("OAuth login flow"))

        matches = await EntityResolver(storage, embeddings).check_new_feature("OAuth login flow")

        assert [e.canonical_id for e in matches] == ["feature:auth"]

    @pytest.mark.asyncio
    async def test_check_new_feature_not_crowded_out_by_other_types(self, storage):
        embeddings = InMemoryEmbeddingStore(HashingEmbeddingProvider(dimensions=64))
        vector = await embeddings.embed("OAuth login flow")
        for i in range(20):
            await storage.upsert_entity("concept", f"concept:auth{i:02d}", "OAuth login flow")
            await embeddings.set(f"concept:auth{i:02d}", vector)
        await storage.upsert_entity("feature", "feature:auth", "OAuth login flow")
        await embeddings.set("feature:auth", vector)

        matches = await EntityResolver(storage, embeddings).check_new_feature("OAuth login flow")

        assert [e.canonical_id for e in matches] == ["feature:auth"]

    @pytest.mark.asyncio
    async def test_check_new_feature_returns_at_most_ten(self, storage):
        embeddings = InMemoryEmbeddingStore(HashingEmbeddingProvider(dimensions=64))
        vector = await embeddings.embed("OAuth login flow")
        for i in range(12):
            await storage.upsert_entity("feature", f"feature:auth{i:02d}", "OAuth login flow")
            await embeddings.set(f"feature:auth{i:02d}", vector)

        matches = await EntityResolver(storage, embeddings).check_new_feature("OAuth login flow")

        assert [e.canonical_id for e in matches] == [f"feature:auth{i:02d}" for i in range(10)]

    @pytest.mark.asyncio
    async def test_check_new_feature_by_name(self, storage):
        embeddings = InMemoryEmbeddingStore()
        await storage.upsert_entity("feature", "feature:auth", "OAuth login flow")
        await storage.upsert_entity("feature", "feature:invoice", "Invoice export")

        resolver = EntityResolver(storage, embeddings)

        assert [e.canonical_id for e in await resolver.check_new_feature("oauth login flow")] == [
            "feature:auth"
        ]
        assert await resolver.check_new_feature("Billing dashboard") == []
