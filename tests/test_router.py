"""Tests for query-intent routing."""

import pytest

from plan_kg.retrieval import BUILT_IN_RECIPES, QueryRouter


class TestQueryRouter:
    """Tests for QueryRouter."""

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("plan 0042", "LEXICAL_FIRST"),
            ("what blocks agent 0042#001", "EDGE_HYBRID_RRF"),
            ("trace dependencies of plan 0041", "BFS_EXPANSION"),
            ("impact of removing the indexer", "BFS_EXPANSION"),
            ("how does authentication work", "SEMANTIC_FIRST"),
            ("explain the caching approach in plan 0042", "NODE_HYBRID_RRF"),
            ("status of plan 0042", "HYBRID_BALANCED"),
            ("which files are modified", "LEXICAL_FIRST"),
            ("overlap between auth features", "EDGE_HYBRID_RRF"),
            ("remaining work", "HYBRID_BALANCED"),
            ("random words", "HYBRID_BALANCED"),
            ("", "HYBRID_BALANCED"),
        ],
    )
    def test_classify(self, query, expected):
        assert QueryRouter.classify(query) == expected

    def test_case_insensitive(self):
        assert QueryRouter.classify("PLAN 0042") == "LEXICAL_FIRST"
        assert QueryRouter.classify("How Does Caching Work") == "SEMANTIC_FIRST"

    def test_route_returns_catalog_recipe(self):
        recipe = QueryRouter().route("what blocks agent 0042#001")
        assert recipe is BUILT_IN_RECIPES["EDGE_HYBRID_RRF"]

    def test_deterministic(self):
        router = QueryRouter()
        names = {router.route("explain the caching approach in plan 0042").name for _ in range(5)}
        assert names == {"NODE_HYBRID_RRF"}

    def test_custom_catalog_is_used(self):
        catalog = dict(BUILT_IN_RECIPES)
        custom = BUILT_IN_RECIPES["LEXICAL_FIRST"].model_copy(update={"description": "custom"})
        catalog["LEXICAL_FIRST"] = custom
        assert QueryRouter(catalog).route("plan 0042").description == "custom"

    def test_missing_catalog_entry(self):
        catalog = {k: v for k, v in BUILT_IN_RECIPES.items() if k != "BFS_EXPANSION"}
        with pytest.raises(ValueError, match="BFS_EXPANSION"):
            QueryRouter(catalog)
