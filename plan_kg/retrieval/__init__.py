"""
Retrieval

Hybrid search over the planning graph.

Modules:
    recipes: SearchRecipe model and the built-in catalog
    router: QueryRouter (recipe choice from query intent)
    seeds: SeedExtractor policies
    hybrid: HybridRetriever (signal fusion)

Signal Flow:
    query ─┬─> LexicalIndex.search ───────────────> lexical * score
           ├─> SeedExtractor -> GraphStorage.traverse > graph * decay^(d-1)
           └─> EmbeddingStore.embed/find_similar ──> semantic * similarity
                                  │
                                  v
                 sum per canonical id -> rank -> truncate
"""

from plan_kg.retrieval.hybrid import HybridRetriever
from plan_kg.retrieval.recipes import (
    BUILT_IN_RECIPES,
    GraphConfig,
    RecipeWeights,
    SearchRecipe,
    get_recipe,
    list_recipes,
)
from plan_kg.retrieval.router import QueryRouter
from plan_kg.retrieval.seeds import (
    CanonicalIdSeedExtractor,
    SeedExtractor,
    StaticSeedExtractor,
)

__all__ = [
    # Retriever
    "HybridRetriever",
    # Recipes
    "SearchRecipe",
    "RecipeWeights",
    "GraphConfig",
    "BUILT_IN_RECIPES",
    "get_recipe",
    "list_recipes",
    # Routing & seeds
    "QueryRouter",
    "SeedExtractor",
    "CanonicalIdSeedExtractor",
    "StaticSeedExtractor",
]
