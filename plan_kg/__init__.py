"""
plan-kg - Planning Artifact Graph with Hybrid Search

An embedded library that indexes planning artifacts (plans, agents,
features, files, tags, concepts) as a typed entity/relationship graph and
answers free-text queries by fusing lexical, semantic and graph-proximity
signals.

Example:
    >>> from plan_kg import PlanningGraph
    >>> async with PlanningGraph("./.plan-kg") as graph:
    ...     await graph.upsert_entity("plan", "plan:0042", "Search rework")
    ...     results = await graph.search("plan 0042")
    >>> results[0].recipe_name
    'LEXICAL_FIRST'

Main Classes:
    PlanningGraph: Primary entry point for all operations
    HybridRetriever: Signal fusion over any storage/index implementations
    SearchRecipe: Validated signal configuration
    KGConfig: Configuration management
    ConflictDetector: Coordination checks over a populated graph
"""

__version__ = "0.1.0"

# Public API - lazy imports to avoid loading optional dependencies
def __getattr__(name: str):
    """Lazy import public API components."""

    if name == "PlanningGraph":
        from plan_kg.api.planning_graph import PlanningGraph
        return PlanningGraph

    if name == "KGConfig":
        from plan_kg.config.settings import KGConfig
        return KGConfig

    # Convenience functions
    if name in ("search", "stats"):
        from plan_kg.api import convenience
        return getattr(convenience, name)

    # Retrieval
    if name in ("HybridRetriever", "SearchRecipe", "RecipeWeights", "GraphConfig", "get_recipe"):
        from plan_kg import retrieval
        return getattr(retrieval, name)

    # Analysis
    if name in ("ConflictDetector", "ConflictReport"):
        from plan_kg import analysis
        return getattr(analysis, name)

    # Types
    if name in ("Entity", "Relationship", "SearchResult", "GraphStats"):
        from plan_kg import types
        return getattr(types, name)

    raise AttributeError(f"module 'plan_kg' has no attribute {name!r}")


__all__ = [
    # Main classes
    "PlanningGraph",
    "KGConfig",

    # Convenience functions
    "search",
    "stats",

    # Retrieval
    "HybridRetriever",
    "SearchRecipe",
    "RecipeWeights",
    "GraphConfig",
    "get_recipe",

    # Analysis
    "ConflictDetector",
    "ConflictReport",

    # Types
    "Entity",
    "Relationship",
    "SearchResult",
    "GraphStats",

    # Version
    "__version__",
]
