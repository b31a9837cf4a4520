"""
Search Recipes

A recipe is a named, validated configuration of the three relevance
signals: how much each one weighs, how far the graph signal walks, and how
similar a semantic candidate must be to count.

Recipes are frozen pydantic models. Validation happens once at
construction; an invalid recipe can never reach a search call.

Built-in Catalog:
    EDGE_HYBRID_RRF  - Graph-first with semantic fallback (1-hop)
                       e.g. "what blocks agent 0042#003"
    NODE_HYBRID_RRF  - Semantic-first with graph support (1-hop)
                       e.g. "explain authentication in plan 42"
    BFS_EXPANSION    - Deep graph traversal (3-hop) for impact analysis
                       e.g. "trace dependencies of plan 0041"
    LEXICAL_FIRST    - Exact entity lookups by id or name
                       e.g. "plan 0042"
    SEMANTIC_FIRST   - Conceptual exploration via embeddings
                       e.g. "how does authentication work"
    HYBRID_BALANCED  - Balanced fusion for exploratory queries

Example:
    >>> recipe = SearchRecipe(
    ...     name="GRAPH_ONLY",
    ...     weights=RecipeWeights(graph=1.0),
    ...     graph_config=GraphConfig(max_depth=2, hop_decay=0.5),
    ... )
    >>> get_recipe("LEXICAL_FIRST").weights.lexical
    0.6
"""

from pydantic import BaseModel, ConfigDict, Field

MAX_GRAPH_DEPTH = 10


class RecipeWeights(BaseModel):
    """Per-signal weights. Each is >= 0; they need not sum to 1."""

    model_config = ConfigDict(frozen=True)

    lexical: float = Field(default=0.0, ge=0.0)
    semantic: float = Field(default=0.0, ge=0.0)
    graph: float = Field(default=0.0, ge=0.0)


class GraphConfig(BaseModel):
    """
    Graph signal bounds.

    Attributes:
        max_depth: Maximum hops walked from the seeds (1-10)
        hop_decay: Multiplier per extra hop; an entity d hops away
            contributes weight * hop_decay ** (d - 1)
    """

    model_config = ConfigDict(frozen=True)

    max_depth: int = Field(default=1, ge=1, le=MAX_GRAPH_DEPTH)
    hop_decay: float = Field(default=0.5, gt=0.0, le=1.0)


class SearchRecipe(BaseModel):
    """
    Named configuration for one fusion run.

    Attributes:
        name: Recipe name, attached to every result it produces
        description: Human-readable purpose
        weights: Signal weights
        graph_config: Graph bounds; without it the graph signal is skipped
        similarity_threshold: Minimum semantic similarity in [0, 1]
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    weights: RecipeWeights
    graph_config: GraphConfig | None = None
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


def _recipe(
    name: str,
    description: str,
    lexical: float,
    semantic: float,
    graph: float,
    max_depth: int,
    hop_decay: float,
    similarity_threshold: float | None = None,
) -> SearchRecipe:
    return SearchRecipe(
        name=name,
        description=description,
        weights=RecipeWeights(lexical=lexical, semantic=semantic, graph=graph),
        graph_config=GraphConfig(max_depth=max_depth, hop_decay=hop_decay),
        similarity_threshold=similarity_threshold,
    )


BUILT_IN_RECIPES: dict[str, SearchRecipe] = {
    r.name: r
    for r in (
        _recipe(
            "EDGE_HYBRID_RRF",
            "Graph-first with semantic fallback for relationship queries",
            0.2, 0.3, 0.5, max_depth=1, hop_decay=0.5,
        ),
        _recipe(
            "NODE_HYBRID_RRF",
            "Semantic-first with graph support for conceptual queries",
            0.2, 0.5, 0.3, max_depth=1, hop_decay=0.5, similarity_threshold=0.6,
        ),
        _recipe(
            "BFS_EXPANSION",
            "Deep multi-hop graph traversal for impact analysis",
            0.1, 0.2, 0.7, max_depth=3, hop_decay=0.5,
        ),
        _recipe(
            "LEXICAL_FIRST",
            "Exact entity lookups by ID or name",
            0.6, 0.2, 0.2, max_depth=1, hop_decay=0.5,
        ),
        _recipe(
            "SEMANTIC_FIRST",
            "Conceptual exploration via embeddings",
            0.2, 0.6, 0.2, max_depth=1, hop_decay=0.5, similarity_threshold=0.7,
        ),
        _recipe(
            "HYBRID_BALANCED",
            "Balanced fusion for exploratory queries",
            0.33, 0.34, 0.33, max_depth=2, hop_decay=0.6,
        ),
    )
}

DEFAULT_RECIPE_NAME = "HYBRID_BALANCED"


def get_recipe(name: str) -> SearchRecipe:
    """
    Look up a built-in recipe.

    Raises:
        KeyError: If no built-in recipe has that name
    """
    try:
        return BUILT_IN_RECIPES[name]
    except KeyError:
        raise KeyError(f"Unknown recipe: {name}") from None


def list_recipes() -> list[str]:
    """Names of all built-in recipes."""
    return list(BUILT_IN_RECIPES)
