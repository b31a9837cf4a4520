"""
Query Router

Picks a built-in recipe from the intent of a query when the caller and the
retriever configuration name none. Intent is detected with ordered,
case-insensitive regex rules; the first match wins, so specific question
forms are checked before bare entity references.

Routing Table:
    trace / impact analysis          -> BFS_EXPANSION
    question about a relation        -> EDGE_HYBRID_RRF
    question about status            -> HYBRID_BALANCED
    conceptual question on an entity -> NODE_HYBRID_RRF
    entity reference ("plan 0042")   -> LEXICAL_FIRST
    relation keywords                -> EDGE_HYBRID_RRF
    conceptual keywords              -> SEMANTIC_FIRST
    status keywords                  -> HYBRID_BALANCED
    file keywords                    -> LEXICAL_FIRST
    anything else                    -> HYBRID_BALANCED
"""

import logging
import re
from collections.abc import Mapping

from plan_kg.retrieval.recipes import BUILT_IN_RECIPES, DEFAULT_RECIPE_NAME, SearchRecipe

logger = logging.getLogger(__name__)

TRACE_QUERY = re.compile(r"\b(trace|tracing|impact|transitive|downstream|upstream)\b", re.I)
ENTITY_QUERY = re.compile(r"plan\s*\d+|agent\s*#?\d+|\d{4}[-#]\d{3}", re.I)
RELATION_QUERY = re.compile(
    r"depends|blocks|modifies|what.*blocking|related|overlap|contention|trace", re.I
)
QUESTION_RELATION = re.compile(
    r"(what|which|show|find|check).*\b(depends|blocks|modifies|blocking|related|overlap|contention)",
    re.I,
)
CONCEPT_QUERY = re.compile(r"\b(how|why|explain|describe|similar|like)\b|what is|tell me about", re.I)
CONCEPT_WITH_ENTITY = re.compile(
    r"\b(similar|like|explain|describe|how|why).*\b(plan|agent|to\s+\d)", re.I
)
STATUS_QUERY = re.compile(r"status|progress|completion|blocked|wip|gap|pass|done|remaining", re.I)
QUESTION_STATUS = re.compile(
    r"(what|which|show|status).*\b(of|for|on|is).*\b"
    r"(plan|agent|blocked|wip|gap|pass|progress|completion)",
    re.I,
)
FILE_QUERY = re.compile(r"file|\.ts|\.js|\.md|modif|touch|change", re.I)

ROUTING_RULES: list[tuple[re.Pattern[str], str]] = [
    (TRACE_QUERY, "BFS_EXPANSION"),
    (QUESTION_RELATION, "EDGE_HYBRID_RRF"),
    (QUESTION_STATUS, "HYBRID_BALANCED"),
    (CONCEPT_WITH_ENTITY, "NODE_HYBRID_RRF"),
    (ENTITY_QUERY, "LEXICAL_FIRST"),
    (RELATION_QUERY, "EDGE_HYBRID_RRF"),
    (CONCEPT_QUERY, "SEMANTIC_FIRST"),
    (STATUS_QUERY, "HYBRID_BALANCED"),
    (FILE_QUERY, "LEXICAL_FIRST"),
]


class QueryRouter:
    """
    Deterministic query-intent router.

    Args:
        recipes: Catalog the routed names are looked up in (defaults to the
            built-in recipes). Every routed name must be present.

    Example:
        >>> QueryRouter().route("what blocks agent 0042#001").name
        'EDGE_HYBRID_RRF'
    """

    def __init__(self, recipes: Mapping[str, SearchRecipe] | None = None):
        self.recipes = dict(recipes if recipes is not None else BUILT_IN_RECIPES)
        needed = {name for _, name in ROUTING_RULES} | {DEFAULT_RECIPE_NAME}
        missing = sorted(needed - self.recipes.keys())
        if missing:
            raise ValueError(f"Router catalog is missing recipes: {', '.join(missing)}")

    @staticmethod
    def classify(query: str) -> str:
        """Name of the recipe a query routes to."""
        for pattern, name in ROUTING_RULES:
            if pattern.search(query):
                return name
        return DEFAULT_RECIPE_NAME

    def route(self, query: str) -> SearchRecipe:
        name = self.classify(query)
        logger.debug(f"Routed query to {name}: {query!r}")
        return self.recipes[name]
