"""
Result Types

API Result Models:
    - SearchResult: One ranked entity from hybrid search
    - GraphStats: Entity/relationship counts for health reporting
"""

from typing import Any

from pydantic import BaseModel

from plan_kg.types.entities import Entity


class SearchResult(BaseModel):
    """
    Result from a hybrid search.

    Attributes:
        entity: The matched entity
        score: Fused score (sum of weighted signal contributions)
        recipe_name: Name of the recipe that produced the ranking
        signals: Weighted contribution of each signal ("lexical", "semantic", "graph")
    """

    entity: Entity
    score: float
    recipe_name: str
    signals: dict[str, float] = {}


class GraphStats(BaseModel):
    """
    Graph size summary.

    Attributes:
        entity_counts: Number of entities per type
        relation_counts: Number of relationships per relation type
        total_entities: Total number of entities
        total_relations: Total number of relationships
        last_indexed: Timestamp recorded by the last indexing run ("" if never)
    """

    entity_counts: dict[str, int] = {}
    relation_counts: dict[str, int] = {}
    total_entities: int = 0
    total_relations: int = 0
    last_indexed: str = ""

    def as_dict(self) -> dict[str, Any]:
        """Return a plain dict (for JSON output)."""
        return self.model_dump()
