"""
Type Definitions

Pydantic models for all data structures.

Storage Models (persisted to DuckDB):
    - Entity, EntityType - Planning artifacts (plans, agents, files, ...)
    - Relationship, RelationType, Direction - Directed typed edges

Result Models:
    - SearchResult - Ranked hybrid search result
    - GraphStats - Graph health counts

All types are:
    - Pydantic BaseModel subclasses
    - Serializable to/from JSON
"""

from plan_kg.types.entities import Entity, EntityType
from plan_kg.types.relationships import Direction, Relationship, RelationType
from plan_kg.types.results import GraphStats, SearchResult

__all__ = [
    # Storage Models
    "Entity",
    "EntityType",
    "Relationship",
    "RelationType",
    "Direction",
    # Result Models
    "SearchResult",
    "GraphStats",
]
