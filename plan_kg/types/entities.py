"""
Entity Types

Entities represent planning artifacts indexed into the graph.

Storage Models:
    - Entity: Persisted entity with storage-assigned id and metadata
    - EntityType: Well-known entity classifications

Entity types are open-ended: any string is accepted by storage, the enum
only names the types the planning documents produce today.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class EntityType(str, Enum):
    """Well-known entity types."""

    PLAN = "plan"
    AGENT = "agent"
    FEATURE = "feature"
    FILE = "file"
    TAG = "tag"
    CONCEPT = "concept"


class Entity(BaseModel):
    """
    A persisted entity in the planning graph.

    Attributes:
        id: Storage-assigned internal id (not an identity for callers)
        type: Entity type (see EntityType for well-known values)
        canonical_id: Globally unique, stable identifier (e.g. "plan:0042")
        name: Human-readable name
        metadata: Opaque key-value bag
        source_path: Document the entity was indexed from
        content_hash: Hash of the source content at indexing time

    Two entities are equal when their canonical ids are equal.
    """

    id: int
    type: str
    canonical_id: str
    name: str
    metadata: dict[str, Any] = {}
    source_path: str | None = None
    content_hash: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    model_config = ConfigDict(use_enum_values=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self.canonical_id == other.canonical_id

    def __hash__(self) -> int:
        return hash(self.canonical_id)
