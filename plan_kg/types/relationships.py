"""
Relationship Types

Relationships are directed, typed edges between two stored entities.
Multiple relation types between the same pair are distinct edges.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Direction = Literal["outgoing", "incoming", "both"]


class RelationType(str, Enum):
    """Well-known relation types."""

    CONTAINS = "CONTAINS"
    DEPENDS_ON = "DEPENDS_ON"
    MODIFIES = "MODIFIES"
    IMPLEMENTS = "IMPLEMENTS"
    SIMILAR_TO = "SIMILAR_TO"
    BLOCKS = "BLOCKS"
    TAGGED_WITH = "TAGGED_WITH"


class Relationship(BaseModel):
    """
    A persisted edge in the planning graph.

    Attributes:
        id: Storage-assigned internal id
        source_id: Internal id of the source entity
        target_id: Internal id of the target entity
        relation_type: Edge type (see RelationType for well-known values)
        confidence: Confidence in [0, 1]
        metadata: Opaque key-value bag
    """

    id: int
    source_id: int
    target_id: int
    relation_type: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    metadata: dict[str, Any] = {}
    created_at: str | None = None

    model_config = ConfigDict(use_enum_values=True)
