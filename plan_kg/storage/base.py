"""
Abstract Storage Interfaces

Defines the contracts the hybrid retriever depends on:
    - GraphStorage: entity/relationship persistence and traversal
    - LexicalIndex: ranked full-text candidates
    - EmbeddingStore: vectors per canonical id and nearest-neighbor search

The retriever only ever talks to these interfaces, so any backend (DuckDB,
LanceDB, in-memory test doubles) can be swapped in.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plan_kg.types import Direction, Entity, GraphStats, Relationship


class ReferentialIntegrityError(ValueError):
    """A relationship references an entity that does not exist."""


class GraphStorage(ABC):
    """
    Abstract interface for graph storage backends.

    Lifecycle:
        storage = DuckDBGraphStorage(path)
        await storage.initialize()
        # ... operations ...
        await storage.close()

    Or using context manager:
        async with DuckDBGraphStorage(path) as storage:
            await storage.upsert_entity("plan", "plan:0042", "Search rework")
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Open the store and create the schema if needed."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the store and release resources."""
        ...

    async def __aenter__(self) -> "GraphStorage":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    @abstractmethod
    def revision(self) -> int:
        """Counter incremented by every write (used to refresh derived indexes)."""
        ...

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert_entity(
        self,
        type: str,
        canonical_id: str,
        name: str,
        metadata: dict[str, Any] | None = None,
        *,
        source_path: str | None = None,
        content_hash: str | None = None,
    ) -> "Entity":
        """
        Insert an entity or update the one with the same canonical id.

        The internal id of an existing entity never changes.
        """
        ...

    @abstractmethod
    async def upsert_relationship(
        self,
        source_id: int,
        target_id: int,
        relation_type: str,
        confidence: float = 1.0,
        metadata: dict[str, Any] | None = None,
    ) -> "Relationship":
        """
        Insert or update the edge keyed by (source_id, target_id, relation_type).

        Raises:
            ReferentialIntegrityError: If either endpoint does not exist
            ValueError: If confidence is outside [0, 1]
        """
        ...

    @abstractmethod
    async def bulk_upsert_entities(self, entities: list[dict[str, Any]]) -> int:
        """Upsert entity dicts (keys as upsert_entity); returns rows changed."""
        ...

    @abstractmethod
    async def bulk_upsert_relationships(self, relationships: list[dict[str, Any]]) -> int:
        """Upsert relationship dicts (keys as upsert_relationship); returns rows changed."""
        ...

    @abstractmethod
    async def delete_entity(self, canonical_id: str) -> bool:
        """Delete an entity and every relationship touching it."""
        ...

    @abstractmethod
    async def delete_entities_by_source(self, source_path: str) -> int:
        """Delete all entities indexed from a document; returns count deleted."""
        ...

    @abstractmethod
    async def delete_relationship(
        self, source_id: int, target_id: int, relation_type: str
    ) -> bool:
        """Delete a single edge."""
        ...

    @abstractmethod
    async def set_meta(self, key: str, value: str) -> None:
        """Store a graph metadata value."""
        ...

    async def mark_indexed(self) -> None:
        """Record the current time as the last indexing run."""
        from datetime import datetime, timezone

        await self.set_meta("last_indexed", datetime.now(timezone.utc).isoformat())

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_entity(self, canonical_id: str) -> "Entity | None":
        """Get entity by canonical id."""
        ...

    @abstractmethod
    async def get_entity_by_id(self, entity_id: int) -> "Entity | None":
        """Get entity by internal id."""
        ...

    @abstractmethod
    async def get_entities(self, canonical_ids: list[str]) -> list["Entity"]:
        """Get multiple entities by canonical id (missing ids are skipped)."""
        ...

    @abstractmethod
    async def get_entities_by_type(self, type: str) -> list["Entity"]:
        """Get all entities of a type, ordered by canonical id."""
        ...

    @abstractmethod
    async def get_all_entities(self) -> list["Entity"]:
        """Get every stored entity, ordered by canonical id."""
        ...

    @abstractmethod
    async def get_entities_by_source(self, source_path: str) -> list["Entity"]:
        """Get all entities indexed from a document."""
        ...

    @abstractmethod
    async def get_relationships(
        self, entity_id: int, direction: "Direction" = "both"
    ) -> list["Relationship"]:
        """Get edges touching an entity."""
        ...

    @abstractmethod
    async def get_relationships_by_type(self, relation_type: str) -> list["Relationship"]:
        """Get all edges of a relation type."""
        ...

    @abstractmethod
    async def get_meta(self, key: str) -> str | None:
        """Read a graph metadata value."""
        ...

    @abstractmethod
    async def get_stats(self) -> "GraphStats":
        """Entity and relationship counts."""
        ...

    # -------------------------------------------------------------------------
    # Graph Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_neighbors(
        self,
        entity_id: int,
        direction: "Direction" = "outgoing",
        relation_type: str | None = None,
    ) -> list[tuple["Relationship", "Entity"]]:
        """
        Get adjacent entities with the connecting edge.

        Args:
            entity_id: Internal id of the entity
            direction: "outgoing" (entity is source), "incoming" (entity is
                target) or "both"
            relation_type: Only follow edges of this type

        Returns:
            (relationship, neighbor) pairs ordered by relationship id
        """
        ...

    @abstractmethod
    async def traverse(
        self,
        seed_ids: list[int],
        max_depth: int,
        *,
        direction: "Direction" = "outgoing",
        include_seeds: bool = False,
    ) -> dict[str, int]:
        """
        Breadth-first walk from the seeds.

        Returns:
            Mapping of canonical id to hop distance (shortest, >= 1).
            Seeds appear with distance 0 only when include_seeds is set.
        """
        ...

    @abstractmethod
    async def get_paths(
        self,
        from_id: int,
        to_id: int,
        max_depth: int = 5,
        max_paths: int = 25,
    ) -> list[list["Entity"]]:
        """Simple outgoing paths between two entities."""
        ...


class LexicalIndex(ABC):
    """Full-text candidate source."""

    @abstractmethod
    async def search(self, query_text: str, limit: int = 50) -> list[tuple[str, float]]:
        """
        Rank canonical ids by textual match.

        Returns:
            (canonical_id, score) pairs, score >= 0, higher is better
        """
        ...


class EmbeddingStore(ABC):
    """Vector storage keyed by canonical id."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed free text into the store's vector space."""
        ...

    @abstractmethod
    async def get(self, canonical_id: str) -> list[float] | None:
        """Stored vector for a canonical id, or None."""
        ...

    @abstractmethod
    async def set(self, canonical_id: str, vector: list[float]) -> None:
        """Store (or replace) the vector for a canonical id."""
        ...

    @abstractmethod
    async def find_similar(
        self, vector: list[float], limit: int = 50
    ) -> list[tuple[str, float]]:
        """
        Nearest stored vectors.

        Returns:
            (canonical_id, similarity) pairs sorted by similarity descending,
            ties broken by canonical id
        """
        ...

    async def close(self) -> None:
        """Release resources (no-op by default)."""
        return None
