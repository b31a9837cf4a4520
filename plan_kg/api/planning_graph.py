"""
PlanningGraph - Primary Entry Point

The PlanningGraph class manages a graph directory and wires together the
storage, indexes and retriever named by the configuration.

A graph directory contains:
    - graph.duckdb: Entities, relationships, graph metadata, BM25 index
    - lancedb/: Entity vectors

Example:
    >>> async with PlanningGraph("./.plan-kg") as graph:
    ...     plan = await graph.upsert_entity("plan", "plan:0042", "Search rework")
    ...     agent = await graph.upsert_entity("agent", "agent:0042#001", "Indexer")
    ...     await graph.upsert_relationship(plan.id, agent.id, "CONTAINS")
    ...     results = await graph.search("plan 0042")

    # Or with sync API
    >>> with PlanningGraph("./.plan-kg") as graph:
    ...     results = graph.search_sync("what blocks agent 0042#001")
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plan_kg.analysis import ConflictReport
    from plan_kg.config.settings import KGConfig
    from plan_kg.resolution import ResolutionResult
    from plan_kg.retrieval import HybridRetriever, SearchRecipe
    from plan_kg.storage.base import EmbeddingStore, LexicalIndex
    from plan_kg.storage.duckdb import DuckDBGraphStorage
    from plan_kg.types import Direction, Entity, GraphStats, Relationship, SearchResult

logger = logging.getLogger(__name__)


class PlanningGraph:
    """
    A portable, embedded planning graph with hybrid search.

    Args:
        path: Directory for the graph, created if missing. None keeps
            everything in memory (embedding vectors included).
        config: Optional configuration. Uses defaults if not provided.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        config: "KGConfig | None" = None,
    ) -> None:
        self._path = Path(path).resolve() if path is not None else None

        if config is None:
            from plan_kg.config import KGConfig
            config = KGConfig()
        self._config = config

        # Lazy-initialized components
        self._storage: "DuckDBGraphStorage | None" = None
        self._lexical: "LexicalIndex | None" = None
        self._embeddings: "EmbeddingStore | None" = None
        self._retriever: "HybridRetriever | None" = None
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        """Open storage and build indexes on first use."""
        if self._initialized:
            return

        from plan_kg.retrieval import HybridRetriever
        from plan_kg.storage.duckdb import DuckDBGraphStorage
        from plan_kg.storage.memory import InMemoryLexicalIndex

        db_path = None
        if self._path is not None:
            self._path.mkdir(parents=True, exist_ok=True)
            db_path = self._path / self._config.database_filename

        lexical_backend = self._config.lexical_backend.lower()
        if lexical_backend not in ("duckdb", "memory"):
            raise ValueError(f"Unknown lexical backend: {lexical_backend}")

        storage = DuckDBGraphStorage(db_path, lock_timeout=self._config.lock_timeout)
        embeddings = self._create_embedding_store()
        lexical = self._create_lexical_index(storage, lexical_backend)
        retriever = HybridRetriever(
            storage,
            embeddings,
            lexical,
            self._config.default_recipe,
            over_retrieve_factor=self._config.over_retrieve_factor,
        )

        await storage.initialize()
        if isinstance(lexical, InMemoryLexicalIndex):
            # The in-memory index does not persist; rebuild it from stored entities
            for entity in await storage.get_all_entities():
                lexical.add_entity(entity)
        self._storage = storage
        self._embeddings = embeddings
        self._lexical = lexical
        self._retriever = retriever
        self._initialized = True
        logger.info(
            f"Planning graph ready at {self._path or ':memory:'} "
            f"(lexical={lexical_backend}, embeddings={type(embeddings).__name__})"
        )

    def _create_embedding_store(self) -> "EmbeddingStore":
        """Create the embedding store based on config."""
        from plan_kg.providers import embedding_provider_from_config
        from plan_kg.storage.memory import InMemoryEmbeddingStore

        provider = embedding_provider_from_config(self._config)
        backend = self._config.embedding_backend.lower()

        if backend == "lancedb":
            if self._path is None:
                return InMemoryEmbeddingStore(provider)
            from plan_kg.storage.lancedb import LanceDBEmbeddingStore
            return LanceDBEmbeddingStore(
                self._path / "lancedb", provider, table_name=self._config.lancedb_table
            )
        elif backend == "memory":
            if self._path is not None:
                raise ValueError(
                    "embedding_backend 'memory' does not persist vectors; "
                    "use 'lancedb' for a graph stored in a directory"
                )
            return InMemoryEmbeddingStore(provider)
        else:
            raise ValueError(f"Unknown embedding backend: {backend}")

    @staticmethod
    def _create_lexical_index(storage: "DuckDBGraphStorage", backend: str) -> "LexicalIndex":
        """Create the lexical index based on config."""
        if backend == "duckdb":
            from plan_kg.storage.duckdb import DuckDBLexicalIndex
            return DuckDBLexicalIndex(storage)

        from plan_kg.storage.memory import InMemoryLexicalIndex
        return InMemoryLexicalIndex()

    def _require(self) -> tuple["DuckDBGraphStorage", "EmbeddingStore", "HybridRetriever"]:
        if self._storage is None or self._embeddings is None or self._retriever is None:
            raise RuntimeError("PlanningGraph not initialized. Use 'async with' or call a method first.")
        return self._storage, self._embeddings, self._retriever

    # === Lifecycle ===

    def __enter__(self) -> "PlanningGraph":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close_sync()

    async def __aenter__(self) -> "PlanningGraph":
        await self._ensure_initialized()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Release all resources (async)."""
        if self._storage is not None:
            await self._storage.close()
            self._storage = None
        if self._embeddings is not None:
            await self._embeddings.close()
            self._embeddings = None
        self._lexical = None
        self._retriever = None
        self._initialized = False

    def close_sync(self) -> None:
        """Release all resources (sync)."""
        if self._initialized:
            asyncio.run(self.close())

    # === Properties ===

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def config(self) -> "KGConfig":
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def storage(self) -> "DuckDBGraphStorage":
        if self._storage is None:
            raise RuntimeError("PlanningGraph not initialized. Use 'async with' or call a method first.")
        return self._storage

    @property
    def retriever(self) -> "HybridRetriever":
        if self._retriever is None:
            raise RuntimeError("PlanningGraph not initialized. Use 'async with' or call a method first.")
        return self._retriever

    # === Writes ===

    async def upsert_entity(
        self,
        type: str,
        canonical_id: str,
        name: str,
        metadata: dict[str, Any] | None = None,
        *,
        source_path: str | None = None,
        content_hash: str | None = None,
        text: str | None = None,
        embed: bool = True,
    ) -> "Entity":
        """
        Insert or update an entity and keep the search indexes current.

        Args:
            type: Entity type (e.g. "plan", "agent", "feature")
            canonical_id: Stable identifier (e.g. "plan:0042")
            name: Human-readable name
            metadata: JSON-serialisable metadata
            source_path: Document the entity came from
            content_hash: Hash of that document's content
            text: Text to embed (defaults to the name)
            embed: Store an embedding vector for the entity
        """
        await self._ensure_initialized()
        storage, embeddings, _ = self._require()

        entity = await storage.upsert_entity(
            type,
            canonical_id,
            name,
            metadata,
            source_path=source_path,
            content_hash=content_hash,
        )

        from plan_kg.storage.memory import InMemoryLexicalIndex
        if isinstance(self._lexical, InMemoryLexicalIndex):
            self._lexical.add_entity(entity)

        if embed:
            vector = await embeddings.embed(text if text is not None else name)
            await embeddings.set(canonical_id, vector)
        return entity

    async def upsert_relationship(
        self,
        source_id: int,
        target_id: int,
        relation_type: str,
        confidence: float = 1.0,
        metadata: dict[str, Any] | None = None,
    ) -> "Relationship":
        """Insert or update an edge (both endpoints must exist)."""
        await self._ensure_initialized()
        storage, _, _ = self._require()
        return await storage.upsert_relationship(
            source_id, target_id, relation_type, confidence, metadata
        )

    async def delete_entity(self, canonical_id: str) -> bool:
        """Delete an entity, its relationships and its lexical entry."""
        await self._ensure_initialized()
        storage, _, _ = self._require()

        from plan_kg.storage.memory import InMemoryLexicalIndex
        if isinstance(self._lexical, InMemoryLexicalIndex):
            self._lexical.remove(canonical_id)
        return await storage.delete_entity(canonical_id)

    async def mark_indexed(self) -> None:
        await self._ensure_initialized()
        await self.storage.mark_indexed()

    # === Reads ===

    async def get_entity(self, canonical_id: str) -> "Entity | None":
        await self._ensure_initialized()
        return await self.storage.get_entity(canonical_id)

    async def get_neighbors(
        self,
        canonical_id: str,
        direction: "Direction" = "outgoing",
        relation_type: str | None = None,
    ) -> list[tuple["Relationship", "Entity"]]:
        """Neighbors of an entity by canonical id ([] if it does not exist)."""
        await self._ensure_initialized()
        entity = await self.storage.get_entity(canonical_id)
        if entity is None:
            return []
        return await self.storage.get_neighbors(entity.id, direction, relation_type)

    async def stats(self) -> "GraphStats":
        await self._ensure_initialized()
        return await self.storage.get_stats()

    def stats_sync(self) -> "GraphStats":
        return asyncio.run(self.stats())

    # === Search ===

    async def search(
        self,
        query: str,
        limit: int | None = None,
        recipe: "SearchRecipe | str | None" = None,
    ) -> list["SearchResult"]:
        """
        Hybrid search.

        Args:
            query: Free-text query
            limit: Maximum results (default: config.search_limit)
            recipe: Per-call recipe or built-in recipe name
        """
        await self._ensure_initialized()
        return await self.retriever.search(
            query, self._config.search_limit if limit is None else limit, recipe
        )

    def search_sync(
        self,
        query: str,
        limit: int | None = None,
        recipe: "SearchRecipe | str | None" = None,
    ) -> list["SearchResult"]:
        return asyncio.run(self.search(query, limit, recipe))

    async def resolve_duplicates(self, entity_type: str = "feature") -> "ResolutionResult":
        """Detect duplicate/similar entities of a type and link them with SIMILAR_TO."""
        await self._ensure_initialized()
        storage, embeddings, _ = self._require()

        from plan_kg.resolution import EntityResolver
        return await EntityResolver(storage, embeddings).resolve_all(entity_type)

    async def detect_conflicts(self, **options: Any) -> list["ConflictReport"]:
        """
        Run every conflict check (file contention, feature overlap,
        circular dependencies, stale WIP).

        Args:
            **options: ConflictDetector thresholds (stale_warning_days,
                stale_error_days, overlap_threshold)
        """
        await self._ensure_initialized()
        storage, _, _ = self._require()

        from plan_kg.analysis import ConflictDetector
        return await ConflictDetector(storage, **options).detect_all()
