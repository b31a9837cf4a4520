"""
DuckDB Graph Storage

Entities, relationships and graph metadata in a single DuckDB database.

Schema:
    entities        (id, type, canonical_id UNIQUE, name, source_path,
                     content_hash, metadata JSON, created_at, updated_at)
    relationships   (id, source_id, target_id, relation_type, confidence,
                     metadata JSON, created_at,
                     UNIQUE(source_id, target_id, relation_type))
    graph_meta      (key, value, updated_at)

Thread safety:
    One database connection per store; every worker thread gets its own
    cursor (DuckDB cursors are not shareable across threads). Writes are
    serialised by a process-local lock and, for on-disk databases, by a
    FileLock next to the database file.
"""

import asyncio
import hashlib
import json
import logging
import threading
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb
from filelock import FileLock

from plan_kg.storage.base import GraphStorage, ReferentialIntegrityError
from plan_kg.types import Direction, Entity, GraphStats, Relationship

logger = logging.getLogger(__name__)

MAX_TRAVERSAL_DEPTH = 10
MAX_PATHS = 1000

_ENTITY_COLUMNS = (
    "id, type, canonical_id, name, source_path, content_hash, metadata, created_at, updated_at"
)
_RELATIONSHIP_COLUMNS = (
    "id, source_id, target_id, relation_type, confidence, metadata, created_at"
)

_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS entities_id_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS relationships_id_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS entities (
        id BIGINT PRIMARY KEY DEFAULT nextval('entities_id_seq'),
        type VARCHAR NOT NULL,
        canonical_id VARCHAR NOT NULL UNIQUE,
        name VARCHAR NOT NULL,
        source_path VARCHAR,
        content_hash VARCHAR,
        metadata VARCHAR NOT NULL DEFAULT '{}',
        created_at VARCHAR,
        updated_at VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS relationships (
        id BIGINT PRIMARY KEY DEFAULT nextval('relationships_id_seq'),
        source_id BIGINT NOT NULL,
        target_id BIGINT NOT NULL,
        relation_type VARCHAR NOT NULL,
        confidence DOUBLE NOT NULL DEFAULT 1.0,
        metadata VARCHAR NOT NULL DEFAULT '{}',
        created_at VARCHAR,
        UNIQUE (source_id, target_id, relation_type)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS graph_meta (
        key VARCHAR PRIMARY KEY,
        value VARCHAR,
        updated_at VARCHAR
    )
    """,
]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _dump_metadata(metadata: dict[str, Any] | None) -> str:
    try:
        return json.dumps(metadata or {}, sort_keys=True)
    except TypeError as e:
        raise ValueError(f"Metadata is not JSON-serialisable: {e}") from e


def _value(x: Any) -> Any:
    """Unwrap enum members to their string value."""
    return getattr(x, "value", x)


def _row_to_entity(row: tuple[Any, ...]) -> Entity:
    return Entity(
        id=row[0],
        type=row[1],
        canonical_id=row[2],
        name=row[3],
        source_path=row[4],
        content_hash=row[5],
        metadata=json.loads(row[6]) if row[6] else {},
        created_at=row[7],
        updated_at=row[8],
    )


def _row_to_relationship(row: tuple[Any, ...]) -> Relationship:
    return Relationship(
        id=row[0],
        source_id=row[1],
        target_id=row[2],
        relation_type=row[3],
        confidence=row[4],
        metadata=json.loads(row[5]) if row[5] else {},
        created_at=row[6],
    )


def compute_content_hash(content: str) -> str:
    """SHA-256 hex digest of document content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


async def has_changed(storage: GraphStorage, source_path: str, current_hash: str) -> bool:
    """
    Whether a document needs re-indexing.

    True when nothing was indexed from source_path yet, or when any entity
    indexed from it carries a different content hash.
    """
    entities = await storage.get_entities_by_source(source_path)
    if not entities:
        return True
    return any(e.content_hash != current_hash for e in entities)


class DuckDBGraphStorage(GraphStorage):
    """
    Graph storage on DuckDB.

    Args:
        path: Database file, or None for an in-memory database
        lock_timeout: Seconds to wait for the file lock on writes

    Example:
        >>> async with DuckDBGraphStorage("./.plan-kg/graph.duckdb") as storage:
        ...     plan = await storage.upsert_entity("plan", "plan:0042", "Search rework")
        ...     agent = await storage.upsert_entity("agent", "agent:0042#001", "Indexer")
        ...     await storage.upsert_relationship(plan.id, agent.id, "CONTAINS")
    """

    def __init__(self, path: str | Path | None = None, lock_timeout: float = 30.0):
        self.path = Path(path) if path is not None else None
        self.lock_timeout = lock_timeout
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._local = threading.local()
        self._write_lock = threading.Lock()
        self._file_lock: FileLock | None = None
        self._revision = 0
        self._fts_loaded = False

    @property
    def revision(self) -> int:
        return self._revision

    async def initialize(self) -> None:
        """Open the database and create the schema."""
        if self._conn is not None:
            return

        def _open() -> None:
            if self.path is not None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._file_lock = FileLock(
                    self.path.parent / f".{self.path.name}.lock", timeout=self.lock_timeout
                )
                conn = duckdb.connect(str(self.path))
            else:
                conn = duckdb.connect(":memory:")
            for statement in _SCHEMA:
                conn.execute(statement)
            self._conn = conn
            self._local = threading.local()

        await asyncio.to_thread(_open)
        logger.info(f"Opened graph storage at {self.path or ':memory:'}")

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        self._local = threading.local()
        self._fts_loaded = False
        logger.info("Closed graph storage")

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        """Get this thread's cursor, creating it if needed."""
        if self._conn is None:
            raise RuntimeError("Graph storage not initialized. Call initialize() first.")

        cur = getattr(self._local, "cur", None)
        if cur is None:
            cur = self._conn.cursor()
            self._local.cur = cur
        return cur

    @contextmanager
    def _writing(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Serialise a write and hand out the thread's cursor."""
        cur = self._cursor()
        with self._write_lock:
            if self._file_lock is not None:
                with self._file_lock:
                    yield cur
            else:
                yield cur

    def _bump(self) -> None:
        self._revision += 1

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def _upsert_entity_locked(
        self,
        cur: duckdb.DuckDBPyConnection,
        type: str,
        canonical_id: str,
        name: str,
        metadata: dict[str, Any] | None,
        source_path: str | None,
        content_hash: str | None,
    ) -> tuple[Entity, bool]:
        type = _value(type)
        meta_json = _dump_metadata(metadata)

        row = cur.execute(
            f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE canonical_id = ?",
            [canonical_id],
        ).fetchone()

        if row is not None:
            current = (row[1], row[3], row[4], row[5], row[6])
            if current == (type, name, source_path, content_hash, meta_json):
                return _row_to_entity(row), False
            cur.execute(
                """
                UPDATE entities
                SET type = ?, name = ?, source_path = ?, content_hash = ?,
                    metadata = ?, updated_at = ?
                WHERE id = ?
                """,
                [type, name, source_path, content_hash, meta_json, _now(), row[0]],
            )
        else:
            now = _now()
            cur.execute(
                """
                INSERT INTO entities
                    (type, canonical_id, name, source_path, content_hash,
                     metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [type, canonical_id, name, source_path, content_hash, meta_json, now, now],
            )

        row = cur.execute(
            f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE canonical_id = ?",
            [canonical_id],
        ).fetchone()
        if row is None:
            raise RuntimeError(f"Entity {canonical_id} vanished during upsert")
        return _row_to_entity(row), True

    def _upsert_relationship_locked(
        self,
        cur: duckdb.DuckDBPyConnection,
        source_id: int,
        target_id: int,
        relation_type: str,
        confidence: float,
        metadata: dict[str, Any] | None,
    ) -> tuple[Relationship, bool]:
        relation_type = _value(relation_type)
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0, 1], got {confidence}")
        meta_json = _dump_metadata(metadata)

        found = {
            r[0]
            for r in cur.execute(
                "SELECT id FROM entities WHERE id IN (?, ?)", [source_id, target_id]
            ).fetchall()
        }
        for endpoint in (source_id, target_id):
            if endpoint not in found:
                raise ReferentialIntegrityError(f"Entity {endpoint} does not exist")

        key = [source_id, target_id, relation_type]
        row = cur.execute(
            f"""
            SELECT {_RELATIONSHIP_COLUMNS} FROM relationships
            WHERE source_id = ? AND target_id = ? AND relation_type = ?
            """,
            key,
        ).fetchone()

        if row is not None:
            if (row[4], row[5]) == (confidence, meta_json):
                return _row_to_relationship(row), False
            cur.execute(
                "UPDATE relationships SET confidence = ?, metadata = ? WHERE id = ?",
                [confidence, meta_json, row[0]],
            )
        else:
            cur.execute(
                """
                INSERT INTO relationships
                    (source_id, target_id, relation_type, confidence, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [*key, confidence, meta_json, _now()],
            )

        row = cur.execute(
            f"""
            SELECT {_RELATIONSHIP_COLUMNS} FROM relationships
            WHERE source_id = ? AND target_id = ? AND relation_type = ?
            """,
            key,
        ).fetchone()
        if row is None:
            raise RuntimeError(f"Relationship {key} vanished during upsert")
        return _row_to_relationship(row), True

    async def upsert_entity(
        self,
        type: str,
        canonical_id: str,
        name: str,
        metadata: dict[str, Any] | None = None,
        *,
        source_path: str | None = None,
        content_hash: str | None = None,
    ) -> Entity:
        def _write() -> Entity:
            with self._writing() as cur:
                entity, changed = self._upsert_entity_locked(
                    cur, type, canonical_id, name, metadata, source_path, content_hash
                )
                if changed:
                    self._bump()
                return entity

        return await asyncio.to_thread(_write)

    async def upsert_relationship(
        self,
        source_id: int,
        target_id: int,
        relation_type: str,
        confidence: float = 1.0,
        metadata: dict[str, Any] | None = None,
    ) -> Relationship:
        def _write() -> Relationship:
            with self._writing() as cur:
                relationship, changed = self._upsert_relationship_locked(
                    cur, source_id, target_id, relation_type, confidence, metadata
                )
                if changed:
                    self._bump()
                return relationship

        return await asyncio.to_thread(_write)

    def _bulk_locked(
        self,
        cur: duckdb.DuckDBPyConnection,
        items: list[dict[str, Any]],
        upsert: Callable[[duckdb.DuckDBPyConnection, dict[str, Any]], tuple[Any, bool]],
    ) -> int:
        """Apply every upsert in one transaction; nothing is written if any fails."""
        changed = 0
        cur.begin()
        try:
            for item in items:
                _, did_write = upsert(cur, item)
                changed += did_write
            cur.commit()
        except Exception:
            cur.rollback()
            raise
        if changed:
            self._bump()
        return changed

    async def bulk_upsert_entities(self, entities: list[dict[str, Any]]) -> int:
        if not entities:
            return 0

        def _upsert(cur: duckdb.DuckDBPyConnection, e: dict[str, Any]) -> tuple[Entity, bool]:
            return self._upsert_entity_locked(
                cur,
                e["type"],
                e["canonical_id"],
                e["name"],
                e.get("metadata"),
                e.get("source_path"),
                e.get("content_hash"),
            )

        def _write() -> int:
            with self._writing() as cur:
                return self._bulk_locked(cur, entities, _upsert)

        changed = await asyncio.to_thread(_write)
        logger.debug(f"Bulk upserted {len(entities)} entities ({changed} changed)")
        return changed

    async def bulk_upsert_relationships(self, relationships: list[dict[str, Any]]) -> int:
        if not relationships:
            return 0

        def _upsert(
            cur: duckdb.DuckDBPyConnection, r: dict[str, Any]
        ) -> tuple[Relationship, bool]:
            return self._upsert_relationship_locked(
                cur,
                r["source_id"],
                r["target_id"],
                r["relation_type"],
                r.get("confidence", 1.0),
                r.get("metadata"),
            )

        def _write() -> int:
            with self._writing() as cur:
                return self._bulk_locked(cur, relationships, _upsert)

        changed = await asyncio.to_thread(_write)
        logger.debug(f"Bulk upserted {len(relationships)} relationships ({changed} changed)")
        return changed

    def _delete_entities_locked(self, cur: duckdb.DuckDBPyConnection, ids: list[int]) -> int:
        if not ids:
            return 0
        placeholders = ",".join("?" for _ in ids)
        cur.begin()
        try:
            cur.execute(
                f"DELETE FROM relationships WHERE source_id IN ({placeholders}) "
                f"OR target_id IN ({placeholders})",
                [*ids, *ids],
            )
            cur.execute(f"DELETE FROM entities WHERE id IN ({placeholders})", ids)
            cur.commit()
        except Exception:
            cur.rollback()
            raise
        self._bump()
        return len(ids)

    async def delete_entity(self, canonical_id: str) -> bool:
        def _write() -> bool:
            with self._writing() as cur:
                row = cur.execute(
                    "SELECT id FROM entities WHERE canonical_id = ?", [canonical_id]
                ).fetchone()
                if row is None:
                    return False
                return self._delete_entities_locked(cur, [row[0]]) == 1

        return await asyncio.to_thread(_write)

    async def delete_entities_by_source(self, source_path: str) -> int:
        def _write() -> int:
            with self._writing() as cur:
                ids = [
                    r[0]
                    for r in cur.execute(
                        "SELECT id FROM entities WHERE source_path = ?", [source_path]
                    ).fetchall()
                ]
                return self._delete_entities_locked(cur, ids)

        deleted = await asyncio.to_thread(_write)
        if deleted:
            logger.info(f"Deleted {deleted} entities indexed from {source_path}")
        return deleted

    async def delete_relationship(
        self, source_id: int, target_id: int, relation_type: str
    ) -> bool:
        def _write() -> bool:
            with self._writing() as cur:
                row = cur.execute(
                    """
                    DELETE FROM relationships
                    WHERE source_id = ? AND target_id = ? AND relation_type = ?
                    RETURNING id
                    """,
                    [source_id, target_id, _value(relation_type)],
                ).fetchone()
                if row is None:
                    return False
                self._bump()
                return True

        return await asyncio.to_thread(_write)

    async def set_meta(self, key: str, value: str) -> None:
        def _write() -> None:
            with self._writing() as cur:
                cur.execute(
                    """
                    INSERT INTO graph_meta (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT (key) DO UPDATE
                    SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    [key, value, _now()],
                )

        await asyncio.to_thread(_write)

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    async def get_entity(self, canonical_id: str) -> Entity | None:
        def _query() -> Entity | None:
            row = self._cursor().execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE canonical_id = ?",
                [canonical_id],
            ).fetchone()
            return _row_to_entity(row) if row else None

        return await asyncio.to_thread(_query)

    async def get_entity_by_id(self, entity_id: int) -> Entity | None:
        def _query() -> Entity | None:
            row = self._cursor().execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE id = ?", [entity_id]
            ).fetchone()
            return _row_to_entity(row) if row else None

        return await asyncio.to_thread(_query)

    async def get_entities(self, canonical_ids: list[str]) -> list[Entity]:
        if not canonical_ids:
            return []

        def _query() -> list[Entity]:
            placeholders = ",".join("?" for _ in canonical_ids)
            rows = self._cursor().execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities "
                f"WHERE canonical_id IN ({placeholders}) ORDER BY canonical_id",
                list(canonical_ids),
            ).fetchall()
            return [_row_to_entity(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def get_entities_by_type(self, type: str) -> list[Entity]:
        def _query() -> list[Entity]:
            rows = self._cursor().execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE type = ? ORDER BY canonical_id",
                [_value(type)],
            ).fetchall()
            return [_row_to_entity(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def get_all_entities(self) -> list[Entity]:
        def _query() -> list[Entity]:
            rows = self._cursor().execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities ORDER BY canonical_id"
            ).fetchall()
            return [_row_to_entity(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def get_entities_by_source(self, source_path: str) -> list[Entity]:
        def _query() -> list[Entity]:
            rows = self._cursor().execute(
                f"SELECT {_ENTITY_COLUMNS} FROM entities "
                f"WHERE source_path = ? ORDER BY canonical_id",
                [source_path],
            ).fetchall()
            return [_row_to_entity(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def get_relationships(
        self, entity_id: int, direction: Direction = "both"
    ) -> list[Relationship]:
        if direction == "outgoing":
            where, params = "source_id = ?", [entity_id]
        elif direction == "incoming":
            where, params = "target_id = ?", [entity_id]
        elif direction == "both":
            where, params = "source_id = ? OR target_id = ?", [entity_id, entity_id]
        else:
            raise ValueError(f"Unknown direction: {direction}")

        def _query() -> list[Relationship]:
            rows = self._cursor().execute(
                f"SELECT {_RELATIONSHIP_COLUMNS} FROM relationships WHERE {where} ORDER BY id",
                params,
            ).fetchall()
            return [_row_to_relationship(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def get_relationships_by_type(self, relation_type: str) -> list[Relationship]:
        def _query() -> list[Relationship]:
            rows = self._cursor().execute(
                f"SELECT {_RELATIONSHIP_COLUMNS} FROM relationships "
                f"WHERE relation_type = ? ORDER BY id",
                [_value(relation_type)],
            ).fetchall()
            return [_row_to_relationship(r) for r in rows]

        return await asyncio.to_thread(_query)

    async def get_meta(self, key: str) -> str | None:
        def _query() -> str | None:
            row = self._cursor().execute(
                "SELECT value FROM graph_meta WHERE key = ?", [key]
            ).fetchone()
            return row[0] if row else None

        return await asyncio.to_thread(_query)

    async def get_stats(self) -> GraphStats:
        def _query() -> GraphStats:
            cur = self._cursor()
            entity_counts = dict(
                cur.execute(
                    "SELECT type, COUNT(*) FROM entities GROUP BY type ORDER BY type"
                ).fetchall()
            )
            relation_counts = dict(
                cur.execute(
                    "SELECT relation_type, COUNT(*) FROM relationships "
                    "GROUP BY relation_type ORDER BY relation_type"
                ).fetchall()
            )
            row = cur.execute(
                "SELECT value FROM graph_meta WHERE key = 'last_indexed'"
            ).fetchone()
            return GraphStats(
                entity_counts=entity_counts,
                relation_counts=relation_counts,
                total_entities=sum(entity_counts.values()),
                total_relations=sum(relation_counts.values()),
                last_indexed=row[0] if row and row[0] else "",
            )

        return await asyncio.to_thread(_query)

    # -------------------------------------------------------------------------
    # Graph Operations
    # -------------------------------------------------------------------------

    async def get_neighbors(
        self,
        entity_id: int,
        direction: Direction = "outgoing",
        relation_type: str | None = None,
    ) -> list[tuple[Relationship, Entity]]:
        if direction == "outgoing":
            join, where = "e.id = r.target_id", "r.source_id = ?"
            params: list[Any] = [entity_id]
        elif direction == "incoming":
            join, where = "e.id = r.source_id", "r.target_id = ?"
            params = [entity_id]
        elif direction == "both":
            # Self-loops come back once, paired with the entity itself
            join = "e.id = CASE WHEN r.source_id = ? THEN r.target_id ELSE r.source_id END"
            where = "(r.source_id = ? OR r.target_id = ?)"
            params = [entity_id, entity_id, entity_id]
        else:
            raise ValueError(f"Unknown direction: {direction}")

        if relation_type is not None:
            where += " AND r.relation_type = ?"
            params.append(_value(relation_type))

        rel_cols = ", ".join(f"r.{c.strip()}" for c in _RELATIONSHIP_COLUMNS.split(","))
        ent_cols = ", ".join(f"e.{c.strip()}" for c in _ENTITY_COLUMNS.split(","))
        n_rel = len(_RELATIONSHIP_COLUMNS.split(","))

        def _query() -> list[tuple[Relationship, Entity]]:
            rows = self._cursor().execute(
                f"""
                SELECT {rel_cols}, {ent_cols}
                FROM relationships r
                JOIN entities e ON {join}
                WHERE {where}
                ORDER BY r.id
                """,
                params,
            ).fetchall()
            return [
                (_row_to_relationship(row[:n_rel]), _row_to_entity(row[n_rel:]))
                for row in rows
            ]

        return await asyncio.to_thread(_query)

    def _expand(
        self, cur: duckdb.DuckDBPyConnection, frontier: list[int], direction: Direction
    ) -> list[tuple[int, str]]:
        """Entities one hop away from the frontier, ordered by canonical id."""
        placeholders = ",".join("?" for _ in frontier)
        outgoing = (
            f"SELECT r.target_id FROM relationships r WHERE r.source_id IN ({placeholders})"
        )
        incoming = (
            f"SELECT r.source_id FROM relationships r WHERE r.target_id IN ({placeholders})"
        )
        if direction == "outgoing":
            ids_sql, params = outgoing, list(frontier)
        elif direction == "incoming":
            ids_sql, params = incoming, list(frontier)
        else:
            ids_sql, params = f"{outgoing} UNION {incoming}", [*frontier, *frontier]

        return cur.execute(
            f"""
            SELECT DISTINCT e.id, e.canonical_id
            FROM entities e
            WHERE e.id IN ({ids_sql})
            ORDER BY e.canonical_id
            """,
            params,
        ).fetchall()

    async def traverse(
        self,
        seed_ids: list[int],
        max_depth: int,
        *,
        direction: Direction = "outgoing",
        include_seeds: bool = False,
    ) -> dict[str, int]:
        if direction not in ("outgoing", "incoming", "both"):
            raise ValueError(f"Unknown direction: {direction}")
        if max_depth < 1 or not seed_ids:
            return {}
        max_depth = min(max_depth, MAX_TRAVERSAL_DEPTH)
        seeds = list(dict.fromkeys(seed_ids))

        def _query() -> dict[str, int]:
            cur = self._cursor()
            placeholders = ",".join("?" for _ in seeds)
            known = cur.execute(
                f"SELECT id, canonical_id FROM entities "
                f"WHERE id IN ({placeholders}) ORDER BY canonical_id",
                seeds,
            ).fetchall()

            distances: dict[str, int] = {}
            if include_seeds:
                distances.update({cid: 0 for _, cid in known})

            visited = {eid for eid, _ in known}
            frontier = [eid for eid, _ in known]
            depth = 0
            while frontier and depth < max_depth:
                depth += 1
                next_frontier = []
                for eid, cid in self._expand(cur, frontier, direction):
                    if eid in visited:
                        continue
                    visited.add(eid)
                    distances[cid] = depth
                    next_frontier.append(eid)
                frontier = next_frontier
            return distances

        return await asyncio.to_thread(_query)

    async def get_paths(
        self,
        from_id: int,
        to_id: int,
        max_depth: int = 5,
        max_paths: int = 25,
    ) -> list[list[Entity]]:
        """
        Simple outgoing paths from one entity to another.

        Depth is capped at 10 edges and the number of paths at 1000. A path
        from an entity to itself is the single-entity path.
        """
        max_depth = max(1, min(max_depth, MAX_TRAVERSAL_DEPTH))
        max_paths = max(1, min(max_paths, MAX_PATHS))

        def _query() -> list[list[Entity]]:
            cur = self._cursor()
            adjacency: dict[int, list[int]] = {}

            def successors(node: int) -> list[int]:
                if node not in adjacency:
                    adjacency[node] = [
                        r[0]
                        for r in cur.execute(
                            "SELECT DISTINCT target_id FROM relationships "
                            "WHERE source_id = ? ORDER BY target_id",
                            [node],
                        ).fetchall()
                    ]
                return adjacency[node]

            exists = cur.execute(
                "SELECT COUNT(*) FROM entities WHERE id IN (?, ?)", [from_id, to_id]
            ).fetchone()
            expected = 1 if from_id == to_id else 2
            if exists is None or exists[0] < expected:
                return []

            found: list[list[int]] = []
            if from_id == to_id:
                found.append([from_id])
            else:
                # Breadth-first, so a capped result holds the shortest paths
                queue: deque[list[int]] = deque([[from_id]])
                while queue and len(found) < max_paths:
                    path = queue.popleft()
                    if len(path) - 1 >= max_depth:
                        continue
                    for nxt in successors(path[-1]):
                        if nxt in path:
                            continue
                        if nxt == to_id:
                            found.append([*path, nxt])
                            if len(found) >= max_paths:
                                break
                        else:
                            queue.append([*path, nxt])

            if not found:
                return []

            ids = sorted({eid for path in found for eid in path})
            placeholders = ",".join("?" for _ in ids)
            by_id = {
                row[0]: _row_to_entity(row)
                for row in cur.execute(
                    f"SELECT {_ENTITY_COLUMNS} FROM entities WHERE id IN ({placeholders})",
                    ids,
                ).fetchall()
            }
            return [[by_id[eid] for eid in path] for path in found]

        return await asyncio.to_thread(_query)

    # -------------------------------------------------------------------------
    # Full-text search
    # -------------------------------------------------------------------------

    def _load_fts(self, cur: duckdb.DuckDBPyConnection) -> None:
        if not self._fts_loaded:
            cur.execute("INSTALL fts")
            cur.execute("LOAD fts")
            self._fts_loaded = True

    async def rebuild_fulltext_index(self) -> int:
        """
        (Re)build the BM25 index over entity canonical ids and names.

        Returns:
            The storage revision the index reflects
        """

        def _write() -> int:
            with self._writing() as cur:
                self._load_fts(cur)
                cur.execute(
                    "PRAGMA create_fts_index("
                    "'entities', 'id', 'canonical_id', 'name', "
                    "stemmer = 'porter', ignore = '[^a-z0-9]+', overwrite = 1)"
                )
                return self._revision

        revision = await asyncio.to_thread(_write)
        logger.debug(f"Rebuilt full-text index at revision {revision}")
        return revision

    async def search_fulltext(self, query_text: str, limit: int = 50) -> list[tuple[str, float]]:
        """BM25 search over the full-text index (call rebuild_fulltext_index first)."""
        if limit <= 0 or not query_text.strip():
            return []

        def _query() -> list[tuple[str, float]]:
            cur = self._cursor()
            self._load_fts(cur)
            rows = cur.execute(
                """
                SELECT canonical_id, score FROM (
                    SELECT canonical_id, fts_main_entities.match_bm25(id, ?) AS score
                    FROM entities
                ) sq
                WHERE score IS NOT NULL
                ORDER BY score DESC, canonical_id
                LIMIT ?
                """,
                [query_text, limit],
            ).fetchall()
            return [(cid, max(0.0, float(score))) for cid, score in rows]

        return await asyncio.to_thread(_query)
