"""
DuckDB Storage

Graph persistence and full-text search on an embedded DuckDB database.

Modules:
    graph: DuckDBGraphStorage (entities, relationships, traversal, stats)
    fulltext: DuckDBLexicalIndex (BM25 via the fts extension)

Traversal Pattern (one query per BFS level):

    SELECT DISTINCT e.id, e.canonical_id
    FROM entities e
    WHERE e.id IN (SELECT r.target_id FROM relationships r
                   WHERE r.source_id IN (<frontier>))
    ORDER BY e.canonical_id
"""

from plan_kg.storage.duckdb.fulltext import DuckDBLexicalIndex
from plan_kg.storage.duckdb.graph import (
    DuckDBGraphStorage,
    compute_content_hash,
    has_changed,
)

__all__ = [
    "DuckDBGraphStorage",
    "DuckDBLexicalIndex",
    "compute_content_hash",
    "has_changed",
]
