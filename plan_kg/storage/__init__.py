"""
Storage Backends

Embedded storage using DuckDB (graph + full-text) and LanceDB (vectors).

Modules:
    base: Abstract GraphStorage, LexicalIndex and EmbeddingStore interfaces
    duckdb/: Graph storage and BM25 lexical index
    lancedb/: Vector embedding store
    memory: In-memory lexical index and embedding store

Graph Directory Structure:
    .plan-kg/
    ├── graph.duckdb            # Entities, relationships, graph_meta, fts index
    ├── .graph.duckdb.lock      # Write lock for the database
    └── lancedb/                # Vector indices
        └── entity_vectors.lance/

Design Principles:
    - Zero infrastructure (embedded databases)
    - Portable (a graph is just a directory)
"""

from plan_kg.storage.base import (
    EmbeddingStore,
    GraphStorage,
    LexicalIndex,
    ReferentialIntegrityError,
)
from plan_kg.storage.duckdb import DuckDBGraphStorage, DuckDBLexicalIndex
from plan_kg.storage.memory import InMemoryEmbeddingStore, InMemoryLexicalIndex

__all__ = [
    "GraphStorage",
    "LexicalIndex",
    "EmbeddingStore",
    "ReferentialIntegrityError",
    "DuckDBGraphStorage",
    "DuckDBLexicalIndex",
    "InMemoryLexicalIndex",
    "InMemoryEmbeddingStore",
]
