"""
LanceDB Vector Storage

Semantic candidates for hybrid search.

Modules:
    embeddings: LanceDBEmbeddingStore

Table Schema:
    entity_vectors.lance:
        canonical_id, vector

Similarity is cosine: 1 - LanceDB's cosine distance.
"""

from plan_kg.storage.lancedb.embeddings import LanceDBEmbeddingStore

__all__ = ["LanceDBEmbeddingStore"]
