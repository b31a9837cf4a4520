"""
In-Memory Index Implementations

Deterministic LexicalIndex and EmbeddingStore implementations held in
process memory. Used for small graphs, for tests, and wherever a
persistent index is not worth the setup.
"""

import logging
import re

import numpy as np
from scipy.spatial.distance import cdist

from plan_kg.providers.base import EmbeddingProvider
from plan_kg.storage.base import EmbeddingStore, LexicalIndex
from plan_kg.types import Entity

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"[a-z0-9]+")


def _terms(text: str) -> set[str]:
    return set(_TOKEN.findall(text.lower()))


class InMemoryLexicalIndex(LexicalIndex):
    """
    Term-overlap lexical index.

    Score is the fraction of distinct query terms found in the document
    (0 < score <= 1). Documents matching no term are not returned.

    Example:
        >>> lexical = InMemoryLexicalIndex()
        >>> lexical.add("plan:0042", "plan:0042 Search rework")
        >>> await lexical.search("plan 0042")
        [('plan:0042', 1.0)]
    """

    def __init__(self) -> None:
        self._docs: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self._docs)

    def add(self, canonical_id: str, text: str) -> None:
        """Index (or re-index) a document."""
        self._docs[canonical_id] = _terms(text)

    def add_entity(self, entity: Entity) -> None:
        """Index an entity by its canonical id and name."""
        self.add(entity.canonical_id, f"{entity.canonical_id} {entity.name}")

    def remove(self, canonical_id: str) -> None:
        self._docs.pop(canonical_id, None)

    async def search(self, query_text: str, limit: int = 50) -> list[tuple[str, float]]:
        query_terms = _terms(query_text)
        if limit <= 0 or not query_terms:
            return []

        scored = []
        for cid, doc_terms in self._docs.items():
            hits = len(query_terms & doc_terms)
            if hits:
                scored.append((cid, hits / len(query_terms)))
        scored.sort(key=lambda item: (-item[1], item[0]))
        return scored[:limit]


class InMemoryEmbeddingStore(EmbeddingStore):
    """
    Dict-backed embedding store with cosine similarity.

    Args:
        provider: Embedding provider used by embed(); without one, embed()
            raises RuntimeError and only precomputed vectors can be used
    """

    def __init__(self, provider: EmbeddingProvider | None = None) -> None:
        self.provider = provider
        self._vectors: dict[str, np.ndarray] = {}

    def __len__(self) -> int:
        return len(self._vectors)

    async def embed(self, text: str) -> list[float]:
        if self.provider is None:
            raise RuntimeError("No embedding provider configured for this store")
        return await self.provider.embed_single(text)

    async def get(self, canonical_id: str) -> list[float] | None:
        vec = self._vectors.get(canonical_id)
        return vec.tolist() if vec is not None else None

    async def set(self, canonical_id: str, vector: list[float]) -> None:
        self._vectors[canonical_id] = np.asarray(vector, dtype=np.float64)

    async def find_similar(
        self, vector: list[float], limit: int = 50
    ) -> list[tuple[str, float]]:
        if limit <= 0 or not self._vectors:
            return []
        query = np.asarray(vector, dtype=np.float64)
        if not np.any(query):
            return []

        ids = list(self._vectors)
        matrix = np.vstack([self._vectors[cid] for cid in ids])
        with np.errstate(invalid="ignore", divide="ignore"):
            distances = cdist(query[np.newaxis, :], matrix, metric="cosine")[0]

        scored = [
            (cid, float(1.0 - d))
            for cid, d in zip(ids, distances)
            if not np.isnan(d)
        ]
        scored.sort(key=lambda item: (-item[1], item[0]))
        return scored[:limit]
