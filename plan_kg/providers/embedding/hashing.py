"""
Hashing Embedding Provider

Deterministic bag-of-words embeddings using signed feature hashing. Needs
no model download and no network, so it is the default for local graphs
and for tests. Texts that share words get positive cosine similarity;
unrelated texts are close to orthogonal.
"""

import hashlib
import re

import numpy as np

from plan_kg.providers.base import EmbeddingProvider

_TOKEN = re.compile(r"[a-z0-9]+")


class HashingEmbeddingProvider(EmbeddingProvider):
    """
    Signed feature-hashing embeddings.

    Each lowercase alphanumeric token is hashed (SHA-256) to a bucket and a
    sign; the resulting count vector is L2-normalised. Empty text embeds to
    the zero vector.

    Args:
        dimensions: Vector size
    """

    def __init__(self, dimensions: int = 256) -> None:
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return f"hashing-{self._dimensions}"

    def _vector(self, text: str) -> list[float]:
        vec = np.zeros(self._dimensions, dtype=np.float64)
        for token in _TOKEN.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:8], "big") % self._dimensions
            sign = 1.0 if digest[8] & 1 else -1.0
            vec[bucket] += sign
        norm = np.linalg.norm(vec)
        if norm > 0:
            vec /= norm
        return vec.tolist()

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return self._vector(text)
