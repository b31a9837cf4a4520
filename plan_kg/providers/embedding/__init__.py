"""
Embedding Provider Implementations

Modules:
    openai: OpenAI embeddings via LangChain (optional 'openai' extra)
    hashing: Deterministic feature-hashing embeddings (offline, no model)

Each provider implements the EmbeddingProvider interface with:
    - embed(): Batch embedding generation
    - embed_single(): Single text embedding
    - dimensions: Vector dimensionality
    - model_name: Current model identifier

Example:
    >>> from plan_kg.providers.embedding import HashingEmbeddingProvider
    >>> provider = HashingEmbeddingProvider(dimensions=256)
    >>> vectors = await provider.embed(["plan 0042", "search rework"])
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plan_kg.providers.embedding.hashing import HashingEmbeddingProvider
    from plan_kg.providers.embedding.openai import OpenAIEmbeddingProvider


def __getattr__(name: str):
    """Lazy import of providers to avoid requiring all dependencies."""
    if name == "OpenAIEmbeddingProvider":
        from plan_kg.providers.embedding.openai import OpenAIEmbeddingProvider
        return OpenAIEmbeddingProvider
    if name == "HashingEmbeddingProvider":
        from plan_kg.providers.embedding.hashing import HashingEmbeddingProvider
        return HashingEmbeddingProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["OpenAIEmbeddingProvider", "HashingEmbeddingProvider"]
