"""
Provider Abstractions

Embedding providers turn entity text and queries into vectors.

Modules:
    base: EmbeddingProvider ABC
    embedding/: OpenAI (LangChain) and hashing implementations

Example:
    >>> from plan_kg.providers import get_embedding_provider
    >>> provider = get_embedding_provider("hashing", dimensions=256)
    >>> vector = await provider.embed_single("search rework")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from plan_kg.providers.base import EmbeddingProvider

if TYPE_CHECKING:
    from plan_kg.config import KGConfig


def get_embedding_provider(name: str, **kwargs: Any) -> EmbeddingProvider:
    """
    Build an embedding provider by name.

    Args:
        name: "openai" or "hashing"
        **kwargs: Passed to the provider constructor

    Raises:
        ValueError: If the provider name is unknown
    """
    if name == "openai":
        from plan_kg.providers.embedding.openai import OpenAIEmbeddingProvider
        return OpenAIEmbeddingProvider(**kwargs)
    if name == "hashing":
        from plan_kg.providers.embedding.hashing import HashingEmbeddingProvider
        return HashingEmbeddingProvider(**kwargs)
    raise ValueError(f"Unknown embedding provider: {name}")


def embedding_provider_from_config(config: "KGConfig") -> EmbeddingProvider:
    """Build the embedding provider a KGConfig names."""
    if config.embedding_provider == "openai":
        return get_embedding_provider(
            "openai", api_key=config.openai_api_key, model=config.embedding_model
        )
    if config.embedding_provider == "hashing":
        return get_embedding_provider("hashing", dimensions=config.embedding_dimensions)
    return get_embedding_provider(config.embedding_provider)


__all__ = [
    "EmbeddingProvider",
    "get_embedding_provider",
    "embedding_provider_from_config",
]
