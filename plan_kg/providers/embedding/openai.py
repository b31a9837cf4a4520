"""
OpenAI Embedding Provider (LangChain-based)

Embeds entity text and search queries with OpenAI's embedding models via
LangChain's OpenAIEmbeddings. Requires the optional 'openai' extra.

Models:
    - text-embedding-3-small: 1536 dimensions (default)
    - text-embedding-3-large: 3072 dimensions

Example:
    >>> provider = OpenAIEmbeddingProvider(model="text-embedding-3-small")
    >>> vectors = await provider.embed(["Search rework", "Indexer agent"])
    >>> len(vectors[0])
    1536
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from plan_kg.providers.base import EmbeddingProvider

if TYPE_CHECKING:
    from langchain_openai import OpenAIEmbeddings

logger = logging.getLogger(__name__)

MODEL_DIMENSIONS = {
    "text-embedding-3-large": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-ada-002": 1536,
}

DEFAULT_MODEL = "text-embedding-3-small"


def _get_openai_embeddings(api_key: str | None, model: str) -> "OpenAIEmbeddings":
    """
    Build the LangChain client.

    Raises:
        ImportError: If langchain-openai is not installed
    """
    try:
        from langchain_openai import OpenAIEmbeddings
    except ImportError:
        raise ImportError(
            "OpenAI embedding provider requires the 'langchain-openai' package. "
            "Install with: pip install plan-kg[openai]"
        )

    if api_key:
        from pydantic import SecretStr
        return OpenAIEmbeddings(model=model, api_key=SecretStr(api_key))
    return OpenAIEmbeddings(model=model)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI embeddings through LangChain.

    Args:
        api_key: OpenAI API key. If None, uses OPENAI_API_KEY.
        model: Embedding model name
        batch_size: Texts sent per request in embed()
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        batch_size: int = 256,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._api_key = api_key
        self._model = model
        self._batch_size = batch_size
        self._dimensions = MODEL_DIMENSIONS.get(model, 1536)
        self._client: OpenAIEmbeddings | None = None

    def _get_client(self) -> "OpenAIEmbeddings":
        if self._client is None:
            self._client = _get_openai_embeddings(self._api_key, self._model)
        return self._client

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return self._model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        client = self._get_client()
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = texts[start : start + self._batch_size]
            # embed_documents is synchronous
            vectors.extend(await asyncio.to_thread(client.embed_documents, batch))
        logger.debug(f"Embedded {len(texts)} texts with {self._model}")
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        client = self._get_client()
        return await asyncio.to_thread(client.embed_query, text)
