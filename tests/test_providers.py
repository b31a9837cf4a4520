"""Tests for embedding providers."""

from unittest.mock import MagicMock

import numpy as np
import pytest

from plan_kg.config import KGConfig
from plan_kg.providers import embedding_provider_from_config, get_embedding_provider
from plan_kg.providers.embedding.hashing import HashingEmbeddingProvider
from plan_kg.providers.embedding.openai import OpenAIEmbeddingProvider


class TestHashingEmbeddingProvider:
    """Tests for the offline feature-hashing provider."""

    @pytest.mark.asyncio
    async def test_deterministic_and_normalised(self):
        provider = HashingEmbeddingProvider(dimensions=64)
        a = await provider.embed_single("OAuth login flow")
        b = await provider.embed_single("oauth LOGIN flow")

        assert a == b
        assert len(a) == 64
        assert np.linalg.norm(a) == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_shared_words_are_closer(self):
        provider = HashingEmbeddingProvider(dimensions=512)
        base, related, unrelated = await provider.embed(
            ["oauth login flow", "oauth login page", "invoice export csv"]
        )
        assert np.dot(base, related) > np.dot(base, unrelated)

    @pytest.mark.asyncio
    async def test_empty_text_is_zero_vector(self):
        provider = HashingEmbeddingProvider(dimensions=8)
        assert await provider.embed_single("") == [0.0] * 8

    def test_properties_and_validation(self):
        provider = HashingEmbeddingProvider(dimensions=32)
        assert provider.dimensions == 32
        assert provider.model_name == "hashing-32"
        with pytest.raises(ValueError):
            HashingEmbeddingProvider(dimensions=0)


class TestOpenAIEmbeddingProvider:
    """Tests for the LangChain-backed provider (client mocked)."""

    def test_dimensions_from_model(self):
        assert OpenAIEmbeddingProvider(model="text-embedding-3-large").dimensions == 3072
        assert OpenAIEmbeddingProvider().model_name == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_embed_batches_requests(self):
        provider = OpenAIEmbeddingProvider(api_key="sk-test", batch_size=2)
        client = MagicMock()
        client.embed_documents.side_effect = lambda texts: [[float(len(t))] for t in texts]
        provider._client = client

        vectors = await provider.embed(["a", "bb", "ccc"])

        assert vectors == [[1.0], [2.0], [3.0]]
        assert client.embed_documents.call_count == 2

    @pytest.mark.asyncio
    async def test_embed_empty_skips_client(self):
        provider = OpenAIEmbeddingProvider(api_key="sk-test")
        provider._client = MagicMock()
        assert await provider.embed([]) == []
        provider._client.embed_documents.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_single_uses_query_endpoint(self):
        provider = OpenAIEmbeddingProvider(api_key="sk-test")
        provider._client = MagicMock()
        provider._client.embed_query.return_value = [0.5, 0.5]
        assert await provider.embed_single("plan 0042") == [0.5, 0.5]
        provider._client.embed_query.assert_called_once_with("plan 0042")


class TestProviderFactory:
    """Tests for provider construction by name."""

    def test_get_by_name(self):
        assert isinstance(get_embedding_provider("hashing"), HashingEmbeddingProvider)
        assert isinstance(get_embedding_provider("openai"), OpenAIEmbeddingProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            get_embedding_provider("voyage")

    def test_from_config(self):
        config = KGConfig(embedding_provider="hashing", embedding_dimensions=48)
        provider = embedding_provider_from_config(config)
        assert provider.dimensions == 48

        config = KGConfig(embedding_provider="openai", embedding_model="text-embedding-3-large")
        provider = embedding_provider_from_config(config)
        assert provider.model_name == "text-embedding-3-large"
