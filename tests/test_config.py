"""Tests for KGConfig."""

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from plan_kg.config import KGConfig


class TestKGConfigDefaults:
    """Tests for defaults and explicit overrides."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = KGConfig()
        assert config.default_recipe is None
        assert config.lexical_backend == "duckdb"
        assert config.embedding_backend == "lancedb"
        assert config.embedding_provider == "hashing"
        assert config.search_limit == 10
        assert config.over_retrieve_factor == 3
        assert config.openai_api_key is None

    def test_kwargs_override(self):
        config = KGConfig(default_recipe="LEXICAL_FIRST", search_limit=5)
        assert config.default_recipe == "LEXICAL_FIRST"
        assert config.search_limit == 5

    def test_unknown_option_rejected(self):
        with pytest.raises(ValueError, match="Unknown configuration option"):
            KGConfig(not_an_option=True)


class TestKGConfigEnvironment:
    """Tests for environment variable loading."""

    def test_env_vars_loaded(self):
        env = {
            "PLAN_KG_DEFAULT_RECIPE": "SEMANTIC_FIRST",
            "PLAN_KG_LEXICAL_BACKEND": "memory",
            "PLAN_KG_EMBEDDING_BACKEND": "memory",
            "PLAN_KG_EMBEDDING_PROVIDER": "openai",
            "PLAN_KG_EMBEDDING_MODEL": "text-embedding-3-large",
            "PLAN_KG_OVER_RETRIEVE_FACTOR": "5",
            "PLAN_KG_SEARCH_LIMIT": "25",
            "OPENAI_API_KEY": "sk-test",
        }
        with patch.dict(os.environ, env, clear=True):
            config = KGConfig()
        assert config.default_recipe == "SEMANTIC_FIRST"
        assert config.lexical_backend == "memory"
        assert config.embedding_backend == "memory"
        assert config.embedding_provider == "openai"
        assert config.embedding_model == "text-embedding-3-large"
        assert config.over_retrieve_factor == 5
        assert config.search_limit == 25
        assert config.openai_api_key == "sk-test"

    def test_kwargs_beat_env(self):
        with patch.dict(os.environ, {"PLAN_KG_SEARCH_LIMIT": "25"}, clear=True):
            config = KGConfig(search_limit=3)
        assert config.search_limit == 3


class TestKGConfigFile:
    """Tests for TOML load/save."""

    def test_from_file_sections(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "plan-kg.toml"
            path.write_text(
                "\n".join([
                    "[storage]",
                    'lexical_backend = "memory"',
                    "",
                    "[search]",
                    'default_recipe = "BFS_EXPANSION"',
                    "limit = 7",
                    "",
                    "[embedding]",
                    'provider = "hashing"',
                    "dimensions = 64",
                    "",
                    "[api_keys]",
                    'openai = "sk-file"',
                ])
            )
            with patch.dict(os.environ, {}, clear=True):
                config = KGConfig.from_file(path)

        assert config.lexical_backend == "memory"
        assert config.default_recipe == "BFS_EXPANSION"
        assert config.search_limit == 7
        assert config.embedding_provider == "hashing"
        assert config.embedding_dimensions == 64
        assert config.openai_api_key == "sk-file"

    def test_from_file_missing(self):
        with pytest.raises(FileNotFoundError):
            KGConfig.from_file("/nonexistent/plan-kg.toml")

    def test_to_file_excludes_api_keys(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "out.toml"
            config = KGConfig(
                openai_api_key="sk-secret", default_recipe="HYBRID_BALANCED", search_limit=4
            )
            config.to_file(path)
            text = path.read_text()

            assert "sk-secret" not in text
            with patch.dict(os.environ, {}, clear=True):
                loaded = KGConfig.from_file(path)

        assert loaded.default_recipe == "HYBRID_BALANCED"
        assert loaded.search_limit == 4

    def test_with_overrides_copies(self):
        config = KGConfig(search_limit=10)
        other = config.with_overrides(search_limit=2)
        assert other.search_limit == 2
        assert config.search_limit == 10

    def test_with_overrides_unknown_option(self):
        with pytest.raises(ValueError):
            KGConfig().with_overrides(bogus=1)
