"""
KGConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> graph = PlanningGraph("./.plan-kg")

    >>> # Explicit configuration
    >>> config = KGConfig(
    ...     default_recipe="LEXICAL_FIRST",
    ...     embedding_provider="hashing",
    ... )
    >>> graph = PlanningGraph("./.plan-kg", config=config)

    >>> # From config file
    >>> config = KGConfig.from_file("./plan-kg.toml")

Environment Variables:
    PLAN_KG_DEFAULT_RECIPE - Recipe used when a search passes no override
    PLAN_KG_LEXICAL_BACKEND - Lexical index backend ("duckdb", "memory")
    PLAN_KG_EMBEDDING_BACKEND - Embedding store backend ("lancedb", "memory")
    PLAN_KG_EMBEDDING_PROVIDER - Embedding provider name ("openai", "hashing")
    PLAN_KG_EMBEDDING_MODEL - Embedding model name
    PLAN_KG_OVER_RETRIEVE_FACTOR - Candidate multiplier per signal source
    PLAN_KG_SEARCH_LIMIT - Default number of search results
    OPENAI_API_KEY - OpenAI API key (standard name)
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, cast


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return cast(dict[str, Any], tomllib.load(f))


class KGConfig:
    """Configuration for plan-kg."""

    # === Storage Configuration ===

    database_filename: str = "graph.duckdb"
    """DuckDB file name inside the graph directory"""

    lock_timeout: float = 30.0
    """Seconds to wait for the write lock on an on-disk graph"""

    lexical_backend: str = "duckdb"
    """Lexical index backend: "duckdb" (BM25 over entities), "memory" """

    embedding_backend: str = "lancedb"
    """Embedding store backend: "lancedb", "memory" """

    lancedb_table: str = "entity_vectors"
    """LanceDB table holding entity vectors"""

    # === Embedding Configuration ===

    embedding_provider: str = "hashing"
    """Embedding provider: "openai", "hashing" """

    embedding_model: str = "text-embedding-3-small"
    """Embedding model name (OpenAI provider)"""

    embedding_dimensions: int = 256
    """Vector dimensions for the hashing provider"""

    # === API Keys ===

    openai_api_key: str | None = None

    # === Search Configuration ===

    default_recipe: str | None = None
    """Recipe name used when a search passes no override (None = route by query)"""

    search_limit: int = 10
    """Default number of results returned by search"""

    over_retrieve_factor: int = 3
    """Each signal source is asked for limit * factor candidates"""

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option
        """
        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        import os

        # API keys (standard names)
        self.openai_api_key = os.getenv("OPENAI_API_KEY")

        # PLAN_KG_* prefixed settings
        if recipe := os.getenv("PLAN_KG_DEFAULT_RECIPE"):
            self.default_recipe = recipe
        if backend := os.getenv("PLAN_KG_LEXICAL_BACKEND"):
            self.lexical_backend = backend
        if backend := os.getenv("PLAN_KG_EMBEDDING_BACKEND"):
            self.embedding_backend = backend
        if provider := os.getenv("PLAN_KG_EMBEDDING_PROVIDER"):
            self.embedding_provider = provider
        if model := os.getenv("PLAN_KG_EMBEDDING_MODEL"):
            self.embedding_model = model
        if factor := os.getenv("PLAN_KG_OVER_RETRIEVE_FACTOR"):
            self.over_retrieve_factor = int(factor)
        if limit := os.getenv("PLAN_KG_SEARCH_LIMIT"):
            self.search_limit = int(limit)

    @classmethod
    def from_file(cls, path: str | Path) -> "KGConfig":
        """
        Load configuration from TOML file.

        The TOML file can contain any configuration option as a key.
        Nested sections are flattened with prefixes.

        Example TOML:
            [storage]
            lexical_backend = "duckdb"
            embedding_backend = "lancedb"

            [search]
            default_recipe = "HYBRID_BALANCED"
            limit = 20

            [embedding]
            provider = "openai"
            model = "text-embedding-3-small"

            [api_keys]
            openai = "sk-..."

        Args:
            path: Path to TOML configuration file

        Returns:
            KGConfig instance with values from file

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        data = _load_toml(path)

        flat_config: dict[str, Any] = {}

        # Map section names to config key prefixes
        section_mapping = {
            "storage": "",
            "search": "",
            "embedding": "embedding_",
            "api_keys": "",  # api_keys.openai -> openai_api_key
        }

        for section, prefix in section_mapping.items():
            if section in data:
                for key, value in data[section].items():
                    if section == "api_keys":
                        flat_config[f"{key}_api_key"] = value
                    elif section == "search" and key == "limit":
                        flat_config["search_limit"] = value
                    else:
                        flat_config[f"{prefix}{key}"] = value

        # Also support flat top-level keys
        for key, value in data.items():
            if key not in section_mapping and not isinstance(value, dict):
                flat_config[key] = value

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> "KGConfig":
        """Load configuration from environment variables only."""
        return cls()

    def to_file(self, path: str | Path) -> None:
        """
        Save configuration to TOML file.

        API keys are excluded for security.

        Args:
            path: Path to write TOML configuration file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sections: dict[str, dict[str, str | int | float | bool | None]] = {
            "storage": {
                "database_filename": self.database_filename,
                "lock_timeout": self.lock_timeout,
                "lexical_backend": self.lexical_backend,
                "embedding_backend": self.embedding_backend,
                "lancedb_table": self.lancedb_table,
            },
            "search": {
                "default_recipe": self.default_recipe,
                "limit": self.search_limit,
                "over_retrieve_factor": self.over_retrieve_factor,
            },
            "embedding": {
                "provider": self.embedding_provider,
                "model": self.embedding_model,
                "dimensions": self.embedding_dimensions,
            },
        }

        # Build TOML string manually (avoids extra dependency)
        lines = ["# plan-kg Configuration", ""]

        for section_name, section_values in sections.items():
            lines.append(f"[{section_name}]")
            for key, value in section_values.items():
                if isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, (int, float)):
                    lines.append(f"{key} = {value}")
            lines.append("")

        lines.extend([
            "# API keys should be set via environment variables:",
            "# OPENAI_API_KEY",
            "",
        ])

        path.write_text("\n".join(lines))

    def with_overrides(self, **kwargs: Any) -> "KGConfig":
        """Return new config with specified overrides."""
        new_config = KGConfig.__new__(KGConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)):
                setattr(new_config, key, getattr(self, key))
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        return new_config
