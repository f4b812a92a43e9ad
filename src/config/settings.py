# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: providers,
category storage, classifier thresholds, cache tiers and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: str = "openai"
    llm_default_model: str = "gpt-4o-mini"

    # Provider API keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Per-component LLM assignment (provider:model, highest priority)
    llm_query_classifier: str = ""
    llm_category_discovery: str = ""
    llm_category_suggester: str = ""

    # === EMBEDDINGS ===
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # === Category / document storage ===
    store_backend: Literal["memory", "sqlite"] = "sqlite"
    store_path: Path = Path("~/.kbroute/kbroute.db")

    # === Query classifier ===
    category_cache_ttl_s: float = 300.0
    keyword_accept_threshold: float = 0.8
    semantic_accept_threshold: float = 0.7
    semantic_match_threshold: float = 0.4
    fast_path_escalation_threshold: float = 0.5

    # === Category suggestion ===
    suggestion_semantic_threshold: float = 0.7

    # === Cache: in-process tier (capacity, TTL seconds) ===
    cache_embedding_max_entries: int = 1000
    cache_embedding_ttl_s: float = 3600.0
    cache_search_max_entries: int = 200
    cache_search_ttl_s: float = 300.0
    cache_stats_max_entries: int = 100
    cache_stats_ttl_s: float = 300.0
    cache_document_max_entries: int = 500
    cache_document_ttl_s: float = 600.0

    # === Cache: shared tier ===
    cache_shared_backend: Literal["none", "redis"] = "none"
    cache_redis_url: str = ""
    cache_shared_embedding_ttl_s: int = 60 * 60 * 24 * 30
    cache_shared_search_ttl_s: int = 60 * 5
    cache_shared_stats_ttl_s: int = 60 * 15

    # === Cache: persistent document tier ===
    cache_document_backend: Literal["none", "json", "sqlite"] = "none"
    cache_root: Path = Path("~/.kbroute/cache")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "keyword_accept_threshold",
        "semantic_accept_threshold",
        "semantic_match_threshold",
        "fast_path_escalation_threshold",
        "suggestion_semantic_threshold",
    )
    @classmethod
    def validate_threshold(cls, v: float) -> float:  # noqa: N805
        """Thresholds are similarity/confidence values in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("threshold must be within [0, 1]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_shared_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_SHARED_BACKEND=redis requires CACHE_REDIS_URL")

        for role in ("embedding", "search", "stats", "document"):
            if getattr(self, f"cache_{role}_max_entries") <= 0:
                errors.append(f"CACHE_{role.upper()}_MAX_ENTRIES must be > 0")
            if getattr(self, f"cache_{role}_ttl_s") <= 0:
                errors.append(f"CACHE_{role.upper()}_TTL_S must be > 0")

        if self.category_cache_ttl_s < 0:
            errors.append("CATEGORY_CACHE_TTL_S must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-process config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
