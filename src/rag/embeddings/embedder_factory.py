# src/rag/embeddings/embedder_factory.py — v2
"""Factory: instantiate embedding provider from configuration."""

from __future__ import annotations

import importlib
import logging

from kbroute.config.settings import Settings
from kbroute.rag.embeddings.base_embedder import BaseEmbedder

logger = logging.getLogger(__name__)

_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "kbroute.rag.embeddings.anthropic_embedder.AnthropicEmbedder",
    "openai": "kbroute.rag.embeddings.openai_embedder.OpenAIEmbedder",
}


class UnsupportedEmbeddingProviderError(ValueError):
    """Raised when an embedding provider is not registered."""


def create_embedder(settings: Settings | None = None) -> BaseEmbedder:
    """Instantiate the configured embedding provider.

    Args:
        settings: Application settings. Uses EMBEDDING_PROVIDER and EMBEDDING_MODEL.
            None builds the default OpenAI embedder.

    Returns:
        Configured BaseEmbedder instance.
    """
    if settings is None:
        from kbroute.rag.embeddings.openai_embedder import OpenAIEmbedder
        return OpenAIEmbedder()

    provider = settings.embedding_provider
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedEmbeddingProviderError(
            f"Unsupported embedding provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    cls = _import_class(_PROVIDER_REGISTRY[provider])

    kwargs: dict = {
        "model": settings.embedding_model,
        "dimensions": settings.embedding_dimensions,
    }
    if provider == "anthropic":
        kwargs["api_key"] = settings.anthropic_api_key
    elif provider == "openai":
        kwargs["api_key"] = settings.openai_api_key

    logger.debug("Creating embedder: provider=%s, model=%s", provider, settings.embedding_model)
    return cls(**kwargs)


def register_embedding_provider(name: str, class_path: str) -> None:
    """Register a custom embedding provider."""
    _PROVIDER_REGISTRY[name] = class_path


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
