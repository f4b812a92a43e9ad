# src/llm/client_factory.py — v3
"""Factory: instantiate completion client from provider name.

Called by the composition root to create per-component clients based on
config resolution (see llm/config.py cascade).
"""

from __future__ import annotations

import importlib
import logging

from kbroute.config.settings import Settings
from kbroute.llm.base_client import BaseLLMClient
from kbroute.llm.config import resolve_llm

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "anthropic": "kbroute.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "kbroute.llm.adapters.openai_adapter.OpenAIAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (anthropic, openai).
        model: Model name (e.g. gpt-4o-mini).
        settings: Application settings (for API keys).
        **kwargs: Additional provider-specific arguments.

    Returns:
        Configured BaseLLMClient instance.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model

    if settings is not None:
        if provider == "anthropic":
            init_kwargs.setdefault("api_key", settings.anthropic_api_key)
        elif provider == "openai":
            init_kwargs.setdefault("api_key", settings.openai_api_key)

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def create_component_client(component: str, settings: Settings) -> BaseLLMClient:
    """Resolve the provider:model for a component and build its client."""
    assignment = resolve_llm(component, settings)
    logger.debug(
        "LLM for %s: %s (source=%s)", component, assignment.key, assignment.source
    )
    return create_llm_client(assignment.provider, assignment.model, settings)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseLLMClient.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s → %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
