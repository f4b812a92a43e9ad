# tests/unit/llm/test_unit_client_factory.py — v1
"""Tests for llm/client_factory.py — provider registry and component clients."""

from __future__ import annotations

import pytest

from kbroute.config.settings import Settings
from kbroute.llm import client_factory
from kbroute.llm.adapters.anthropic_adapter import AnthropicAdapter
from kbroute.llm.adapters.openai_adapter import OpenAIAdapter
from kbroute.llm.client_factory import (
    UnsupportedProviderError,
    create_component_client,
    create_llm_client,
    register_provider,
)


class TestCreateLLMClient:
    def test_openai(self):
        client = create_llm_client("openai", "gpt-4o-mini")
        assert isinstance(client, OpenAIAdapter)
        assert client.provider_name == "openai"

    def test_anthropic_uses_settings_key(self):
        s = Settings(_env_file=None, anthropic_api_key="sk-ant")
        client = create_llm_client("anthropic", "claude-3-5-haiku-latest", s)
        assert isinstance(client, AnthropicAdapter)
        assert client._api_key == "sk-ant"

    def test_unsupported(self):
        with pytest.raises(UnsupportedProviderError, match="ollama"):
            create_llm_client("ollama", "llama3")


class TestCreateComponentClient:
    def test_resolves_component_override(self):
        s = Settings(_env_file=None, llm_query_classifier="anthropic:claude-3-5-haiku-latest")
        client = create_component_client("query_classifier", s)
        assert isinstance(client, AnthropicAdapter)
        assert client._model == "claude-3-5-haiku-latest"

    def test_default(self):
        client = create_component_client("category_discovery", Settings(_env_file=None))
        assert isinstance(client, OpenAIAdapter)


class TestRegisterProvider:
    def test_register(self, monkeypatch):
        monkeypatch.setattr(client_factory, "_PROVIDER_REGISTRY", dict(client_factory._PROVIDER_REGISTRY))
        register_provider("custom", "kbroute.llm.adapters.openai_adapter.OpenAIAdapter")
        assert isinstance(create_llm_client("custom", "m"), OpenAIAdapter)
