# src/llm/base_client.py — v2
"""Abstract completion-provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from kbroute.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all completion providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> LLMResponse:
        """Text completion."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (anthropic, openai)."""

    async def complete_prompt(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.2,
    ) -> str:
        """Single-turn convenience: one user prompt in, completion text out."""
        response = await self.complete(
            [Message(role="user", content=prompt)],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return response.content
