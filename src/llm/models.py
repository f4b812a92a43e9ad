# src/llm/models.py — v2
"""LLM-specific types: Message, LLMResponse."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class LLMResponse(BaseModel):
    """Normalized response from any completion provider."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int = 0
    raw_response: Any = None
