# src/core/prompts.py — v2
"""Prompt templates shipped under src/prompts/ as str.format templates."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

_PROMPT_DIR = Path(__file__).parent.parent / "prompts"


@lru_cache(maxsize=None)
def load_prompt(template: str) -> str:
    """Load and cache a prompt template by file stem."""
    return (_PROMPT_DIR / f"{template}.txt").read_text(encoding="utf-8")


def render_prompt(template: str, /, **fields: object) -> str:
    """Render ``template`` with ``fields``.

    ``template`` is positional-only so placeholders such as ``{name}`` can be
    passed as keywords.
    """
    return load_prompt(template).format(**fields)
