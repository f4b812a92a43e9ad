# src/llm/config.py — v2
"""Per-component LLM routing with cascade resolution.

Resolution order:
  1. Per-component env var (LLM_QUERY_CLASSIFIER=anthropic:claude-3-5-haiku-latest)
  2. Default provider + model (LLM_DEFAULT_PROVIDER + LLM_DEFAULT_MODEL)
  3. Hardcoded fallback (openai:gpt-4o-mini)
"""

from __future__ import annotations

from dataclasses import dataclass

from kbroute.config.settings import Settings

_FALLBACK_PROVIDER = "openai"
_FALLBACK_MODEL = "gpt-4o-mini"

COMPONENTS: tuple[str, ...] = (
    "query_classifier",
    "category_discovery",
    "category_suggester",
)


@dataclass(frozen=True)
class LLMAssignment:
    """Resolved LLM provider:model for a component."""

    provider: str
    model: str
    source: str  # "component", "default", or "fallback"

    @property
    def key(self) -> str:
        """Return 'provider:model' string."""
        return f"{self.provider}:{self.model}"


def _parse_assignment(value: str) -> tuple[str, str] | None:
    """Parse 'provider:model' string. Returns None if empty."""
    if not value or ":" not in value:
        return None
    provider, model = value.split(":", 1)
    return (provider.strip(), model.strip())


def resolve_llm(component: str, settings: Settings) -> LLMAssignment:
    """Resolve LLM assignment for a component.

    Args:
        component: Component name (e.g. "query_classifier").
        settings: Application settings.

    Returns:
        Resolved LLMAssignment with provider, model, and resolution source.
    """
    parsed = _parse_assignment(getattr(settings, f"llm_{component}", ""))
    if parsed:
        return LLMAssignment(provider=parsed[0], model=parsed[1], source="component")

    if settings.llm_default_provider and settings.llm_default_model:
        return LLMAssignment(
            provider=settings.llm_default_provider,
            model=settings.llm_default_model,
            source="default",
        )

    return LLMAssignment(
        provider=_FALLBACK_PROVIDER,
        model=_FALLBACK_MODEL,
        source="fallback",
    )


def resolve_all(settings: Settings) -> dict[str, LLMAssignment]:
    """Resolve LLM assignments for all known components."""
    return {comp: resolve_llm(comp, settings) for comp in COMPONENTS}
