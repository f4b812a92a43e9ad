# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

MAX_SAMPLE_DOCUMENTS = 5
MAX_QUERY_CATEGORIES = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_category_id() -> str:
    """Short category identifier: cat_ + 8 hex chars."""
    return f"cat_{uuid.uuid4().hex[:8]}"


def normalize_category_name(name: str) -> str:
    """Category names are compared and stored lower-cased."""
    return name.strip().lower()


# === CATEGORIES ===


class Category(BaseModel):
    """Named, described cluster of documents used for query routing."""

    id: str = Field(default_factory=new_category_id)
    name: str
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    embedding: list[float] | None = None
    document_count: int = Field(default=0, ge=0)
    sample_documents: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, v: str) -> str:
        return normalize_category_name(v)

    @field_validator("sample_documents")
    @classmethod
    def _cap_samples(cls, v: list[str]) -> list[str]:
        return v[:MAX_SAMPLE_DOCUMENTS]

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    def embedding_text(self) -> str:
        """Text used to compute the category embedding."""
        return category_embedding_text(self.name, self.description, self.keywords)


def category_embedding_text(name: str, description: str, keywords: list[str]) -> str:
    return f"{name}. {description}. Keywords: {', '.join(keywords)}"


class DiscoveredCategory(BaseModel):
    """A cluster proposed by category discovery, not yet persisted."""

    name: str
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    document_ids: list[str] = Field(default_factory=list)


class CategorySuggestion(BaseModel):
    """Category proposed for a single new document."""

    category: str
    confidence: float
    is_new: bool
    description: str | None = None


class CorpusItem(BaseModel):
    """Document view used by category discovery."""

    id: str
    name: str
    summary: str = ""
    content: str = ""
    topics: list[str] = Field(default_factory=list)
    category: str | None = None

    def summary_or_content(self, limit: int = 500) -> str:
        return (self.summary or self.content or "")[:limit]


# === QUERY CLASSIFICATION ===


class QueryClassification(BaseModel):
    """Routing decision for one query. Ephemeral, never persisted."""

    categories: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    should_search_all: bool = True
    reasoning: str | None = None

    @field_validator("categories")
    @classmethod
    def _limit_categories(cls, v: list[str]) -> list[str]:
        return [normalize_category_name(c) for c in v][:MAX_QUERY_CATEGORIES]

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        return min(max(float(v), 0.0), 1.0)

    @model_validator(mode="after")
    def _empty_means_search_all(self) -> QueryClassification:
        if not self.categories:
            self.should_search_all = True
        return self


class CategoryStats(BaseModel):
    """Corpus coverage overview across categories."""

    total_categories: int
    total_documents: int
    categorized_documents: int
    uncategorized_documents: int
    category_coverage: int
    categories: dict[str, int] = Field(default_factory=dict)
