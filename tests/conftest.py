# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, a deterministic embedder, mock completion
clients, sample categories and in-memory stores. No external
dependencies: all provider I/O is faked.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from kbroute.config.settings import Settings
from kbroute.core.models import Category, CorpusItem
from kbroute.llm.models import LLMResponse
from kbroute.rag.embeddings.base_embedder import BaseEmbedder
from kbroute.storage.memory_store import MemoryCategoryStore, MemoryDocumentStore


# === Helpers ===


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmbedder(BaseEmbedder):
    """Returns preset vectors per text; unknown texts get ``default``."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: list[float] | None = None,
        fail: bool = False,
    ) -> None:
        self.vectors = dict(vectors or {})
        self.default = default or [0.0, 0.0, 1.0]
        self.fail = fail
        self.query_calls: list[str] = []
        self.text_calls: list[list[str]] = []

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.text_calls.append(list(texts))
        if self.fail:
            raise RuntimeError("embedding provider down")
        return [self.vectors.get(t, self.default) for t in texts]

    async def embed_query(self, query: str) -> list[float]:
        self.query_calls.append(query)
        if self.fail:
            raise RuntimeError("embedding provider down")
        return self.vectors.get(query, self.default)

    @property
    def call_count(self) -> int:
        return len(self.query_calls) + len(self.text_calls)

    @property
    def dimensions(self) -> int:
        return len(self.default)

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "fake-embed"


def make_llm(*responses: str | Exception) -> AsyncMock:
    """Mock completion client whose complete_prompt yields ``responses`` in order."""
    client = AsyncMock()
    if len(responses) == 1 and not isinstance(responses[0], Exception):
        client.complete_prompt = AsyncMock(return_value=responses[0])
    else:
        client.complete_prompt = AsyncMock(side_effect=list(responses))
    client.provider_name = "mock"
    return client


# === FIXTURES: Settings / clock ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from any .env, with memory stores."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        cache_root=tmp_path / "cache",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# === FIXTURES: Providers ===


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def llm_factory():
    """Build a mock completion client from a sequence of responses."""
    return make_llm


@pytest.fixture
def embedder_factory():
    return FakeEmbedder


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """Standard mock LLM response."""
    return LLMResponse(
        content='{"categories": [], "confidence": 0.5}',
        input_tokens=100,
        output_tokens=50,
        model="gpt-4o-mini",
        provider="openai",
        latency_ms=500,
    )


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient with default response."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_llm_response)
    client.complete_prompt = AsyncMock(return_value=mock_llm_response.content)
    client.provider_name = "mock"
    return client


# === FIXTURES: Sample data ===


@pytest.fixture
def ssm_category() -> Category:
    return Category(
        id="cat_ssm00001",
        name="SSM Registration",
        description="Company registration with Suruhanjaya Syarikat Malaysia",
        keywords=["ssm", "registration", "company"],
        embedding=[1.0, 0.0, 0.0],
    )


@pytest.fixture
def finance_category() -> Category:
    return Category(
        id="cat_fin00001",
        name="financial reports",
        description="Quarterly and annual financial statements",
        keywords=["revenue", "balance sheet", "audit"],
        embedding=[0.0, 1.0, 0.0],
    )


@pytest.fixture
def sample_categories(ssm_category: Category, finance_category: Category) -> list[Category]:
    return [ssm_category, finance_category]


@pytest.fixture
def sample_corpus() -> list[CorpusItem]:
    return [
        CorpusItem(id="doc_1", name="ssm_form.pdf", summary="SSM company registration form",
                   topics=["ssm", "registration"]),
        CorpusItem(id="doc_2", name="q1_report.pdf", summary="Q1 revenue and audit notes",
                   topics=["finance"]),
        CorpusItem(id="doc_3", name="handbook.md", content="Employee handbook " * 100),
    ]


@pytest.fixture
def category_store(sample_categories: list[Category]) -> MemoryCategoryStore:
    return MemoryCategoryStore(sample_categories)


@pytest.fixture
def empty_category_store() -> MemoryCategoryStore:
    return MemoryCategoryStore()


@pytest.fixture
def document_store(sample_corpus: list[CorpusItem]) -> MemoryDocumentStore:
    return MemoryDocumentStore(sample_corpus)


# === FIXTURES: Temp dirs ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache
