# tests/integration/conftest.py — v8
"""Shared fixtures for end-to-end tests.

Wires a full KnowledgeRouter over in-memory stores, a fake embedder, a
fake clock and scripted completion clients. No network or containers.
"""

from __future__ import annotations

import pytest

from kbroute.api.facade import KnowledgeRouter


@pytest.fixture
def build_router(settings, clock, category_store, document_store, embedder, llm_factory):
    """Factory: router with optional scripted classifier/discovery/suggester replies."""
    routers: list[KnowledgeRouter] = []

    def _build(classifier=(), discovery=(), suggester=(), **overrides):
        router = KnowledgeRouter.from_settings(
            settings,
            embedder=overrides.pop("embedder", embedder),
            classifier_llm=llm_factory(*classifier) if classifier else llm_factory("{}"),
            discovery_llm=llm_factory(*discovery) if discovery else llm_factory("{}"),
            suggester_llm=llm_factory(*suggester) if suggester else llm_factory("{}"),
            category_store=overrides.pop("category_store", category_store),
            document_store=overrides.pop("document_store", document_store),
            clock=clock,
            **overrides,
        )
        routers.append(router)
        return router

    return _build
