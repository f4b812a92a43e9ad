# src/logging/context.py — v2
"""Contextual logging support — attach query_id, component, stage to log records."""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per query or per mutation.
_query_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "query_id", default=None
)
_component: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "component", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    query_id: str | None = None
    component: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        query_id=_query_id.get(),
        component=_component.get(),
        stage=_stage.get(),
    )


def new_query_id() -> str:
    return uuid.uuid4().hex[:12]


def set_query_context(query_id: str, component: str | None = None) -> None:
    """Set query-level context (called once per classification)."""
    _query_id.set(query_id)
    _component.set(component)


def set_stage(stage: str | None) -> None:
    """Set the current cascade stage."""
    _stage.set(stage)


@contextmanager
def query_context(component: str, query_id: str | None = None) -> Iterator[str]:
    """Scope query_id/component for the duration of one operation.

    Previous values are restored on exit so nested calls do not leak.
    """
    qid = query_id or new_query_id()
    tokens = (
        _query_id.set(qid),
        _component.set(component),
        _stage.set(None),
    )
    try:
        yield qid
    finally:
        _stage.reset(tokens[2])
        _component.reset(tokens[1])
        _query_id.reset(tokens[0])


def clear_context() -> None:
    """Reset all context variables."""
    _query_id.set(None)
    _component.set(None)
    _stage.set(None)
