# src/cache/background.py — v1
"""Supervisor for best-effort background writes.

Tasks are kept referenced until done so the event loop cannot drop them,
and any exception they end with is logged instead of vanishing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Fire-and-forget task set with failure logging."""

    def __init__(self, name: str = "cache") -> None:
        self._name = name
        self._tasks: set[asyncio.Task] = set()
        self.failures = 0

    def spawn(
        self, coro: Coroutine[Any, Any, Any], description: str = ""
    ) -> asyncio.Task | None:
        """Schedule ``coro`` on the running loop.

        Without a running loop the coroutine is closed unrun and None is
        returned.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("No running loop, dropped background task %s", description)
            return None

        task = loop.create_task(coro, name=f"{self._name}:{description}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.failures += 1
            logger.warning("Background task %s failed: %s", task.get_name(), exc)

    async def drain(self) -> None:
        """Wait for every pending task, including ones spawned while waiting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)
