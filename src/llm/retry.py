# src/llm/retry.py — v3
"""Backoff for the offline completion calls (category discovery, suggestion).

Failures are classified from the provider SDK exceptions raised by the
adapters: rate limits, timeouts, dropped connections and 5xx/overloaded
responses are retried; bad requests, auth failures and anything unknown
fail at once. A rate limit that carries ``retry-after`` waits at least
that long. The query classifier does not go through here; its cascade
already ends in a fallback.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import anthropic
import openai

logger = logging.getLogger(__name__)

RATE_LIMIT = "rate_limit"
TIMEOUT = "timeout"
CONNECTION = "connection"
SERVER_ERROR = "server_error"
FATAL = "fatal"

_TIMEOUT_ERRORS: tuple[type[BaseException], ...] = (
    openai.APITimeoutError,
    anthropic.APITimeoutError,
    asyncio.TimeoutError,
    TimeoutError,
)
# Timeouts subclass the connection errors in both SDKs; check them first.
_CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
)
_STATUS_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIStatusError,
    anthropic.APIStatusError,
)


class LLMRetryExhausted(Exception):
    """A completion call failed for good (retries spent or not retryable)."""

    def __init__(self, component: str, error_type: str, attempts: int, last_error: Exception):
        self.component = component
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{component}: {error_type} after {attempts} attempt(s): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Backoff for one error type."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    max_delay_s: float = 60.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    RATE_LIMIT: RetryConfig(max_retries=3, base_delay_s=2.0),
    TIMEOUT: RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    CONNECTION: RetryConfig(max_retries=2, base_delay_s=1.0),
    SERVER_ERROR: RetryConfig(max_retries=3, base_delay_s=5.0),
}


def classify_error(error: BaseException) -> str:
    """Map a provider exception to a retry error type."""
    if isinstance(error, _TIMEOUT_ERRORS):
        return TIMEOUT
    if isinstance(error, _CONNECTION_ERRORS):
        return CONNECTION
    if isinstance(error, _STATUS_ERRORS):
        status = error.status_code
        if status == 429:
            return RATE_LIMIT
        if status == 408:
            return TIMEOUT
        # 529 is Anthropic's "overloaded".
        if status >= 500:
            return SERVER_ERROR
    return FATAL


def retry_after_s(error: BaseException) -> float | None:
    """Seconds the provider asked us to wait, from the ``retry-after`` header."""
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def _compute_delay(config: RetryConfig, attempt: int, floor_s: float | None = None) -> float:
    """Delay before retry ``attempt`` (0-based), capped at ``max_delay_s``."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    if floor_s is not None:
        delay = max(delay, floor_s)
    return min(delay, config.max_delay_s)


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    component: str = "unknown",
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Await ``fn(*args, **kwargs)``, retrying transient provider failures.

    Args:
        fn: Async callable, usually ``BaseLLMClient.complete_prompt``.
        component: Component name for logs and the raised error.
        retry_configs: Backoff per error type. Types missing from the mapping
            are not retried; ``{}`` disables retries.

    Raises:
        LLMRetryExhausted: On a non-retryable error or once retries run out.
    """
    configs = DEFAULT_RETRY_CONFIGS if retry_configs is None else retry_configs
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            attempts += 1
            error_type = classify_error(e)
            config = configs.get(error_type)
            if config is None or attempts > config.max_retries:
                raise LLMRetryExhausted(component, error_type, attempts, e) from e

            floor = retry_after_s(e) if error_type == RATE_LIMIT else None
            delay = _compute_delay(config, attempts - 1, floor)
            logger.warning(
                "%s: %s (attempt %d/%d), retrying in %.1fs",
                component, error_type, attempts, config.max_retries, delay,
            )
            await asyncio.sleep(delay)
