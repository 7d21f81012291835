"""Caller-side retry policy for gateway calls.

The gateway client never retries on its own. Callers that want retries wrap a
call with :func:`retry_recoverable`, which only retries errors classified as
recoverable by :func:`~sei_mcp_gateway.mcp.errors.is_recoverable`.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from ..mcp.errors import is_recoverable

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_recoverable(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 1.0,
    exponential_base: float = 2.0,
    max_delay: float = 30.0,
    jitter_ratio: float = 0.1,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Run ``func`` and retry up to ``attempts`` more times on recoverable errors."""

    if attempts < 0:
        raise ValueError("attempts must not be negative")
    sleeper = sleep or asyncio.sleep
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            if attempt >= attempts or not is_recoverable(exc):
                raise
            backoff = min(delay * (exponential_base ** attempt), max_delay)
            backoff += random.uniform(0, jitter_ratio * backoff)
            attempt += 1
            _LOGGER.warning(
                "Recoverable gateway error (attempt %d/%d): %s; retrying in %.2fs",
                attempt,
                attempts,
                exc,
                backoff,
            )
            await sleeper(backoff)
