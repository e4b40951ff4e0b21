"""
Retry wrapper for calls to the AI provider.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_retry(
    fn: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """
    Await ``fn()`` up to ``retries`` times.

    After the n-th failed attempt (counting from zero) the wrapper sleeps
    ``delay * (n + 1)`` seconds. The last exception is re-raised once all
    attempts are used up.
    """
    if retries < 1:
        raise ValueError("retries must be at least 1")

    for attempt in range(retries):
        try:
            return await fn()
        except retry_on as e:
            if attempt == retries - 1:
                raise
            wait = delay * (attempt + 1)
            logger.warning(
                "Attempt %d/%d failed (%s); retrying in %.1fs",
                attempt + 1,
                retries,
                e,
                wait,
            )
            await asyncio.sleep(wait)

    raise RuntimeError("unreachable")
