"""
Exponential backoff for rate-limited Gemini calls.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from policast.utils.error_monitoring import MaxRetriesExceededError, is_rate_limit_error

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    base_delay: float = 2.0,
) -> T:
    """
    Await ``operation`` and retry it while the provider reports rate limiting.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        retries: Total number of attempts; values below 1 mean a single attempt
        base_delay: Delay in seconds before the first retry; doubles every attempt

    Returns:
        The operation's result

    Raises:
        MaxRetriesExceededError: every attempt was rate limited
        Exception: any non rate-limit error, unchanged and on the first attempt
    """
    retries = max(1, retries)
    last_error = None
    for attempt in range(retries):
        try:
            return await operation()
        except Exception as e:
            if not is_rate_limit_error(e):
                raise
            last_error = e
            if attempt < retries - 1:
                # Exponential backoff with jitter
                delay = base_delay * (2 ** attempt) + random.uniform(0, 1)
                logger.warning(
                    f"API rate limit hit. Retrying in {round(delay * 1000)}ms... "
                    f"(Attempt {attempt + 1}/{retries})"
                )
                await asyncio.sleep(delay)

    logger.error(f"Rate limited on all {retries} attempts")
    raise MaxRetriesExceededError("Max retries exceeded") from last_error
