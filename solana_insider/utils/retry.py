"""Retry-with-backoff wrapper for upstream calls."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from solana_insider.utils.errors import is_retryable_error

T = TypeVar('T')

logger = logging.getLogger(__name__)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 5,
    initial_delay: float = 1.0,
    operation_name: Optional[str] = None
) -> T:
    """
    Execute an operation, backing off exponentially on rate limits and timeouts.

    ``max_retries`` is the total number of attempts. Each retryable failure
    sleeps ``delay`` seconds and doubles it. Non-retryable failures propagate
    immediately; once attempts are exhausted the last error propagates.

    Args:
        operation: Zero-argument coroutine factory to execute
        max_retries: Maximum number of attempts
        initial_delay: Delay before the first retry in seconds
        operation_name: Name used in log messages

    Returns:
        Result of the operation
    """
    name = operation_name or getattr(operation, "__name__", "operation")
    delay = initial_delay
    attempts = max(max_retries, 1)

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable_error(e) or attempt >= attempts:
                raise
            logger.warning(
                f"{name} failed (attempt {attempt}/{attempts}), retrying in {delay:.2f}s: {str(e)}"
            )
            await asyncio.sleep(delay)
            delay *= 2

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{name} exhausted retries without a result")
