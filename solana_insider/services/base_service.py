"""
Base service class for Solana Insider services.

This module provides a base class for all services, with common
functionality for degraded sub-fetches, bounded fan-out, and timing logs.
"""

import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from solana_insider.utils.batching import gather_with_concurrency, process_in_chunks

T = TypeVar('T')
R = TypeVar('R')


class BaseService:
    """
    Base service class with common functionality.

    This class provides:
    - Fallbacks for sub-fetches that degrade instead of failing
    - Bounded concurrency helpers
    - Timing logs
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the base service.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute_with_fallback(
        self,
        coro: Awaitable[T],
        fallback_value: T,
        error_message: str = "Operation failed"
    ) -> T:
        """
        Await a coroutine, returning ``fallback_value`` if it raises.

        Args:
            coro: The coroutine to await
            fallback_value: Value returned on failure
            error_message: Message logged on failure

        Returns:
            The coroutine's result or the fallback value
        """
        try:
            return await coro
        except Exception as e:
            self.logger.warning(f"{error_message}: {str(e)}; using fallback {fallback_value!r}")
            return fallback_value

    async def gather_with_concurrency(
        self,
        processor: Callable[[T], Awaitable[R]],
        items: Sequence[T],
        concurrency: int
    ) -> List[R]:
        """Run ``processor`` over ``items`` with at most ``concurrency`` in flight."""
        return await gather_with_concurrency(processor, items, concurrency)

    async def process_in_chunks(
        self,
        processor: Callable[[T], Awaitable[Any]],
        items: Sequence[T],
        chunk_size: int
    ) -> List[Any]:
        """Run ``processor`` over ``items`` in sequential fixed-size chunks."""
        return await process_in_chunks(processor, items, chunk_size)

    def log_timing(self, operation_name: str) -> "TimingContextManager":
        """
        Create a context manager to log timing information.

        Args:
            operation_name: Name of the operation

        Returns:
            Timing context manager
        """
        return TimingContextManager(operation_name, self.logger)


class TimingContextManager:
    """Async context manager to log timing information."""

    def __init__(self, operation_name: str, logger: logging.Logger):
        self.operation_name = operation_name
        self.logger = logger
        self.start_time = 0.0

    async def __aenter__(self) -> "TimingContextManager":
        self.start_time = time.time()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed = time.time() - self.start_time
        if exc_val is not None:
            self.logger.error(
                f"{self.operation_name} failed after {elapsed:.2f}s: {str(exc_val)}"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {elapsed:.2f}s")
