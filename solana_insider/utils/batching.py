"""Batching utilities for Solana Insider.

This module bounds upstream fan-out: a semaphore-limited gather for fetches
that can all start at once, and sequential fixed-size chunks for per-wallet
enrichment.
"""

import asyncio
from typing import Any, Awaitable, Callable, Iterator, List, Sequence, TypeVar

T = TypeVar('T')  # Input type
R = TypeVar('R')  # Result type


def chunk_list(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of ``items`` with at most ``size`` elements."""
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    for i in range(0, len(items), size):
        yield items[i:i + size]


async def gather_with_concurrency(
    processor: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    concurrency: int = 10
) -> List[R]:
    """
    Process items concurrently with at most ``concurrency`` in flight.

    Args:
        processor: Async function to process each item
        items: Items to process
        concurrency: Maximum number of concurrent tasks

    Returns:
        List of results in the same order as the input items
    """
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def process_with_semaphore(item: T) -> R:
        async with semaphore:
            return await processor(item)

    return list(await asyncio.gather(*[process_with_semaphore(item) for item in items]))


async def process_in_chunks(
    processor: Callable[[T], Awaitable[Any]],
    items: Sequence[T],
    chunk_size: int = 50
) -> List[Any]:
    """
    Process items chunk by chunk; items inside a chunk run concurrently.

    Args:
        processor: Async function to process each item
        items: Items to process
        chunk_size: Number of items processed concurrently

    Returns:
        List of results in the same order as the input items
    """
    results: List[Any] = []
    for chunk in chunk_list(items, chunk_size):
        results.extend(await asyncio.gather(*[processor(item) for item in chunk]))
    return results
