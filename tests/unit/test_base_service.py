"""Unit tests for BaseService and batching helpers.

This module tests the base service functionality.
"""

import asyncio

import pytest

from solana_insider.services.base_service import BaseService
from solana_insider.utils.batching import chunk_list, process_in_chunks


class TestBaseService:
    """Test suite for BaseService."""

    @pytest.fixture
    def base_service(self):
        """Create a BaseService instance for testing."""
        return BaseService()

    @pytest.mark.asyncio
    async def test_execute_with_fallback_success(self, base_service):
        """Test execute_with_fallback when the coroutine succeeds."""
        # Setup
        async def success_coro():
            return "success"

        # Execute
        result = await base_service.execute_with_fallback(success_coro(), fallback_value="fallback")

        # Verify
        assert result == "success"

    @pytest.mark.asyncio
    async def test_execute_with_fallback_failure(self, base_service):
        """Test execute_with_fallback when the coroutine fails."""
        # Setup
        async def fail_coro():
            raise ValueError("Test error")

        # Execute
        result = await base_service.execute_with_fallback(
            fail_coro(),
            fallback_value=0.5,
            error_message="Liquidity lookup failed"
        )

        # Verify
        assert result == 0.5

    @pytest.mark.asyncio
    async def test_gather_with_concurrency_preserves_order(self, base_service):
        """Test gather_with_concurrency bounds in-flight work and keeps order."""
        in_flight = 0
        peak = 0

        async def process(item):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return item * 2

        result = await base_service.gather_with_concurrency(process, list(range(10)), 3)

        assert result == [i * 2 for i in range(10)]
        assert peak <= 3

    @pytest.mark.asyncio
    async def test_log_timing(self, base_service):
        """Test the timing context manager re-raises failures."""
        async with base_service.log_timing("ok"):
            pass

        with pytest.raises(RuntimeError):
            async with base_service.log_timing("failing"):
                raise RuntimeError("boom")


class TestBatching:
    """Test suite for chunked processing."""

    def test_chunk_list(self):
        assert list(chunk_list([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
        with pytest.raises(ValueError):
            list(chunk_list([1], 0))

    @pytest.mark.asyncio
    async def test_chunks_run_sequentially(self):
        in_flight = 0
        peak = 0

        async def process(item):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return item

        result = await process_in_chunks(process, list(range(120)), chunk_size=50)

        assert result == list(range(120))
        assert peak == 50
