"""Tests for async helpers."""

import asyncio

import pytest

from Thesaurion.utils.async_utils import parallel_map


class TestParallelMap:
    """Test bounded concurrent mapping."""

    def test_coroutine_function_awaited(self):
        async def double(value):
            await asyncio.sleep(0)
            return value * 2

        assert asyncio.run(parallel_map(double, [1, 2, 3], max_concurrent=2)) == [2, 4, 6]

    def test_plain_function_runs_in_executor(self):
        results = asyncio.run(parallel_map(str.upper, ["arms", "weapons"], max_concurrent=1))
        assert results == ["ARMS", "WEAPONS"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
