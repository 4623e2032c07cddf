"""Asynchronous helpers for running blocking expansion work."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from typing import Any, Callable, List

logger = logging.getLogger("THESAURION.Async")


async def parallel_map(func: Callable, items: List[Any],
                       max_concurrent: int = 4) -> List[Any]:
    """Map function over items with limited concurrency, preserving order.

    Coroutine functions are awaited; plain functions run in the default
    thread executor.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrent))

    async def bounded_func(item: Any) -> Any:
        async with semaphore:
            if inspect.iscoroutinefunction(func):
                return await func(item)
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, func, item)

    return await asyncio.gather(*[bounded_func(item) for item in items])


def timed_operation(name: str, log_level: int = logging.DEBUG) -> Callable:
    """Decorator to log how long an operation took."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{name} failed after {time.time() - start:.3f}s: {e}")
                raise
            logger.log(log_level, f"{name} completed in {time.time() - start:.3f}s")
            return result
        return wrapper
    return decorator


__all__ = ["parallel_map", "timed_operation"]
