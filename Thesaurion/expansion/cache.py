"""Expansion result caching.

Results are memoized per ExpansionRequest for the lifetime of one published
thesaurus. Eviction (LRU capacity or memory pressure) only costs repeated
work; a cache is never shared between two thesaurus versions.
"""

from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional

import psutil

from .engine import ExpansionRequest, ExpansionResult

logger = logging.getLogger("THESAURION.Cache")


def process_memory_percent() -> float:
    """Share of system memory used by this process."""
    return psutil.Process(os.getpid()).memory_percent()


class ExpansionCache:
    """Thread-safe memo of expansion results with optional LRU bound.

    Concurrent ``get_or_compute`` calls for the same request compute once;
    the other callers wait for that result.
    """

    def __init__(
        self,
        compute: Callable[[ExpansionRequest], ExpansionResult],
        capacity: Optional[int] = None,
        memory_limit_percent: Optional[float] = None,
        pressure_check_interval: int = 256,
    ):
        """Initialize cache.

        Args:
            compute: Function producing a result on a miss (ExpansionEngine.expand)
            capacity: Maximum entries (LRU); None for unbounded
            memory_limit_percent: Evict when the process uses more than this
                share of system memory; None disables the check
            pressure_check_interval: Insertions between memory checks
        """
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be positive or None")
        self.compute = compute
        self.capacity = capacity
        self.memory_limit_percent = memory_limit_percent
        self.pressure_check_interval = max(1, pressure_check_interval)

        self._entries: "OrderedDict[ExpansionRequest, ExpansionResult]" = OrderedDict()
        self._in_flight: Dict[ExpansionRequest, Future] = {}
        self._lock = threading.Lock()
        self._inserts = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, request: ExpansionRequest) -> Optional[ExpansionResult]:
        """Cached result or None; does not compute."""
        with self._lock:
            result = self._entries.get(request)
            if result is not None:
                self._entries.move_to_end(request)
            return result

    def get_or_compute(self, request: ExpansionRequest) -> ExpansionResult:
        with self._lock:
            result = self._entries.get(request)
            if result is not None:
                self._entries.move_to_end(request)
                self.hits += 1
                logger.debug(f"Cache hit: {request.token!r}")
                return result

            pending = self._in_flight.get(request)
            owner = pending is None
            if owner:
                pending = Future()
                self._in_flight[request] = pending
                self.misses += 1
                logger.debug(f"Cache miss: {request.token!r}")

        if not owner:
            return pending.result()

        try:
            result = self.compute(request)
        except BaseException as e:
            with self._lock:
                self._in_flight.pop(request, None)
            pending.set_exception(e)
            raise

        with self._lock:
            self._store(request, result)
            self._in_flight.pop(request, None)
        pending.set_result(result)
        return result

    def _store(self, request: ExpansionRequest, result: ExpansionResult) -> None:
        """Insert under lock and apply eviction policies."""
        self._entries[request] = result
        self._entries.move_to_end(request)
        self._inserts += 1

        if self.capacity is not None:
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self.evictions += 1
                logger.debug(f"Cache evicted oldest entry: {evicted.token!r}")

        if self.memory_limit_percent is not None and self._inserts % self.pressure_check_interval == 0:
            used = process_memory_percent()
            if used > self.memory_limit_percent:
                drop = max(1, len(self._entries) // 2)
                for _ in range(drop):
                    self._entries.popitem(last=False)
                self.evictions += drop
                logger.warning(
                    f"Memory pressure ({used:.1f}% > {self.memory_limit_percent:.1f}%): "
                    f"evicted {drop} cached expansions"
                )

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Cache cleared ({count} entries)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "capacity": self.capacity,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "in_flight": len(self._in_flight),
            }


__all__ = ["ExpansionCache", "process_memory_percent"]
