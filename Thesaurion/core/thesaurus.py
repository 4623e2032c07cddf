"""Thesaurus service: load, publish and query a thesaurus.

Loading runs read -> parse -> graph -> label index -> engine on the calling
thread and only then publishes the result. Everything a request needs
(graph, index, engine, cache) lives in one immutable ThesaurusSnapshot, so
publishing or reloading is a single reference swap and a request always
sees a cache that belongs to the graph it is reading.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..concepts.graph import ConceptGraph
from ..concepts.labels import LabelIndex
from ..config.settings import ThesaurionConfig
from ..expansion.cache import ExpansionCache
from ..expansion.engine import (
    DEFAULT_MAX_DEPTH,
    ExpansionEngine,
    ExpansionRequest,
    ExpansionResult,
)
from ..expansion.tokens import TokenExpander
from ..extraction.triples import TripleParser
from ..ingestion.source import SourceLike, read_source
from ..utils.async_utils import parallel_map, timed_operation
from ..utils.errors import ParseError, SourceUnavailable, ThesaurusNotLoadedError

logger = logging.getLogger("THESAURION.Service")

CacheFactory = Callable[[Callable[[ExpansionRequest], ExpansionResult]], Optional[ExpansionCache]]


@dataclass(frozen=True)
class ThesaurusSnapshot:
    """One fully built, read-only thesaurus and its expansion cache."""
    graph: ConceptGraph
    labels: LabelIndex
    engine: ExpansionEngine
    cache: Optional[ExpansionCache] = None
    diagnostics: Tuple[ParseError, ...] = ()
    source: Optional[str] = None
    fingerprint: Optional[str] = None
    loaded_at: float = field(default_factory=time.time)

    def expand(self, request: ExpansionRequest) -> ExpansionResult:
        if self.cache is None:
            return self.engine.expand(request)
        return self.cache.get_or_compute(request)


@timed_operation("Thesaurus load", logging.INFO)
def load_thesaurus(
    source: SourceLike,
    fmt: Optional[str] = None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    cache_factory: Optional[CacheFactory] = None,
    snapshot_path: Optional[str] = None,
    timeout_s: float = 30.0,
    retries: int = 3,
) -> ThesaurusSnapshot:
    """Build a complete snapshot from a thesaurus source.

    Raises:
        SourceUnavailable: source missing, unreadable or empty
        GraphEmptyError: source parsed but yielded no concepts
    """
    document = read_source(source, fmt, timeout_s=timeout_s, retries=retries)

    graph = None
    diagnostics: Tuple[ParseError, ...] = ()
    if snapshot_path:
        graph = ConceptGraph.load(snapshot_path, fingerprint=document.fingerprint)

    if graph is None:
        parser = TripleParser()
        graph = ConceptGraph.build(parser.parse(document))
        diagnostics = tuple(parser.diagnostics)
        if snapshot_path:
            try:
                graph.save(snapshot_path, fingerprint=document.fingerprint)
            except OSError as e:
                logger.warning(f"Could not write graph snapshot {snapshot_path}: {e}")

    labels = LabelIndex.build(graph)
    engine = ExpansionEngine(graph, labels, max_depth=max_depth)
    cache = cache_factory(engine.expand) if cache_factory else None

    return ThesaurusSnapshot(
        graph=graph,
        labels=labels,
        engine=engine,
        cache=cache,
        diagnostics=diagnostics,
        source=document.location,
        fingerprint=document.fingerprint,
    )


class ThesaurusService:
    """Holds the published thesaurus and answers expansion requests."""

    def __init__(self, config: Optional[ThesaurionConfig] = None):
        self.config = config or ThesaurionConfig()
        self.config.validate()
        self._snapshot: Optional[ThesaurusSnapshot] = None
        self._source: Optional[SourceLike] = self.config.thesaurus.source
        self._format: Optional[str] = self.config.thesaurus.format
        self._load_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[ThesaurionConfig] = None) -> "ThesaurusService":
        """Create a service and load its configured thesaurus; fails fast."""
        service = cls(config)
        service.load()
        return service

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> ThesaurusSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise ThesaurusNotLoadedError("No thesaurus has been loaded")
        return snapshot

    def _make_cache(self, compute: Callable[[ExpansionRequest], ExpansionResult]) -> Optional[ExpansionCache]:
        cfg = self.config.cache
        if not cfg.enabled:
            return None
        return ExpansionCache(
            compute,
            capacity=cfg.capacity if cfg.eviction == "lru" else None,
            memory_limit_percent=cfg.memory_limit_percent,
            pressure_check_interval=cfg.pressure_check_interval,
        )

    def load(self, source: Optional[SourceLike] = None, fmt: Optional[str] = None) -> ThesaurusSnapshot:
        """Build a new snapshot and publish it.

        On failure the previously published snapshot (if any) stays in
        service and the error propagates.
        """
        source = source if source is not None else self._source
        fmt = fmt or self._format
        cfg = self.config

        with self._load_lock:
            snapshot = load_thesaurus(
                source,
                fmt,
                max_depth=cfg.expansion.max_depth,
                cache_factory=self._make_cache,
                snapshot_path=cfg.thesaurus.snapshot_path,
                timeout_s=cfg.thesaurus.fetch_timeout_s,
                retries=cfg.thesaurus.fetch_retries,
            )
            self._snapshot = snapshot
            if isinstance(source, (str, Path)):
                self._source = source
                self._format = fmt

        logger.info(
            f"Published thesaurus {snapshot.source or '<stream>'}: "
            f"{len(snapshot.graph)} concepts, {len(snapshot.diagnostics)} diagnostics"
        )
        return snapshot

    def reload(self) -> ThesaurusSnapshot:
        """Re-read the last path/URL source; swaps graph and cache together."""
        if not isinstance(self._source, (str, Path)):
            raise SourceUnavailable("No reloadable thesaurus source (path or URL) is known")
        return self.load(self._source, self._format)

    @property
    def diagnostics(self) -> Tuple[ParseError, ...]:
        return self.snapshot.diagnostics

    def request(
        self,
        token: str,
        kind: Optional[Any] = None,
        types: Optional[Any] = None,
        depth: Optional[int] = None,
        language: Optional[str] = None,
    ) -> ExpansionRequest:
        """Build a request, taking unset parameters from configuration."""
        cfg = self.config.expansion
        return ExpansionRequest(
            token=token,
            kind=kind or cfg.token_kind,
            types=types or cfg.expansion_types,
            depth=cfg.depth if depth is None else depth,
            language=language if language is not None else cfg.language,
        )

    def expand(self, token: str, **kwargs: Any) -> ExpansionResult:
        """Expand one token against the published thesaurus."""
        return self.snapshot.expand(self.request(token, **kwargs))

    def expand_many(
        self,
        tokens: Iterable[str],
        max_workers: Optional[int] = None,
        **kwargs: Any,
    ) -> List[ExpansionResult]:
        """Expand tokens on a thread pool; results follow input order."""
        snapshot = self.snapshot
        expansion_requests = [self.request(token, **kwargs) for token in tokens]
        with ThreadPoolExecutor(max_workers=max_workers or self.config.expansion.max_workers) as pool:
            return list(pool.map(snapshot.expand, expansion_requests))

    async def aexpand_many(
        self,
        tokens: Iterable[str],
        max_concurrent: Optional[int] = None,
        **kwargs: Any,
    ) -> List[ExpansionResult]:
        """asyncio variant of ``expand_many``."""
        snapshot = self.snapshot
        expansion_requests = [self.request(token, **kwargs) for token in tokens]
        return await parallel_map(
            snapshot.expand,
            expansion_requests,
            max_concurrent=max_concurrent or self.config.expansion.max_workers,
        )

    def token_expander(self, **kwargs: Any) -> TokenExpander:
        """TokenExpander bound to this service and the given request options."""
        return TokenExpander(lambda term: self.expand(term, **kwargs))

    def stats(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        if snapshot is None:
            return {"loaded": False}
        return {
            "loaded": True,
            "source": snapshot.source,
            "loaded_at": snapshot.loaded_at,
            "graph": snapshot.graph.get_statistics(),
            "labels": len(snapshot.labels),
            "diagnostics": len(snapshot.diagnostics),
            "cache": snapshot.cache.stats() if snapshot.cache else None,
        }


__all__ = ["ThesaurusService", "ThesaurusSnapshot", "load_thesaurus"]
