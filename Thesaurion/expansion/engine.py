"""Term expansion over a built thesaurus.

Given a token (a concept URI or a label) the engine finds the matching seed
concepts and collects expansion terms:

- LABELS: the seeds' own preferred and alternative labels
- BROADER / NARROWER / RELATED: preferred labels of concepts reached by a
  breadth-first walk along those relations, up to ``depth`` hops

All seeds share one visited set, so a concept is reached at most once per
call even when the relations form cycles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple, Union

from ..concepts.graph import ConceptGraph
from ..concepts.labels import LabelIndex, filter_labels, normalize_label, normalize_language
from ..concepts.model import RelationKind
from ..utils.errors import GraphInconsistentError

logger = logging.getLogger("THESAURION.Expansion")

DEFAULT_MAX_DEPTH = 2


class TokenKind(Enum):
    """How the input token identifies concepts."""
    URI = "uri"
    LABEL = "label"

    @classmethod
    def parse(cls, value: Union["TokenKind", str]) -> "TokenKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown token kind: {value!r} (expected 'uri' or 'label')") from None


class ExpansionType(Flag):
    """Which terms an expansion contributes. Combine with ``|``."""
    LABELS = auto()
    BROADER = auto()
    NARROWER = auto()
    RELATED = auto()

    @classmethod
    def parse(cls, value: Union["ExpansionType", str, Iterable[str]]) -> "ExpansionType":
        """Accept a member, a name, ``"labels,broader"`` or an iterable of names."""
        if isinstance(value, cls):
            return value
        names = value.split(",") if isinstance(value, str) else list(value)
        result = cls(0)
        for name in names:
            if isinstance(name, cls):
                result |= name
                continue
            key = str(name).strip().upper()
            if not key:
                continue
            try:
                result |= cls[key]
            except KeyError:
                raise ValueError(f"Unknown expansion type: {name!r}") from None
        return result

    def relation_kinds(self) -> List[RelationKind]:
        kinds = []
        if self & ExpansionType.BROADER:
            kinds.append(RelationKind.BROADER)
        if self & ExpansionType.NARROWER:
            kinds.append(RelationKind.NARROWER)
        if self & ExpansionType.RELATED:
            kinds.append(RelationKind.RELATED)
        return kinds


@dataclass(frozen=True)
class ExpansionRequest:
    """One expansion call. Hashable; used as the cache key."""
    token: str
    kind: TokenKind = TokenKind.LABEL
    types: ExpansionType = ExpansionType.LABELS
    depth: int = 1
    language: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.token, str):
            raise ValueError(f"Token must be a string, got {type(self.token).__name__}")
        if isinstance(self.depth, bool) or not isinstance(self.depth, int) or self.depth < 0:
            raise ValueError(f"Depth must be a non-negative integer, got {self.depth!r}")
        object.__setattr__(self, "kind", TokenKind.parse(self.kind))
        object.__setattr__(self, "types", ExpansionType.parse(self.types))
        object.__setattr__(self, "language", normalize_language(self.language))
        if not self.types:
            raise ValueError("At least one expansion type is required")


@dataclass(frozen=True)
class ExpansionResult:
    """Distinct expansion terms for one request.

    ``terms`` is in a deterministic order, but callers should treat it as a
    set. ``visited`` lists the non-seed concepts reached by the walk.
    """
    token: str
    terms: Tuple[str, ...] = ()
    seeds: Tuple[str, ...] = ()
    visited: Tuple[str, ...] = ()

    def as_set(self) -> FrozenSet[str]:
        return frozenset(self.terms)

    def __iter__(self) -> Iterator[str]:
        return iter(self.terms)

    def __len__(self) -> int:
        return len(self.terms)

    def __contains__(self, term: object) -> bool:
        if not isinstance(term, str):
            return False
        wanted = normalize_label(term)
        return any(normalize_label(t) == wanted for t in self.terms)


class _TermCollector:
    """Unions terms, de-duplicated by normalized text, first casing wins."""

    def __init__(self, exclude: str):
        self._exclude = normalize_label(exclude)
        self._seen: Set[str] = set()
        self.terms: List[str] = []

    def add(self, text: str, is_seed_label: bool = False) -> None:
        key = normalize_label(text)
        if not key or key in self._seen:
            return
        if is_seed_label and key == self._exclude:
            return
        self._seen.add(key)
        self.terms.append(text)


class ExpansionEngine:
    """Pure function of (immutable graph, label index, request)."""

    def __init__(self, graph: ConceptGraph, labels: LabelIndex, max_depth: int = DEFAULT_MAX_DEPTH):
        if max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        self.graph = graph
        self.labels = labels
        self.max_depth = max_depth

    def resolve_seeds(self, request: ExpansionRequest) -> List[str]:
        """Concepts directly matched by the request token, sorted by URI."""
        if request.kind is TokenKind.URI:
            uri = request.token.strip()
            return [uri] if uri in self.graph else []
        return sorted({m.uri for m in self.labels.matches(request.token, request.language)})

    def expand(self, request: ExpansionRequest) -> ExpansionResult:
        seeds = self.resolve_seeds(request)
        if not seeds:
            logger.debug(f"No concept matches {request.kind.value} token {request.token!r}")
            return ExpansionResult(token=request.token)

        depth = request.depth
        if depth > self.max_depth:
            logger.debug(f"Clamping expansion depth {depth} to {self.max_depth}")
            depth = self.max_depth

        collector = _TermCollector(exclude=request.token)

        if depth == 0 or request.types & ExpansionType.LABELS:
            for uri in seeds:
                concept = self.graph.get(uri)
                for label in filter_labels(concept.all_labels(), request.language):
                    collector.add(label.text, is_seed_label=True)

        visited: List[str] = []
        relations = request.types.relation_kinds()
        if depth > 0 and relations:
            visited = self._walk(seeds, relations, depth)
            for uri in visited:
                concept = self.graph.get(uri)
                for label in filter_labels(concept.pref_labels, request.language):
                    collector.add(label.text)

        return ExpansionResult(
            token=request.token,
            terms=tuple(collector.terms),
            seeds=tuple(seeds),
            visited=tuple(visited),
        )

    def _walk(self, seeds: List[str], relations: List[RelationKind], depth: int) -> List[str]:
        """Breadth-first walk from all seeds; returns reached URIs in visit order."""
        seen = set(seeds)
        reached: List[str] = []
        frontier = list(seeds)

        for _ in range(depth):
            next_frontier: List[str] = []
            for uri in frontier:
                for kind in relations:
                    for neighbor in sorted(self.graph.neighbors(uri, kind)):
                        if neighbor in seen:
                            continue
                        if neighbor not in self.graph:
                            raise GraphInconsistentError(
                                "Relation points outside the graph",
                                {"uri": uri, "relation": kind.value, "target": neighbor},
                            )
                        seen.add(neighbor)
                        reached.append(neighbor)
                        next_frontier.append(neighbor)
            if not next_frontier:
                break
            frontier = next_frontier

        return reached


__all__ = [
    "TokenKind",
    "ExpansionType",
    "ExpansionRequest",
    "ExpansionResult",
    "ExpansionEngine",
    "DEFAULT_MAX_DEPTH",
]
