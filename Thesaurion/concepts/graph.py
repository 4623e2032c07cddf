"""Concept graph built from a thesaurus triple stream.

Features:
- Preferred/alternative labels per concept (one preferred label per language)
- Broader/narrower stored in both directions, related stored symmetrically
- Inverse-edge repair and self-loop removal at build time
- Read-only after build; safe to share between threads
- JSON snapshot save/load
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from logging import getLogger
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Set

from .model import Concept, INVERSE_RELATIONS, Label, RelationKind, Triple
from ..utils.errors import GraphEmptyError, GraphError, GraphInconsistentError

logger = getLogger("THESAURION.Graph")

_RELATION_KINDS = (RelationKind.BROADER, RelationKind.NARROWER, RelationKind.RELATED)


@dataclass
class BuildReport:
    """What happened while building a graph."""
    triples: int = 0
    concepts: int = 0
    self_loops_dropped: int = 0
    inverse_edges_repaired: int = 0
    demoted_pref_labels: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class _ConceptDraft:
    """Mutable concept used only while the graph is being built."""
    uri: str
    pref_labels: Dict[Optional[str], str] = field(default_factory=dict)
    alt_labels: Set[Label] = field(default_factory=set)
    edges: Dict[RelationKind, Set[str]] = field(
        default_factory=lambda: {kind: set() for kind in _RELATION_KINDS}
    )

    def freeze(self) -> Concept:
        prefs = tuple(
            Label(text, language)
            for language, text in sorted(self.pref_labels.items(), key=lambda kv: kv[0] or "")
        )
        # An alt label that repeats a preferred label adds nothing
        alts = frozenset(a for a in self.alt_labels if a not in prefs)
        return Concept(
            uri=self.uri,
            pref_labels=prefs,
            alt_labels=alts,
            broader=frozenset(self.edges[RelationKind.BROADER]),
            narrower=frozenset(self.edges[RelationKind.NARROWER]),
            related=frozenset(self.edges[RelationKind.RELATED]),
        )


class ConceptGraph:
    """Immutable concept graph keyed by concept URI."""

    def __init__(self, concepts: Mapping[str, Concept], report: Optional[BuildReport] = None):
        self._concepts = MappingProxyType(dict(concepts))
        self.report = report or BuildReport(concepts=len(self._concepts))

    @classmethod
    def build(cls, triples: Iterable[Triple]) -> "ConceptGraph":
        """Consume a triple stream and build the graph.

        Raises:
            GraphEmptyError: if no concept results from the stream
            GraphInconsistentError: if inverse-edge repair left the graph broken
        """
        drafts: Dict[str, _ConceptDraft] = {}
        report = BuildReport()

        def draft(uri: str) -> _ConceptDraft:
            if uri not in drafts:
                drafts[uri] = _ConceptDraft(uri)
            return drafts[uri]

        for triple in triples:
            report.triples += 1
            node = draft(triple.subject)
            kind = triple.predicate

            if kind is RelationKind.PREF_LABEL:
                existing = node.pref_labels.get(triple.language)
                if existing is None:
                    node.pref_labels[triple.language] = triple.obj
                elif existing != triple.obj:
                    # Keep the label searchable, but only one can be preferred
                    node.alt_labels.add(Label(triple.obj, triple.language))
                    report.demoted_pref_labels += 1
                    logger.warning(
                        f"Concept {triple.subject} has several preferred labels "
                        f"for language {triple.language!r}; keeping {existing!r}, "
                        f"treating {triple.obj!r} as alternative"
                    )
            elif kind is RelationKind.ALT_LABEL:
                node.alt_labels.add(Label(triple.obj, triple.language))
            elif kind.is_relation:
                if triple.obj == triple.subject:
                    report.self_loops_dropped += 1
                    logger.warning(f"Dropped self-referential {kind.value} edge on {triple.subject}")
                    continue
                node.edges[kind].add(triple.obj)
                draft(triple.obj)

        if not drafts:
            raise GraphEmptyError("Thesaurus produced no concepts", {"triples": report.triples})

        report.inverse_edges_repaired = cls._repair_inverse_edges(drafts)
        concepts = {uri: d.freeze() for uri, d in drafts.items()}
        report.concepts = len(concepts)

        graph = cls(concepts, report)
        graph.check_consistency()
        logger.info(
            f"Built concept graph: {report.concepts} concepts from {report.triples} triples "
            f"({report.inverse_edges_repaired} inverse edges repaired, "
            f"{report.self_loops_dropped} self-loops dropped)"
        )
        return graph

    @staticmethod
    def _repair_inverse_edges(drafts: Dict[str, _ConceptDraft]) -> int:
        """Insert missing broader/narrower inverses and related back-links."""
        repaired = 0
        for uri, node in drafts.items():
            for kind in _RELATION_KINDS:
                inverse = INVERSE_RELATIONS[kind]
                for target in node.edges[kind]:
                    back = drafts[target].edges[inverse]
                    if uri not in back:
                        back.add(uri)
                        repaired += 1
                        logger.debug(f"Repaired edge: {target} --[{inverse.value}]--> {uri}")
        return repaired

    def check_consistency(self) -> None:
        """Verify inverse/symmetric edges and absence of self-loops."""
        for uri, concept in self._concepts.items():
            for kind in _RELATION_KINDS:
                inverse = INVERSE_RELATIONS[kind]
                for target in concept.relations(kind):
                    if target == uri:
                        raise GraphInconsistentError(
                            "Self-loop survived graph build",
                            {"uri": uri, "relation": kind.value},
                        )
                    other = self._concepts.get(target)
                    if other is None or uri not in other.relations(inverse):
                        raise GraphInconsistentError(
                            "Missing inverse edge",
                            {"uri": uri, "relation": kind.value, "target": target},
                        )

    def get(self, uri: str) -> Optional[Concept]:
        return self._concepts.get(uri)

    def neighbors(self, uri: str, kind: RelationKind) -> FrozenSet[str]:
        """URIs linked from ``uri`` by ``kind``; empty for unknown URIs."""
        concept = self._concepts.get(uri)
        if concept is None:
            return frozenset()
        return concept.relations(kind)

    @property
    def concepts(self) -> Mapping[str, Concept]:
        return self._concepts

    def __contains__(self, uri: object) -> bool:
        return uri in self._concepts

    def __len__(self) -> int:
        return len(self._concepts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._concepts)

    def get_statistics(self) -> Dict[str, Any]:
        """Get graph statistics."""
        counts = {kind.value: 0 for kind in _RELATION_KINDS}
        pref = alt = 0
        for concept in self._concepts.values():
            pref += len(concept.pref_labels)
            alt += len(concept.alt_labels)
            for kind in _RELATION_KINDS:
                counts[kind.value] += len(concept.relations(kind))
        return {
            "num_concepts": len(self._concepts),
            "num_pref_labels": pref,
            "num_alt_labels": alt,
            "num_edges": counts,
            "build": self.report.to_dict(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"concepts": [self._concepts[uri].to_dict() for uri in sorted(self._concepts)]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConceptGraph":
        """Rebuild a graph from ``to_dict`` output, re-running all build checks."""
        def triples() -> Iterator[Triple]:
            for item in data.get("concepts", []):
                uri = item["uri"]
                yield Triple(uri, RelationKind.CONCEPT_TYPE, "skos:Concept")
                for label in item.get("pref_labels", []):
                    yield Triple(uri, RelationKind.PREF_LABEL, label["text"], label.get("language"))
                for label in item.get("alt_labels", []):
                    yield Triple(uri, RelationKind.ALT_LABEL, label["text"], label.get("language"))
                for kind in _RELATION_KINDS:
                    for target in item.get(kind.value, []):
                        yield Triple(uri, kind, target)

        return cls.build(triples())

    def save(self, path: str, fingerprint: Optional[str] = None) -> None:
        """Save graph snapshot to a JSON file."""
        data = self.to_dict()
        data["fingerprint"] = fingerprint
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        logger.info(f"Graph snapshot saved to {path}")

    @classmethod
    def load(cls, path: str, fingerprint: Optional[str] = None) -> Optional["ConceptGraph"]:
        """Load a snapshot; returns None if it is missing, stale or unreadable."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable graph snapshot {path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring graph snapshot {path}: not a JSON object")
            return None

        if fingerprint is not None and data.get("fingerprint") != fingerprint:
            logger.info(f"Graph snapshot {path} is stale, rebuilding")
            return None

        try:
            graph = cls.from_dict(data)
        except (KeyError, TypeError, AttributeError, ValueError, GraphError) as e:
            logger.warning(f"Ignoring corrupt graph snapshot {path}: {e!r}")
            return None
        logger.info(f"Graph snapshot loaded from {path}")
        return graph


__all__ = ["ConceptGraph", "BuildReport"]
