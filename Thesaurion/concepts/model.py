"""Concept model: relation kinds, triples, labels and concepts.

A thesaurus is a SKOS-style concept scheme. Concepts are addressed by URI
and reference each other by URI only; the graph owns the flat mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, NamedTuple, Optional, Tuple


class RelationKind(Enum):
    """Predicates understood by the thesaurus loader."""
    PREF_LABEL = "prefLabel"
    ALT_LABEL = "altLabel"
    BROADER = "broader"
    NARROWER = "narrower"
    RELATED = "related"
    CONCEPT_TYPE = "type"

    @property
    def is_label(self) -> bool:
        return self in (RelationKind.PREF_LABEL, RelationKind.ALT_LABEL)

    @property
    def is_relation(self) -> bool:
        return self in (RelationKind.BROADER, RelationKind.NARROWER, RelationKind.RELATED)


INVERSE_RELATIONS = {
    RelationKind.BROADER: RelationKind.NARROWER,
    RelationKind.NARROWER: RelationKind.BROADER,
    RelationKind.RELATED: RelationKind.RELATED,
}


class Triple(NamedTuple):
    """One (subject, predicate, object) statement.

    ``obj`` is a concept URI for relation predicates and label text for
    label predicates; ``language`` is only ever set for labels.
    """
    subject: str
    predicate: RelationKind
    obj: str
    language: Optional[str] = None


@dataclass(frozen=True)
class Label:
    """Label text with an optional (lower-cased) language tag."""
    text: str
    language: Optional[str] = None

    def to_dict(self):
        return {"text": self.text, "language": self.language}


def _label_key(label: Label):
    return (label.language or "", label.text)


@dataclass(frozen=True)
class Concept:
    """Single concept in a built thesaurus. Immutable."""
    uri: str
    pref_labels: Tuple[Label, ...] = ()
    alt_labels: FrozenSet[Label] = frozenset()
    broader: FrozenSet[str] = frozenset()
    narrower: FrozenSet[str] = frozenset()
    related: FrozenSet[str] = frozenset()

    def relations(self, kind: RelationKind) -> FrozenSet[str]:
        if kind is RelationKind.BROADER:
            return self.broader
        if kind is RelationKind.NARROWER:
            return self.narrower
        if kind is RelationKind.RELATED:
            return self.related
        return frozenset()

    def all_labels(self) -> List[Label]:
        """Preferred labels first, then alternative labels in sorted order."""
        return list(self.pref_labels) + sorted(self.alt_labels, key=_label_key)

    def to_dict(self):
        return {
            "uri": self.uri,
            "pref_labels": [l.to_dict() for l in self.pref_labels],
            "alt_labels": [l.to_dict() for l in sorted(self.alt_labels, key=_label_key)],
            "broader": sorted(self.broader),
            "narrower": sorted(self.narrower),
            "related": sorted(self.related),
        }


__all__ = ["RelationKind", "INVERSE_RELATIONS", "Triple", "Label", "Concept"]
