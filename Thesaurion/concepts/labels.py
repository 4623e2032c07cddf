"""Label lookup over a built concept graph.

Maps normalized label text to the concepts carrying that label. The index
is derived from a ConceptGraph and never modified on its own.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .graph import ConceptGraph
from .model import Label

logger = logging.getLogger("THESAURION.Labels")

_WHITESPACE = re.compile(r"\s+")


def normalize_label(text: str) -> str:
    """Trim, collapse whitespace and case-fold label text."""
    return _WHITESPACE.sub(" ", str(text).strip()).casefold()


def normalize_language(language: Optional[str]) -> Optional[str]:
    if language is None:
        return None
    language = str(language).strip().lower()
    return language or None


def language_matches(tag: Optional[str], wanted: Optional[str]) -> bool:
    """Check a label's language tag against a filter.

    No filter matches everything. Untagged labels match any filter. A filter
    of ``en`` also accepts regional subtags such as ``en-gb``.
    """
    if wanted is None or tag is None:
        return True
    tag = tag.lower()
    wanted = wanted.lower()
    return tag == wanted or tag.startswith(wanted + "-")


def filter_labels(labels: Iterable[Label], language: Optional[str]) -> List[Label]:
    return [label for label in labels if language_matches(label.language, language)]


@dataclass(frozen=True)
class LabelMatch:
    """One concept carrying a given label."""
    uri: str
    is_preferred: bool
    language: Optional[str] = None


class LabelIndex:
    """Normalized label text -> concepts having that label."""

    def __init__(self, entries: Dict[str, FrozenSet[LabelMatch]]):
        self._entries = MappingProxyType(entries)

    @classmethod
    def build(cls, graph: ConceptGraph) -> "LabelIndex":
        entries: Dict[str, Set[LabelMatch]] = {}
        for uri, concept in graph.concepts.items():
            for label in concept.pref_labels:
                entries.setdefault(normalize_label(label.text), set()).add(
                    LabelMatch(uri, True, label.language)
                )
            for label in concept.alt_labels:
                entries.setdefault(normalize_label(label.text), set()).add(
                    LabelMatch(uri, False, label.language)
                )
        entries.pop("", None)

        index = cls({key: frozenset(matches) for key, matches in entries.items()})
        logger.info(f"Built label index: {len(index)} distinct labels over {len(graph)} concepts")
        return index

    def matches(self, text: str, language: Optional[str] = None) -> FrozenSet[LabelMatch]:
        """All label matches for ``text``, restricted to ``language`` if given."""
        found = self._entries.get(normalize_label(text), frozenset())
        language = normalize_language(language)
        if language is None:
            return found
        return frozenset(m for m in found if language_matches(m.language, language))

    def lookup(self, text: str, language: Optional[str] = None) -> Set[Tuple[str, bool]]:
        """Set of ``(concept_uri, is_preferred)`` pairs for ``text``."""
        return {(m.uri, m.is_preferred) for m in self.matches(text, language)}

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and normalize_label(text) in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "LabelIndex",
    "LabelMatch",
    "normalize_label",
    "normalize_language",
    "language_matches",
    "filter_labels",
]
