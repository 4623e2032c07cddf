"""Shared fixtures for the Thesaurion test suite."""

import os

import pytest

from Thesaurion.concepts.graph import ConceptGraph
from Thesaurion.concepts.labels import LabelIndex
from Thesaurion.concepts.model import RelationKind, Triple
from Thesaurion.expansion.engine import ExpansionEngine
from Thesaurion.tests.samples import (
    ARTILLERY,
    EQUIPMENT,
    MILITARY_EQUIPMENT,
    SPEARHEAD,
    UKAT_TTL,
    WEAPONS,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep THESAURION_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("THESAURION_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def ukat_file(tmp_path):
    path = tmp_path / "ukat_examples.ttl"
    path.write_text(UKAT_TTL, encoding="utf-8")
    return path


@pytest.fixture
def ukat_graph():
    """The UKAT sample as triples, without going through the parser."""
    concept = RelationKind.CONCEPT_TYPE
    pref = RelationKind.PREF_LABEL
    alt = RelationKind.ALT_LABEL
    return ConceptGraph.build([
        Triple(WEAPONS, concept, "skos:Concept"),
        Triple(WEAPONS, pref, "weapons", "en"),
        Triple(WEAPONS, pref, "Waffen", "de"),
        Triple(WEAPONS, alt, "arms", "en"),
        Triple(WEAPONS, alt, "weaponry", "en"),
        Triple(WEAPONS, RelationKind.BROADER, MILITARY_EQUIPMENT),
        Triple(WEAPONS, RelationKind.RELATED, ARTILLERY),
        Triple(MILITARY_EQUIPMENT, pref, "military equipment", "en"),
        Triple(MILITARY_EQUIPMENT, RelationKind.BROADER, EQUIPMENT),
        Triple(EQUIPMENT, pref, "equipment", "en"),
        Triple(SPEARHEAD, pref, "spearhead", "en"),
        Triple(SPEARHEAD, RelationKind.BROADER, WEAPONS),
        Triple(ARTILLERY, pref, "artillery", "en"),
        Triple(ARTILLERY, alt, "cannons"),
    ])


@pytest.fixture
def ukat_labels(ukat_graph):
    return LabelIndex.build(ukat_graph)


@pytest.fixture
def engine(ukat_graph, ukat_labels):
    return ExpansionEngine(ukat_graph, ukat_labels)
