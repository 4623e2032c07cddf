"""Tests for the concept graph."""

import dataclasses
import random

import pytest

from Thesaurion.concepts.graph import ConceptGraph
from Thesaurion.concepts.model import Label, RelationKind, Triple
from Thesaurion.tests.samples import (
    ARTILLERY,
    EQUIPMENT,
    MILITARY_EQUIPMENT,
    SPEARHEAD,
    WEAPONS,
    make_graph,
)
from Thesaurion.utils.errors import GraphEmptyError

BROADER = RelationKind.BROADER
NARROWER = RelationKind.NARROWER
RELATED = RelationKind.RELATED


class TestGraphBuild:
    """Test building a graph from triples."""

    def test_sample_concepts(self, ukat_graph):
        assert len(ukat_graph) == 5
        weapons = ukat_graph.get(WEAPONS)
        assert weapons.pref_labels == (Label("Waffen", "de"), Label("weapons", "en"))
        assert weapons.alt_labels == {Label("arms", "en"), Label("weaponry", "en")}
        assert weapons.broader == {MILITARY_EQUIPMENT}
        assert weapons.related == {ARTILLERY}

    def test_inverse_edges_repaired(self, ukat_graph):
        assert ukat_graph.neighbors(MILITARY_EQUIPMENT, NARROWER) == {WEAPONS}
        assert ukat_graph.neighbors(WEAPONS, NARROWER) == {SPEARHEAD}
        assert ukat_graph.neighbors(EQUIPMENT, NARROWER) == {MILITARY_EQUIPMENT}
        assert ukat_graph.neighbors(ARTILLERY, RELATED) == {WEAPONS}
        assert ukat_graph.report.inverse_edges_repaired == 4

    def test_inverse_property_on_random_graph(self):
        rng = random.Random(7)
        uris = [f"http://example.org/c{i}" for i in range(40)]
        edges = []
        for _ in range(120):
            s, o = rng.choice(uris), rng.choice(uris)
            edges.append((s, rng.choice([BROADER, NARROWER, RELATED]), o))
        graph = make_graph(*edges)

        for uri in graph:
            for target in graph.neighbors(uri, BROADER):
                assert uri in graph.neighbors(target, NARROWER)
            for target in graph.neighbors(uri, NARROWER):
                assert uri in graph.neighbors(target, BROADER)
            for target in graph.neighbors(uri, RELATED):
                assert uri in graph.neighbors(target, RELATED)
            for kind in (BROADER, NARROWER, RELATED):
                assert uri not in graph.neighbors(uri, kind)
        graph.check_consistency()

    def test_self_loops_dropped(self):
        a = "http://example.org/a"
        graph = make_graph((a, BROADER, a), (a, RELATED, a), labels={a: "alpha"})
        assert graph.neighbors(a, BROADER) == frozenset()
        assert graph.neighbors(a, RELATED) == frozenset()
        assert graph.report.self_loops_dropped == 2

    def test_referenced_concepts_exist(self):
        a, b = "http://example.org/a", "http://example.org/b"
        graph = make_graph((a, BROADER, b))
        assert b in graph
        assert graph.get(b).pref_labels == ()

    def test_empty_stream_raises(self):
        with pytest.raises(GraphEmptyError):
            ConceptGraph.build([])

    def test_neighbors_of_unknown_uri(self, ukat_graph):
        assert ukat_graph.neighbors("http://example.org/missing", BROADER) == frozenset()
        assert ukat_graph.get("http://example.org/missing") is None

    def test_second_pref_label_demoted(self):
        a = "http://example.org/a"
        graph = ConceptGraph.build([
            Triple(a, RelationKind.PREF_LABEL, "first", "en"),
            Triple(a, RelationKind.PREF_LABEL, "second", "en"),
            Triple(a, RelationKind.PREF_LABEL, "first", "en"),
        ])
        concept = graph.get(a)
        assert concept.pref_labels == (Label("first", "en"),)
        assert concept.alt_labels == {Label("second", "en")}
        assert graph.report.demoted_pref_labels == 1

    def test_alt_label_equal_to_pref_dropped(self):
        a = "http://example.org/a"
        graph = ConceptGraph.build([
            Triple(a, RelationKind.PREF_LABEL, "alpha"),
            Triple(a, RelationKind.ALT_LABEL, "alpha"),
            Triple(a, RelationKind.ALT_LABEL, "alef"),
        ])
        assert graph.get(a).alt_labels == {Label("alef")}

    def test_graph_is_read_only(self, ukat_graph):
        with pytest.raises(TypeError):
            ukat_graph.concepts[WEAPONS] = None
        with pytest.raises(dataclasses.FrozenInstanceError):
            ukat_graph.get(WEAPONS).uri = "changed"

    def test_statistics(self, ukat_graph):
        stats = ukat_graph.get_statistics()
        assert stats["num_concepts"] == 5
        assert stats["num_pref_labels"] == 6
        assert stats["num_alt_labels"] == 3
        assert stats["num_edges"]["broader"] == stats["num_edges"]["narrower"] == 3
        assert stats["num_edges"]["related"] == 2


class TestGraphSnapshot:
    """Test JSON snapshot persistence."""

    def test_round_trip(self, ukat_graph, tmp_path):
        path = str(tmp_path / "graph.json")
        ukat_graph.save(path, fingerprint="abc")

        loaded = ConceptGraph.load(path, fingerprint="abc")
        assert loaded is not None
        assert dict(loaded.concepts) == dict(ukat_graph.concepts)

    def test_stale_snapshot_ignored(self, ukat_graph, tmp_path):
        path = str(tmp_path / "graph.json")
        ukat_graph.save(path, fingerprint="abc")
        assert ConceptGraph.load(path, fingerprint="def") is None

    def test_missing_and_corrupt_snapshot(self, tmp_path):
        assert ConceptGraph.load(str(tmp_path / "nope.json")) is None
        corrupt = tmp_path / "corrupt.json"
        corrupt.write_text("{not json", encoding="utf-8")
        assert ConceptGraph.load(str(corrupt)) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
