"""Tests for thesaurus triple extraction."""

import pytest

from Thesaurion.concepts.graph import ConceptGraph
from Thesaurion.concepts.model import RelationKind, Triple
from Thesaurion.extraction.triples import TripleParser, split_statements, split_subjects
from Thesaurion.ingestion.source import ThesaurusDocument, read_source
from Thesaurion.tests.samples import SPEARHEAD, UKAT_TTL, WEAPONS
from Thesaurion.utils.errors import SourceUnavailable

SKOS = "http://www.w3.org/2004/02/skos/core#"


def turtle(text):
    return ThesaurusDocument(text=text, format="turtle", location=None)


class TestSplitStatements:
    """Test top-level statement splitting."""

    def test_respects_iris_strings_and_comments(self):
        text = (
            '@prefix ex: <http://ex.org/a.b#> .\n'
            'ex:a ex:p "x. y" ; ex:q 1.5 .\n'
            'PREFIX s: <http://s/>\n'
            'ex:b ex:p """multi\nline.""" . # trailing. comment\n'
            'ex:c ex:p [ ex:q "z" ] .'
        )
        statements = list(split_statements(text))
        assert statements == [
            (1, '@prefix ex: <http://ex.org/a.b#> .'),
            (2, 'ex:a ex:p "x. y" ; ex:q 1.5 .'),
            (3, 'PREFIX s: <http://s/>'),
            (4, 'ex:b ex:p """multi\nline.""" .'),
            (6, 'ex:c ex:p [ ex:q "z" ] .'),
        ]

    def test_unterminated_tail_is_still_returned(self):
        statements = list(split_statements('ex:a ex:p "x" .\nex:b ex:p'))
        assert statements[-1] == (2, "ex:b ex:p")

    def test_unterminated_string_ends_at_its_line(self):
        text = 'ex:a ex:p "broken .\nex:b ex:p "two" .\n'
        assert list(split_statements(text)) == [
            (1, 'ex:a ex:p "broken .'),
            (2, 'ex:b ex:p "two" .'),
        ]

    def test_split_subjects_at_column_zero(self):
        statement = 'ex:a ex:p "one"\n    ; ex:q "x"\nex:b ex:p "two" .'
        assert split_subjects(statement, 4) == [
            (4, 'ex:a ex:p "one"\n    ; ex:q "x"'),
            (6, 'ex:b ex:p "two" .'),
        ]

    def test_sample_thesaurus_statement_count(self):
        # three prefixes and five concept blocks
        assert len(list(split_statements(UKAT_TTL))) == 8


class TestTripleParser:
    """Test SKOS triple extraction."""

    def setup_method(self):
        self.parser = TripleParser()

    def test_well_formed_document(self):
        triples = list(self.parser.parse(turtle(UKAT_TTL)))
        assert self.parser.diagnostics == []
        assert Triple(WEAPONS, RelationKind.ALT_LABEL, "arms", "en") in triples
        assert Triple(WEAPONS, RelationKind.PREF_LABEL, "Waffen", "de") in triples
        assert Triple(SPEARHEAD, RelationKind.BROADER, WEAPONS) in triples
        assert Triple(WEAPONS, RelationKind.CONCEPT_TYPE, SKOS + "Concept") in triples

    def test_unrecognized_predicates_ignored(self):
        text = (
            f'@prefix skos: <{SKOS}> .\n'
            '@prefix ex: <http://example.org/> .\n'
            'ex:a a ex:Thing ;\n'
            '    skos:definition "not a label" ;\n'
            '    skos:prefLabel "alpha" .\n'
        )
        triples = list(self.parser.parse(turtle(text)))
        assert triples == [Triple("http://example.org/a", RelationKind.PREF_LABEL, "alpha")]
        assert self.parser.diagnostics == []

    def test_malformed_statement_skipped_with_one_diagnostic(self):
        text = (
            f'@prefix skos: <{SKOS}> .\n'
            '@prefix ex: <http://example.org/> .\n'
            'ex:c1 skos:prefLabel "one" .\n'
            'ex:c4 skos:prefLabel .\n'
            'ex:c2 skos:prefLabel "two" .\n'
            'ex:c3 skos:broader ex:c1 .\n'
        )
        graph = ConceptGraph.build(self.parser.parse(turtle(text)))

        assert set(graph) == {
            "http://example.org/c1",
            "http://example.org/c2",
            "http://example.org/c3",
        }
        assert len(self.parser.diagnostics) == 1
        diagnostic = self.parser.diagnostics[0]
        assert diagnostic.line == 4
        assert diagnostic.statement == 4
        assert "ex:c4" in diagnostic.snippet

    @pytest.mark.parametrize("broken", [
        'ex:c4 skos:prefLabel "broken .',
        'ex:c4 skos:prefLabel "four"',
    ])
    def test_broken_statement_keeps_following_statement(self, broken):
        text = (
            f'@prefix skos: <{SKOS}> .\n'
            '@prefix ex: <http://example.org/> .\n'
            'ex:c1 skos:prefLabel "one" .\n'
            f'{broken}\n'
            'ex:c2 skos:prefLabel "two" .\n'
            'ex:c3 skos:broader ex:c1 .\n'
        )
        graph = ConceptGraph.build(self.parser.parse(turtle(text)))

        assert set(graph) == {
            "http://example.org/c1",
            "http://example.org/c2",
            "http://example.org/c3",
        }
        assert len(self.parser.diagnostics) == 1
        diagnostic = self.parser.diagnostics[0]
        assert diagnostic.line == 4
        assert "ex:c4" in diagnostic.snippet
        assert "ex:c2" not in diagnostic.snippet

    def test_terms_of_wrong_kind_reported(self):
        text = (
            f'@prefix skos: <{SKOS}> .\n'
            '@prefix ex: <http://example.org/> .\n'
            '_:b skos:prefLabel "anonymous" .\n'
            'ex:a skos:prefLabel ex:notALiteral .\n'
            'ex:a skos:broader "not a concept" .\n'
            'ex:a skos:altLabel "kept" .\n'
        )
        triples = list(self.parser.parse(turtle(text)))
        assert triples == [Triple("http://example.org/a", RelationKind.ALT_LABEL, "kept")]
        assert len(self.parser.diagnostics) == 3

    def test_ntriples_recovery_and_language_case(self, tmp_path):
        path = tmp_path / "sample.nt"
        path.write_text(
            f'<http://e/a> <{SKOS}prefLabel> "alpha"@EN .\n'
            f'<http://e/b> <{SKOS}broader> .\n'
            f'<http://e/c> <{SKOS}broader> <http://e/a> .\n',
            encoding="utf-8",
        )
        document = read_source(path)
        assert document.format == "nt"

        triples = list(self.parser.parse(document))
        assert Triple("http://e/a", RelationKind.PREF_LABEL, "alpha", "en") in triples
        assert Triple("http://e/c", RelationKind.BROADER, "http://e/a") in triples
        assert len(self.parser.diagnostics) == 1
        assert self.parser.diagnostics[0].line == 2

    def test_diagnostics_reset_between_parses(self):
        list(self.parser.parse(turtle('@prefix ex: <http://example.org/> .\nex:a ex:b .\n')))
        assert len(self.parser.diagnostics) == 1
        list(self.parser.parse(turtle(UKAT_TTL)))
        assert self.parser.diagnostics == []

    def test_broken_document_format_is_unavailable(self):
        document = ThesaurusDocument(text="<rdf:RDF xmlns:rdf=", format="xml")
        with pytest.raises(SourceUnavailable):
            list(self.parser.parse(document))

    def test_explicit_format_overrides_document(self):
        parser = TripleParser(fmt="turtle")
        document = ThesaurusDocument(text=UKAT_TTL, format="nt")
        assert len(list(parser.parse(document))) > 0
        assert parser.diagnostics == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
