"""Triple extraction from thesaurus documents.

rdflib does the RDF parsing. On top of it this module:
- keeps only the SKOS predicates the expansion engine understands
- recovers from malformed statements in statement-oriented formats
  (Turtle, N3, N-Triples) by re-parsing the document one statement at a
  time and skipping the ones rdflib rejects; a rejected statement that
  spans several subjects is retried one subject at a time
"""

from __future__ import annotations

import bisect
import logging
import re
from typing import Iterator, List, Optional, Tuple

from rdflib import Graph, Literal, URIRef
from rdflib.namespace import RDF, SKOS

from ..concepts.model import RelationKind, Triple
from ..ingestion.source import ThesaurusDocument
from ..utils.errors import ParseError, SourceUnavailable

logger = logging.getLogger("THESAURION.Triples")

STATEMENT_FORMATS = {"turtle", "ttl", "n3", "nt", "ntriples", "nt11"}

PREDICATES = {
    SKOS.prefLabel: RelationKind.PREF_LABEL,
    SKOS.altLabel: RelationKind.ALT_LABEL,
    SKOS.broader: RelationKind.BROADER,
    SKOS.narrower: RelationKind.NARROWER,
    SKOS.related: RelationKind.RELATED,
}

_DIRECTIVE = re.compile(r"(?:@prefix|@base)\b|(?i:prefix|base)\s")
_SPARQL_DIRECTIVE = re.compile(r"(?i:prefix|base)\s")
_OPENERS = "[({"
_CLOSERS = "])}"
_SUBJECT_START = re.compile(r"[^\s#;,.\])}\"']")
_SNIPPET_CHARS = 80


def _skip_comment(text: str, i: int) -> int:
    end = text.find("\n", i)
    return len(text) if end == -1 else end


def _string_end(text: str, i: int) -> Tuple[int, bool]:
    """End of the string literal opening at ``i``.

    Returns ``(index of the closing quote, True)``, or for an unterminated
    literal ``(index where it gives up, False)``. Short strings cannot span
    lines, so they give up at the newline.
    """
    n = len(text)
    quote = text[i]
    if text.startswith(quote * 3, i):
        j = i + 3
        while j < n:
            if text[j] == "\\":
                j += 2
                continue
            if text.startswith(quote * 3, j):
                return j + 2, True
            j += 1
        return n, False
    j = i + 1
    while j < n:
        c = text[j]
        if c == "\\":
            j += 2
            continue
        if c == quote:
            return j, True
        if c == "\n":
            return j, False
        j += 1
    return n, False


def split_statements(text: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, statement)`` for each top-level statement.

    A ``.`` ends a statement only outside IRIs, strings and brackets, and
    only when followed by whitespace, a comment or the end of input.
    SPARQL-style PREFIX/BASE lines end with their IRI, and a statement with
    an unterminated short string ends with that line.
    """
    newlines = [m.start() for m in re.finditer("\n", text)]

    def line_at(pos: int) -> int:
        return bisect.bisect_left(newlines, pos) + 1

    n = len(text)
    i = 0
    start: Optional[int] = None
    depth = 0

    while i < n:
        ch = text[i]
        if start is None:
            if ch.isspace():
                i += 1
                continue
            if ch == "#":
                i = _skip_comment(text, i)
                continue
            start, depth = i, 0
            if _SPARQL_DIRECTIVE.match(text, i):
                end = text.find(">", i)
                end = n - 1 if end == -1 else end
                yield line_at(i), text[i:end + 1]
                start = None
                i = end + 1
                continue

        if ch == "<":
            end = text.find(">", i + 1)
            if end == -1:
                break
            i = end
        elif ch in "\"'":
            end, closed = _string_end(text, i)
            if not closed:
                # the broken literal takes the rest of its line with it, nothing more
                yield line_at(start), text[start:end].rstrip()
                start = None
                i = end
                continue
            i = end
        elif ch == "#":
            i = _skip_comment(text, i)
            continue
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(0, depth - 1)
        elif ch == "." and depth == 0 and (i + 1 == n or text[i + 1].isspace() or text[i + 1] == "#"):
            yield line_at(start), text[start:i + 1]
            start = None
        i += 1

    if start is not None:
        rest = text[start:].strip()
        if rest:
            yield line_at(start), rest


def split_subjects(statement: str, line: int) -> List[Tuple[int, str]]:
    """Cut ``statement`` before every later line that opens a new subject.

    A subject opens at column 0; predicate and object continuation lines
    are indented or start with punctuation. Returns ``(line_number, piece)``.
    """
    pieces: List[Tuple[int, str]] = []
    current: List[str] = []
    first = line
    for offset, text in enumerate(statement.split("\n")):
        if current and _SUBJECT_START.match(text):
            pieces.append((first, "\n".join(current)))
            current, first = [], line + offset
        current.append(text)
    pieces.append((first, "\n".join(current)))
    return [(number, piece) for number, piece in pieces if piece.strip()]


def _snippet(statement: str) -> str:
    flat = " ".join(statement.split())
    if len(flat) > _SNIPPET_CHARS:
        return flat[:_SNIPPET_CHARS - 3] + "..."
    return flat


def _reason(error: Exception) -> str:
    lines = [l.strip() for l in str(error).splitlines() if l.strip()]
    return lines[0] if lines else type(error).__name__


class TripleParser:
    """Turns a thesaurus document into a lazy stream of Triples.

    ``diagnostics`` holds the ParseErrors of the most recent ``parse`` call.
    """

    def __init__(self, fmt: Optional[str] = None):
        self.format = fmt
        self.diagnostics: List[ParseError] = []

    def parse(self, document: ThesaurusDocument) -> Iterator[Triple]:
        """Yield recognized triples from ``document``.

        Raises:
            SourceUnavailable: if a document format without statement
                boundaries (RDF/XML, JSON-LD, ...) fails to parse
        """
        self.diagnostics = []
        fmt = self.format or document.format

        try:
            graph = self._load(document.text, fmt, document.location)
        except Exception as e:
            if fmt not in STATEMENT_FORMATS:
                raise SourceUnavailable(
                    f"Cannot parse thesaurus as {fmt}: {_reason(e)}",
                    {"source": document.location},
                ) from e
            logger.warning(
                f"Thesaurus {document.location or '<stream>'} has syntax errors "
                f"({_reason(e)}); recovering statement by statement"
            )
            yield from self._parse_statements(document.text, fmt, document.location)
        else:
            yield from self._convert(graph)

        if self.diagnostics:
            logger.warning(f"Skipped {len(self.diagnostics)} malformed statement(s)")

    @staticmethod
    def _load(text: str, fmt: str, base: Optional[str]) -> Graph:
        graph = Graph()
        graph.parse(data=text, format=fmt, publicID=base)
        return graph

    def _parse_statements(self, text: str, fmt: str, base: Optional[str]) -> Iterator[Triple]:
        prologue: List[str] = []
        for number, (line, statement) in enumerate(split_statements(text), start=1):
            results = [(line, statement, self._try_load(prologue, statement, fmt, base))]
            pieces = split_subjects(statement, line) if not isinstance(results[0][2], Graph) else []

            if len(pieces) > 1:
                # a statement missing its "." swallows the next subject; try each on its own
                retried = [
                    (piece_line, piece, self._try_load(prologue, piece, fmt, base))
                    for piece_line, piece in pieces
                ]
                if any(isinstance(result, Graph) for _, _, result in retried):
                    results = retried

            for piece_line, piece, result in results:
                if not isinstance(result, Graph):
                    self._report(ParseError(
                        f"Malformed statement: {_reason(result)}",
                        statement=number,
                        line=piece_line,
                        snippet=_snippet(piece),
                    ))
                elif _DIRECTIVE.match(piece):
                    prologue.append(piece)
                else:
                    yield from self._convert(result, number, piece_line)

    def _try_load(self, prologue: List[str], statement: str, fmt: str, base: Optional[str]):
        """The parsed Graph, or the exception rdflib raised for it."""
        try:
            return self._load("\n".join(prologue + [statement]), fmt, base)
        except Exception as e:
            return e

    def _convert(
        self,
        graph: Graph,
        statement: Optional[int] = None,
        line: Optional[int] = None,
    ) -> Iterator[Triple]:
        triples = []
        for s, p, o in graph:
            try:
                triple = self._to_triple(s, p, o)
            except ValueError as e:
                self._report(ParseError(
                    str(e),
                    statement=statement,
                    line=line,
                    snippet=_snippet(f"{s.n3()} {p.n3()} {o.n3()}"),
                ))
                continue
            if triple is not None:
                triples.append(triple)

        triples.sort(key=lambda t: (t.subject, t.predicate.value, t.obj, t.language or ""))
        yield from triples

    @staticmethod
    def _to_triple(s, p, o) -> Optional[Triple]:
        """Map one rdflib triple; None for predicates that are not ours."""
        if p == RDF.type:
            if o != SKOS.Concept:
                return None
            kind = RelationKind.CONCEPT_TYPE
        else:
            kind = PREDICATES.get(p)
            if kind is None:
                return None

        if not isinstance(s, URIRef):
            raise ValueError(f"Subject of {kind.value} is not a concept URI")

        if kind.is_label:
            if not isinstance(o, Literal):
                raise ValueError(f"Object of {kind.value} is not a literal")
            language = o.language.lower() if o.language else None
            return Triple(str(s), kind, str(o), language)

        if not isinstance(o, URIRef):
            raise ValueError(f"Object of {kind.value} is not a concept URI")
        return Triple(str(s), kind, str(o))

    def _report(self, error: ParseError) -> None:
        self.diagnostics.append(error)
        logger.warning(str(error))


__all__ = ["TripleParser", "split_statements", "split_subjects", "STATEMENT_FORMATS", "PREDICATES"]
