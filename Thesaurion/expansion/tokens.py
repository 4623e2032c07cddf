"""Token stream integration.

Any tokenizer can feed tokens through a TokenExpander: each input token is
passed on unchanged, followed by its expansion terms at the same position,
so an indexer treats them as synonyms of the original token.
"""

from __future__ import annotations

from typing import Callable, Iterable, Iterator, NamedTuple, Tuple, Union

from .engine import ExpansionResult

TOKEN_TYPE_WORD = "word"
TOKEN_TYPE_EXPANSION = "SKOS"

TokenInput = Union[str, Tuple[str, int]]


class ExpandedToken(NamedTuple):
    term: str
    position: int
    type: str = TOKEN_TYPE_WORD

    @property
    def is_expansion(self) -> bool:
        return self.type == TOKEN_TYPE_EXPANSION


class TokenExpander:
    """Injects expansion terms into a token stream."""

    def __init__(self, expand: Callable[[str], ExpansionResult]):
        self.expand = expand

    def expand_stream(self, tokens: Iterable[TokenInput]) -> Iterator[ExpandedToken]:
        """Yield each token followed by its expansions at the same position.

        ``tokens`` holds plain strings (positions counted from 0) or
        ``(term, position)`` pairs from a tokenizer that tracks positions.
        """
        position = -1
        for token in tokens:
            if isinstance(token, str):
                term = token
                position += 1
            else:
                term, position = token

            yield ExpandedToken(term, position)
            for expansion in self.expand(term):
                yield ExpandedToken(expansion, position, TOKEN_TYPE_EXPANSION)


__all__ = ["TokenExpander", "ExpandedToken", "TOKEN_TYPE_WORD", "TOKEN_TYPE_EXPANSION"]
