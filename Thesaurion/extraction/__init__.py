from .triples import TripleParser, split_statements

__all__ = ["TripleParser", "split_statements"]
