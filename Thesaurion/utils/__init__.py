from .errors import (
    ConfigurationError,
    GraphEmptyError,
    GraphError,
    GraphInconsistentError,
    ParseError,
    SourceUnavailable,
    ThesaurionError,
    ThesaurusNotLoadedError,
)

__all__ = [
    "ConfigurationError",
    "GraphEmptyError",
    "GraphError",
    "GraphInconsistentError",
    "ParseError",
    "SourceUnavailable",
    "ThesaurionError",
    "ThesaurusNotLoadedError",
]
