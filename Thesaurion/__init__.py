"""Thesaurion - SKOS thesaurus term expansion for text indexing"""

from __future__ import annotations

__version__ = "0.1.0"

# Concept model
from .concepts.model import Concept, Label, RelationKind, Triple
from .concepts.graph import BuildReport, ConceptGraph
from .concepts.labels import LabelIndex, LabelMatch, normalize_label

# Loading
from .ingestion.source import ThesaurusDocument, read_source
from .extraction.triples import TripleParser

# Expansion
from .expansion.engine import (
    ExpansionEngine,
    ExpansionRequest,
    ExpansionResult,
    ExpansionType,
    TokenKind,
)
from .expansion.cache import ExpansionCache
from .expansion.tokens import ExpandedToken, TokenExpander

# Service
from .core.thesaurus import ThesaurusService, ThesaurusSnapshot, load_thesaurus

# Configuration
from .config.settings import get_config, ThesaurionConfig
from .config.logging_config import setup_logging

# Errors
from .utils.errors import (
    ThesaurionError,
    ConfigurationError,
    SourceUnavailable,
    ParseError,
    GraphError,
    GraphEmptyError,
    GraphInconsistentError,
    ThesaurusNotLoadedError,
)

__all__ = [
    # Version
    "__version__",

    # Concept model
    "Concept",
    "Label",
    "RelationKind",
    "Triple",
    "BuildReport",
    "ConceptGraph",
    "LabelIndex",
    "LabelMatch",
    "normalize_label",

    # Loading
    "ThesaurusDocument",
    "read_source",
    "TripleParser",

    # Expansion
    "ExpansionEngine",
    "ExpansionRequest",
    "ExpansionResult",
    "ExpansionType",
    "TokenKind",
    "ExpansionCache",
    "ExpandedToken",
    "TokenExpander",

    # Service
    "ThesaurusService",
    "ThesaurusSnapshot",
    "load_thesaurus",

    # Configuration
    "get_config",
    "ThesaurionConfig",
    "setup_logging",

    # Errors
    "ThesaurionError",
    "ConfigurationError",
    "SourceUnavailable",
    "ParseError",
    "GraphError",
    "GraphEmptyError",
    "GraphInconsistentError",
    "ThesaurusNotLoadedError",
]
