from .engine import (
    DEFAULT_MAX_DEPTH,
    ExpansionEngine,
    ExpansionRequest,
    ExpansionResult,
    ExpansionType,
    TokenKind,
)
from .cache import ExpansionCache
from .tokens import ExpandedToken, TokenExpander

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ExpansionEngine",
    "ExpansionRequest",
    "ExpansionResult",
    "ExpansionType",
    "TokenKind",
    "ExpansionCache",
    "ExpandedToken",
    "TokenExpander",
]
