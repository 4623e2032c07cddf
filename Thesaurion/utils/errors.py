"""Exception taxonomy and retry helpers for Thesaurion."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple, Type, TypeVar

logger = logging.getLogger("THESAURION.Errors")

T = TypeVar("T")


class ThesaurionError(Exception):
    """Base exception for the Thesaurion system.

    ``context`` carries whatever locates the failure (source, line, uri...)
    and is rendered after the message.
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return f"[{type(self).__name__}] {self.message}"
        return f"[{type(self).__name__}] {self.message} (context: {self.context})"


class ConfigurationError(ThesaurionError):
    """Raised when configuration is invalid."""
    pass


class SourceUnavailable(ThesaurionError):
    """Raised when the thesaurus source cannot be opened, read or decoded."""
    pass


class ParseError(ThesaurionError):
    """A single malformed statement. Recorded as a diagnostic, never fatal."""

    def __init__(
        self,
        message: str,
        statement: Optional[int] = None,
        line: Optional[int] = None,
        snippet: str = "",
    ):
        self.statement = statement
        self.line = line
        self.snippet = snippet
        located = {"statement": statement, "line": line, "snippet": snippet}
        super().__init__(message, {k: v for k, v in located.items() if v})


class GraphError(ThesaurionError):
    """Raised when a concept graph cannot be built or is internally broken."""
    pass


class GraphEmptyError(GraphError):
    """The triple stream produced zero concepts."""
    pass


class GraphInconsistentError(GraphError):
    """An internal graph invariant does not hold. Indicates a bug."""
    pass


class ThesaurusNotLoadedError(ThesaurionError):
    """Raised when expansion is requested before a thesaurus was published."""
    pass


@dataclass
class RetryConfig:
    """Exponential backoff settings for remote thesaurus fetches."""
    max_attempts: int = 3
    initial_backoff_s: float = 0.5
    backoff_factor: float = 1.5
    max_backoff_s: float = 30.0

    def __post_init__(self):
        self.max_attempts = max(1, self.max_attempts)
        self.initial_backoff_s = max(0.0, self.initial_backoff_s)
        self.backoff_factor = max(1.0, self.backoff_factor)
        self.max_backoff_s = max(self.initial_backoff_s, self.max_backoff_s)

    def delays(self) -> Iterator[float]:
        """Sleep before each retry; one fewer than ``max_attempts``."""
        delay = self.initial_backoff_s
        for _ in range(self.max_attempts - 1):
            yield delay
            delay = min(delay * self.backoff_factor, self.max_backoff_s)


def retry_with_backoff(
    func: Callable[..., T],
    *args,
    config: Optional[RetryConfig] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    **kwargs,
) -> T:
    """Call ``func`` until it succeeds or attempts run out.

    Only exceptions in ``retry_on`` trigger another attempt; anything else
    propagates immediately. After the last attempt the last error is
    re-raised unchanged.
    """
    config = config or RetryConfig()

    for attempt, delay in enumerate(config.delays(), start=1):
        try:
            return func(*args, **kwargs)
        except retry_on as e:
            if on_retry:
                on_retry(attempt, e)
            logger.warning(f"Attempt {attempt}/{config.max_attempts} failed: {e}; retrying in {delay:.1f}s")
            time.sleep(delay)

    try:
        return func(*args, **kwargs)
    except retry_on as e:
        logger.error(f"Giving up after {config.max_attempts} attempts: {e}")
        raise


__all__ = [
    "ThesaurionError",
    "ConfigurationError",
    "SourceUnavailable",
    "ParseError",
    "GraphError",
    "GraphEmptyError",
    "GraphInconsistentError",
    "ThesaurusNotLoadedError",
    "RetryConfig",
    "retry_with_backoff",
]
