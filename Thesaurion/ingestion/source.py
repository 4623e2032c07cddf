"""Thesaurus source access.

A source is a filesystem path, an open stream, or an http(s) URL. Whatever
it is, it is read fully into a ThesaurusDocument before parsing starts, so
an unreadable source fails the load before any graph work is done.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlparse

import requests
from rdflib.util import guess_format

from ..utils.errors import RetryConfig, SourceUnavailable, retry_with_backoff

logger = logging.getLogger("THESAURION.Source")

DEFAULT_FORMAT = "turtle"
DEFAULT_USER_AGENT = "thesaurion/0.1 (+thesaurus loader)"

SourceLike = Union[str, Path, Any]


@dataclass(frozen=True)
class ThesaurusDocument:
    """Raw thesaurus text plus what is known about where it came from."""
    text: str
    format: str
    location: Optional[str] = None

    @property
    def fingerprint(self) -> str:
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()


def _is_url(value: str) -> bool:
    return urlparse(value).scheme in ("http", "https")


def resolve_format(location: Optional[str], fmt: Optional[str] = None) -> str:
    """Explicit format, else a guess from the file extension, else turtle."""
    if fmt:
        return fmt
    if location:
        guessed = guess_format(urlparse(location).path if _is_url(location) else location)
        if guessed:
            return guessed
    return DEFAULT_FORMAT


def _fetch_url(url: str, timeout_s: float) -> str:
    headers = {
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": "text/turtle, text/n3, application/n-triples, application/rdf+xml;q=0.9, */*;q=0.1",
    }
    response = requests.get(url, headers=headers, timeout=timeout_s, allow_redirects=True)
    response.raise_for_status()
    if response.encoding is None:
        response.encoding = response.apparent_encoding or "utf-8"
    return response.text or ""


def _read_stream(stream: Any) -> str:
    data = stream.read()
    if isinstance(data, bytes):
        return data.decode("utf-8")
    return data


def read_source(
    source: SourceLike,
    fmt: Optional[str] = None,
    *,
    timeout_s: float = 30.0,
    retries: int = 3,
) -> ThesaurusDocument:
    """Read a thesaurus source completely.

    Args:
        source: Path, URL or readable stream
        fmt: Serialization format (rdflib name); guessed when omitted
        timeout_s: HTTP timeout per attempt
        retries: HTTP attempts before giving up

    Raises:
        SourceUnavailable: if the source is missing, unreadable, undecodable or empty
    """
    if source is None:
        raise SourceUnavailable("No thesaurus source configured")

    location: Optional[str] = None
    try:
        if isinstance(source, (str, Path)):
            location = str(source)
            if isinstance(source, str) and _is_url(source):
                text = retry_with_backoff(
                    _fetch_url,
                    source,
                    timeout_s,
                    config=RetryConfig(max_attempts=retries),
                    retry_on=(requests.ConnectionError, requests.Timeout),
                )
            else:
                text = Path(source).read_text(encoding="utf-8")
        elif hasattr(source, "read"):
            location = getattr(source, "name", None)
            location = str(location) if isinstance(location, (str, Path)) else None
            text = _read_stream(source)
        else:
            raise SourceUnavailable(
                f"Unsupported thesaurus source type: {type(source).__name__}"
            )
    except SourceUnavailable:
        raise
    except (OSError, UnicodeDecodeError, requests.RequestException) as e:
        raise SourceUnavailable(
            f"Cannot read thesaurus source: {e}",
            {"source": location or repr(source)},
        ) from e

    if not text or not text.strip():
        raise SourceUnavailable("Thesaurus source is empty", {"source": location or repr(source)})

    document = ThesaurusDocument(text=text, format=resolve_format(location, fmt), location=location)
    logger.info(
        f"Read thesaurus source {location or '<stream>'} "
        f"({len(text)} chars, format={document.format})"
    )
    return document


__all__ = ["ThesaurusDocument", "read_source", "resolve_format", "DEFAULT_FORMAT"]
