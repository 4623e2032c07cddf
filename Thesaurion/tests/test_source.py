"""Tests for thesaurus source access."""

import io

import pytest
import requests

from Thesaurion.ingestion import source as source_module
from Thesaurion.ingestion.source import read_source, resolve_format
from Thesaurion.tests.samples import UKAT_TTL
from Thesaurion.utils import errors as errors_module
from Thesaurion.utils.errors import SourceUnavailable

URL = "http://vocab.example.org/ukat.ttl"


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code
        self.encoding = "utf-8"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(errors_module.time, "sleep", lambda seconds: None)


class TestResolveFormat:

    def test_explicit_format_wins(self):
        assert resolve_format("thesaurus.rdf", "turtle") == "turtle"

    def test_guessed_from_extension(self):
        assert resolve_format("thesaurus.rdf") == "xml"
        assert resolve_format("thesaurus.nt") == "nt"
        assert resolve_format("http://example.org/vocab.ttl?version=2") == "turtle"

    def test_default_is_turtle(self):
        assert resolve_format(None) == "turtle"
        assert resolve_format("thesaurus") == "turtle"


class TestReadSource:
    """Test reading paths, streams and URLs."""

    def test_path(self, ukat_file):
        document = read_source(ukat_file)
        assert document.text == UKAT_TTL
        assert document.format == "turtle"
        assert document.location == str(ukat_file)

    def test_stream(self):
        document = read_source(io.BytesIO(UKAT_TTL.encode("utf-8")), "turtle")
        assert document.text == UKAT_TTL
        assert document.location is None

    def test_fingerprint_tracks_content(self):
        a = read_source(io.StringIO(UKAT_TTL))
        b = read_source(io.StringIO(UKAT_TTL))
        c = read_source(io.StringIO(UKAT_TTL + "\n# changed\n"))
        assert a.fingerprint == b.fingerprint
        assert a.fingerprint != c.fingerprint

    @pytest.mark.parametrize("content", ["", "  \n\t"])
    def test_empty_stream(self, content):
        with pytest.raises(SourceUnavailable):
            read_source(io.StringIO(content))

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "latin1.ttl"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(SourceUnavailable):
            read_source(path)

    def test_unsupported_type(self):
        with pytest.raises(SourceUnavailable):
            read_source(42)

    def test_none(self):
        with pytest.raises(SourceUnavailable):
            read_source(None)

    def test_url(self, monkeypatch):
        calls = []

        def fake_get(url, **kwargs):
            calls.append((url, kwargs))
            return FakeResponse(UKAT_TTL)

        monkeypatch.setattr(source_module.requests, "get", fake_get)
        document = read_source(URL, timeout_s=5)

        assert document.text == UKAT_TTL
        assert document.format == "turtle"
        assert document.location == URL
        assert calls[0][1]["timeout"] == 5
        assert "User-Agent" in calls[0][1]["headers"]

    def test_url_retried_on_connection_error(self, monkeypatch, no_sleep):
        attempts = []

        def flaky_get(url, **kwargs):
            attempts.append(url)
            if len(attempts) < 3:
                raise requests.ConnectionError("connection refused")
            return FakeResponse(UKAT_TTL)

        monkeypatch.setattr(source_module.requests, "get", flaky_get)
        document = read_source(URL, retries=3)
        assert document.text == UKAT_TTL
        assert len(attempts) == 3

    def test_url_gives_up(self, monkeypatch, no_sleep):
        def down(url, **kwargs):
            raise requests.Timeout("timed out")

        monkeypatch.setattr(source_module.requests, "get", down)
        with pytest.raises(SourceUnavailable):
            read_source(URL, retries=2)

    def test_http_error_not_retried(self, monkeypatch, no_sleep):
        attempts = []

        def not_found(url, **kwargs):
            attempts.append(url)
            return FakeResponse("", status_code=404)

        monkeypatch.setattr(source_module.requests, "get", not_found)
        with pytest.raises(SourceUnavailable):
            read_source(URL)
        assert len(attempts) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
