"""Tests for content fetcher backends."""

import base64
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from backends.content_fetcher import (
    ContentFetcherFactory,
    FilesystemContentFetcher,
    KytheContentFetcher,
)
from core.errors import ContentFetchError


# ─────────────────────────────────────────────────────────────────────────────
# Filesystem
# ─────────────────────────────────────────────────────────────────────────────


def test_filesystem_reads_relative_to_root(filesystem_fetcher):
    assert filesystem_fetcher.get_content("a.go") == b"foo\nbar\nfoobar\n"
    assert filesystem_fetcher.get_content("/a.go") == b"foo\nbar\nfoobar\n"


def test_filesystem_absolute_paths(corpus_dir):
    fetcher = FilesystemContentFetcher()
    assert fetcher.get_content(str(corpus_dir / "a.go")) == b"foo\nbar\nfoobar\n"


def test_filesystem_missing_file(filesystem_fetcher):
    with pytest.raises(ContentFetchError, match="Reading missing.go failed"):
        filesystem_fetcher.get_content("missing.go")


# ─────────────────────────────────────────────────────────────────────────────
# Kythe
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def kythe_fetcher():
    with patch("backends.content_fetcher.requests.Session", return_value=MagicMock()):
        yield KytheContentFetcher("http://kythe.local:8080/", timeout=5)


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


def test_kythe_decorations_request(kythe_fetcher):
    source = b"package main\n"
    kythe_fetcher.session.post.return_value = _response(
        {"source_text": base64.b64encode(source).decode()}
    )

    assert kythe_fetcher.get_content("kythe://corpus?path=main.go") == source
    kythe_fetcher.session.post.assert_called_once_with(
        "http://kythe.local:8080/decorations",
        json={
            "location": {"ticket": "kythe://corpus?path=main.go", "kind": "FILE"},
            "source_text": True,
            "references": False,
        },
        timeout=5,
    )


def test_kythe_timeout_override(kythe_fetcher):
    kythe_fetcher.session.post.return_value = _response({"source_text": ""})
    assert kythe_fetcher.get_content("t", timeout=0.5) == b""
    assert kythe_fetcher.session.post.call_args.kwargs["timeout"] == 0.5


def test_kythe_http_error(kythe_fetcher):
    response = _response({})
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")
    kythe_fetcher.session.post.return_value = response
    with pytest.raises(ContentFetchError, match="Decorations request failed: 500 Server Error"):
        kythe_fetcher.get_content("t")


def test_kythe_connection_error(kythe_fetcher):
    kythe_fetcher.session.post.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(ContentFetchError, match="refused"):
        kythe_fetcher.get_content("t")


def test_kythe_bad_payload(kythe_fetcher):
    kythe_fetcher.session.post.return_value = _response({"source_text": "not base64!"})
    with pytest.raises(ContentFetchError):
        kythe_fetcher.get_content("t")


@pytest.mark.parametrize(
    "payload, message",
    [
        ([], "expected a JSON object, got list"),
        ("source", "expected a JSON object, got str"),
        ({"source_text": None}, "source_text is NoneType"),
        ({"source_text": 42}, "source_text is int"),
    ],
)
def test_kythe_unexpected_payload_shape(kythe_fetcher, payload, message):
    """Well-formed JSON of the wrong shape is a fetch error, not a crash."""
    kythe_fetcher.session.post.return_value = _response(payload)
    with pytest.raises(ContentFetchError, match=f"Decorations request failed: {message}"):
        kythe_fetcher.get_content("t")


def test_kythe_session_per_thread():
    fetcher = KytheContentFetcher("http://kythe.local:8080")
    sessions = {}

    def grab(name):
        sessions[name] = fetcher.session

    workers = [threading.Thread(target=grab, args=(f"worker{i}",)) for i in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert fetcher.session is fetcher.session
    assert sessions["worker0"] is not sessions["worker1"]
    assert fetcher.session not in sessions.values()
    assert all(isinstance(s, requests.Session) for s in sessions.values())


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


def test_factory_kythe():
    with patch("backends.content_fetcher.requests.Session"):
        fetcher = ContentFetcherFactory.create_fetcher("Kythe", endpoint="http://k", timeout=3)
    assert isinstance(fetcher, KytheContentFetcher)
    assert fetcher.endpoint == "http://k"
    assert fetcher.timeout == 3


def test_factory_filesystem(tmp_path):
    fetcher = ContentFetcherFactory.create_fetcher("filesystem", root=str(tmp_path))
    assert isinstance(fetcher, FilesystemContentFetcher)
    assert fetcher.root == tmp_path


def test_factory_unknown_backend():
    with pytest.raises(ValueError, match="Unsupported backend: zoekt"):
        ContentFetcherFactory.create_fetcher("zoekt")
