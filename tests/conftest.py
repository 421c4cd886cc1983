"""Shared fixtures for the code search tests."""

import pytest

from backends.content_fetcher import FilesystemContentFetcher
from backends.index import CodesearchIndex
from tests.utils import SAMPLE_FILES, write_index


@pytest.fixture
def corpus_dir(tmp_path):
    """Directory holding the sample files."""
    root = tmp_path / "corpus"
    root.mkdir()
    for name, data in SAMPLE_FILES.items():
        (root / name).write_bytes(data)
    return root


@pytest.fixture
def sample_index(tmp_path, corpus_dir):
    """CodesearchIndex over the sample files."""
    path = write_index(tmp_path / "csearchindex", SAMPLE_FILES, roots=[str(corpus_dir)])
    return CodesearchIndex(path)


@pytest.fixture
def filesystem_fetcher(corpus_dir):
    """Content fetcher reading the sample files from disk."""
    return FilesystemContentFetcher(root=str(corpus_dir))
