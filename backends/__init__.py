"""Backend implementations for the trigram index and content fetching."""

from .content_fetcher import (
    AbstractContentFetcher,
    ContentFetcherFactory,
    FilesystemContentFetcher,
    KytheContentFetcher,
)
from .index import AbstractIndex, CodesearchIndex, get_index_path
from .trigram import MATCH_ALL, MATCH_NONE, TrigramQuery, regexp_query

__all__ = [
    "AbstractIndex",
    "CodesearchIndex",
    "get_index_path",
    "TrigramQuery",
    "MATCH_ALL",
    "MATCH_NONE",
    "regexp_query",
    "AbstractContentFetcher",
    "ContentFetcherFactory",
    "KytheContentFetcher",
    "FilesystemContentFetcher",
]
