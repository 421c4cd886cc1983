"""Search service answering regexp queries over an indexed corpus."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from opentelemetry import trace

from backends.content_fetcher import AbstractContentFetcher
from backends.index import AbstractIndex
from backends.trigram import regexp_query
from core.errors import (
    ContentFetchError,
    EmptyPatternError,
    IndexQueryError,
    MissingPatternError,
    PatternSyntaxError,
    QueryCompilationError,
)
from core.models import FileMatch, SearchReply, SearchRequest
from core.snippets import get_snippets

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MAX_SNIPPETS_PER_FILE = 5


class AbstractSearchService(ABC):
    """Service to search for text in a code repository based on regular expressions."""

    @abstractmethod
    def search(self, request: SearchRequest, timeout: Optional[float] = None) -> SearchReply:
        """Search the corpus.

        Args:
            request: Search request
            timeout: Optional deadline for the whole request, in seconds

        Returns:
            Files with at least one matching snippet, in index order

        Raises:
            CodeSearchError: If the request cannot be answered
        """
        pass


class LocalSearchService(AbstractSearchService):
    """Searches a local trigram index, reading file contents from a content service."""

    def __init__(
        self,
        index: AbstractIndex,
        content_fetcher: AbstractContentFetcher,
        max_snippets: int = MAX_SNIPPETS_PER_FILE,
    ) -> None:
        """Initialize the search service.

        Args:
            index: Trigram index of the corpus
            content_fetcher: Source of file contents
            max_snippets: Maximum number of snippets reported per file
        """
        self.index = index
        self.content_fetcher = content_fetcher
        self.max_snippets = max_snippets

    def _read_file_contents(self, ticket: str, deadline: Optional[float]) -> bytes:
        timeout = None
        if deadline is not None:
            timeout = deadline - time.monotonic()
            if timeout <= 0:
                raise ContentFetchError("Search in file contents failed: deadline exceeded")
        try:
            return self.content_fetcher.get_content(ticket, timeout=timeout)
        except ContentFetchError as exc:
            raise ContentFetchError(f"Search in file contents failed: {exc}") from exc

    def search(self, request: SearchRequest, timeout: Optional[float] = None) -> SearchReply:
        if request.regexp is None:
            raise MissingPatternError("No search regexp provided.")
        try:
            matcher = request.regexp.compile()
        except (EmptyPatternError, PatternSyntaxError) as exc:
            raise QueryCompilationError(f"Search regexp compilation error: {exc}") from exc

        deadline = None if timeout is None else time.monotonic() + timeout

        with tracer.start_as_current_span("CodeSearch:search") as span:
            span.set_attribute("codesearch.expr", matcher.expr)

            file_ids = self.index.posting_query(regexp_query(matcher.syntax))
            if deadline is not None and time.monotonic() >= deadline:
                raise IndexQueryError("Posting query failed: deadline exceeded")
            span.set_attribute("codesearch.candidates", len(file_ids))
            logger.info(f"Search regexp {matcher.expr!r}: {len(file_ids)} candidate files")

            reply = SearchReply()
            for file_id in file_ids:
                filename = self.index.name(file_id)
                data = self._read_file_contents(filename, deadline)
                snippets = get_snippets(data, matcher, self.max_snippets)
                if snippets:
                    reply.match.append(FileMatch(filename=filename, snippet=snippets))

            span.set_attribute("codesearch.matches", len(reply.match))
            return reply
