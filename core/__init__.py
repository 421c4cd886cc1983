from .errors import (
    CodeSearchError,
    ContentFetchError,
    EmptyPatternError,
    IndexQueryError,
    MissingPatternError,
    PatternSyntaxError,
    QueryCompilationError,
)
from .models import FileMatch, RegexpSpec, SearchReply, SearchRequest, Snippet
from .regexp import CompiledMatcher, compile_pattern
from .snippets import get_snippets

__all__ = [
    "CompiledMatcher",
    "compile_pattern",
    "get_snippets",
    "RegexpSpec",
    "SearchRequest",
    "SearchReply",
    "FileMatch",
    "Snippet",
    "CodeSearchError",
    "MissingPatternError",
    "EmptyPatternError",
    "PatternSyntaxError",
    "QueryCompilationError",
    "IndexQueryError",
    "ContentFetchError",
]
