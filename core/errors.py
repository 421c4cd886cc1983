"""Errors raised by the code search pipeline."""


class CodeSearchError(Exception):
    """Base class for errors that abort a search request."""


class MissingPatternError(CodeSearchError):
    """The request carried no regexp specification."""


class EmptyPatternError(CodeSearchError):
    """The regexp specification had an empty expression."""


class PatternSyntaxError(CodeSearchError):
    """The expression could not be parsed."""


class QueryCompilationError(CodeSearchError):
    """Wraps pattern errors raised while compiling a request."""


class IndexQueryError(CodeSearchError):
    """The trigram index could not answer a query."""


class ContentFetchError(CodeSearchError):
    """File content could not be retrieved from the content service."""
