"""Snippet extraction from file contents."""

from typing import List

from core.models import Snippet
from core.regexp import CompiledMatcher


def get_snippets(content: bytes, matcher: CompiledMatcher, max_snippets: int) -> List[Snippet]:
    """Extract up to max_snippets matching lines from a file.

    The file is swept once from left to right. Each search resumes where the
    previous snippet ended, so further matches on a line that was already
    reported are not reported again.

    Args:
        content: Raw file content
        matcher: Compiled search pattern
        max_snippets: Maximum number of snippets to return

    Returns:
        Snippets in file order, each with its 1-based line number
    """
    text = content.decode("utf-8", errors="replace")
    snippets: List[Snippet] = []
    chunk_start = 0
    line_no = 1

    while chunk_start < len(text) and len(snippets) < max_snippets:
        match_end = matcher.match_end(text, chunk_start)
        if match_end < chunk_start:
            break

        newline = text.rfind("\n", chunk_start, match_end)
        line_start = chunk_start if newline < 0 else newline + 1
        line_end = min(match_end, len(text))

        line_no += text.count("\n", chunk_start, line_start)
        snippets.append(Snippet(content=text[line_start:line_end], line_number=line_no))
        chunk_start = line_end

    return snippets
