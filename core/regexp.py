"""Pattern compilation for code search."""

import re
from dataclasses import dataclass
from re import _parser as sre_parse
from typing import Any, Optional

import re2

from core.errors import EmptyPatternError, PatternSyntaxError

# ^ and $ anchor at line boundaries, as in grep.
LINE_FLAGS = "(?m)"


@dataclass(frozen=True)
class CompiledMatcher:
    """Compiled search pattern, reusable across all files of a request.

    Matching runs on RE2, which is linear in the size of the text. The
    syntax tree comes from Python's own parser and only feeds the trigram
    query. It is None when Python cannot parse a pattern RE2 accepts.
    """

    expr: str
    regex: Any
    syntax: Optional[sre_parse.SubPattern]

    def match_end(self, text: str, pos: int = 0) -> int:
        """Find the end of the line holding the first match at or after pos.

        Empty matches are ignored. The returned offset is that of the
        newline ending the line on which the match ends, or len(text) when
        that line is the last one.

        Args:
            text: Text to search
            pos: Offset to start searching from

        Returns:
            End offset of the matching line, or -1 if nothing matches
        """
        for match in self.regex.finditer(text, pos):
            if match.end() > match.start():
                line_end = text.find("\n", match.end())
                return len(text) if line_end < 0 else line_end
        return -1


def compile_pattern(pattern: str, case_sensitive: bool) -> CompiledMatcher:
    """Compile a search pattern.

    Args:
        pattern: Regular expression text in RE2 syntax
        case_sensitive: Whether matching should respect case

    Returns:
        Compiled matcher

    Raises:
        EmptyPatternError: If pattern is empty
        PatternSyntaxError: If pattern is not a valid regular expression
    """
    if pattern == "":
        raise EmptyPatternError("Empty search regexp provided.")

    expr = pattern
    if not case_sensitive:
        expr = "(?i)" + expr

    try:
        regex = re2.compile(LINE_FLAGS + expr)
    except re2.error as exc:
        raise PatternSyntaxError(f"error parsing regexp {expr!r}: {exc}") from exc

    try:
        syntax = sre_parse.parse(expr, re.MULTILINE)
    except re.error:
        syntax = None
    return CompiledMatcher(expr=expr, regex=regex, syntax=syntax)
