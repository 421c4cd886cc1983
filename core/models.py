"""Request and reply models for code search."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.regexp import CompiledMatcher, compile_pattern


class RegexpSpec(BaseModel):
    """Regular expression to search for."""

    model_config = ConfigDict(populate_by_name=True)

    expr: str = Field("", description="regular expression text")
    case_sensitive: bool = Field(
        False, alias="caseSensitive", description="match case exactly"
    )

    def compile(self) -> CompiledMatcher:
        """Compile the expression into a matcher.

        Raises:
            EmptyPatternError: If expr is empty
            PatternSyntaxError: If expr is not a valid regular expression
        """
        return compile_pattern(self.expr, self.case_sensitive)


class SearchRequest(BaseModel):
    """Search request."""

    regexp: Optional[RegexpSpec] = None


class Snippet(BaseModel):
    """One line of a file around a match."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    line_number: int = Field(..., alias="lineNumber", description="1-based line number")


class FileMatch(BaseModel):
    """Snippets found in a single file."""

    filename: str
    snippet: List[Snippet] = Field(default_factory=list)


class SearchReply(BaseModel):
    """Search reply, in index order."""

    match: List[FileMatch] = Field(default_factory=list)
