"""Trigram queries derived from regular expression syntax trees.

A trigram query is a boolean combination of 3-byte strings that any file
containing a match must satisfy. It is used to prune the set of files that
have to be scanned; the regular expression itself is checked afterwards.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from re import _constants as sre_constants
from re import _parser as sre_parse
from typing import FrozenSet, List, Optional, Tuple

QUERY_ALL = "all"
QUERY_NONE = "none"
QUERY_AND = "and"
QUERY_OR = "or"

_REPEATS = (
    sre_constants.MAX_REPEAT,
    sre_constants.MIN_REPEAT,
    sre_constants.POSSESSIVE_REPEAT,
)

# Under IGNORECASE these also match non-ASCII characters (e.g. KELVIN SIGN).
_WIDE_FOLDING = frozenset("iksIKS")

# File content is decoded with errors="replace", so U+FFFD in a pattern also
# matches invalid bytes that are not in the index as EF BF BD.
_REPLACEMENT_CHAR = "\ufffd"


@dataclass(frozen=True)
class TrigramQuery:
    """Boolean query over trigrams.

    AND queries require every trigram and sub-query; OR queries require any
    of them. ALL matches every file, NONE matches no file.
    """

    op: str
    trigrams: FrozenSet[bytes] = frozenset()
    subs: Tuple["TrigramQuery", ...] = ()

    def and_(self, other: TrigramQuery) -> TrigramQuery:
        if self.op == QUERY_NONE or other.op == QUERY_NONE:
            return MATCH_NONE
        if self.op == QUERY_ALL:
            return other
        if other.op == QUERY_ALL:
            return self
        return TrigramQuery(QUERY_AND, subs=self._terms(QUERY_AND) + other._terms(QUERY_AND))

    def or_(self, other: TrigramQuery) -> TrigramQuery:
        if self.op == QUERY_ALL or other.op == QUERY_ALL:
            return MATCH_ALL
        if self.op == QUERY_NONE:
            return other
        if other.op == QUERY_NONE:
            return self
        return TrigramQuery(QUERY_OR, subs=self._terms(QUERY_OR) + other._terms(QUERY_OR))

    def _terms(self, op: str) -> Tuple[TrigramQuery, ...]:
        if self.op == op and not self.trigrams:
            return self.subs
        return (self,)

    def __str__(self) -> str:
        if self.op == QUERY_ALL:
            return "+"
        if self.op == QUERY_NONE:
            return "-"
        parts = [repr(t)[1:] for t in sorted(self.trigrams)]
        parts += [f"({sub})" for sub in self.subs]
        joiner = " " if self.op == QUERY_AND else "|"
        return joiner.join(parts)


MATCH_ALL = TrigramQuery(QUERY_ALL)
MATCH_NONE = TrigramQuery(QUERY_NONE)


def regexp_query(syntax: Optional[sre_parse.SubPattern]) -> TrigramQuery:
    """Derive the trigram query for a parsed regular expression.

    Without a syntax tree nothing can be ruled out, so every file matches.
    """
    if syntax is None:
        return MATCH_ALL
    ignore_case = bool(syntax.state.flags & sre_constants.SRE_FLAG_IGNORECASE)
    return _analyze(syntax, ignore_case)


def _literal_query(run: List[FrozenSet[int]]) -> TrigramQuery:
    """AND of the trigrams in a run of literal bytes.

    Each position holds the set of bytes allowed there, so a position with
    case variants yields an OR over the trigram spellings.
    """
    query = MATCH_ALL
    for i in range(len(run) - 2):
        variants = frozenset(bytes(t) for t in itertools.product(*run[i:i + 3]))
        query = query.and_(TrigramQuery(QUERY_OR, trigrams=variants))
    return query


def _analyze(items: sre_parse.SubPattern, ignore_case: bool) -> TrigramQuery:
    query = MATCH_ALL
    run: List[FrozenSet[int]] = []

    for op, av in items:
        if op is sre_constants.LITERAL and chr(av) != _REPLACEMENT_CHAR:
            char = chr(av)
            if not ignore_case or char.lower() == char.upper():
                run.extend(frozenset((b,)) for b in char.encode("utf-8"))
                continue
            if char.isascii() and char not in _WIDE_FOLDING:
                run.append(frozenset((ord(char.lower()), ord(char.upper()))))
                continue

        query = query.and_(_literal_query(run))
        run = []

        if op is sre_constants.SUBPATTERN:
            _, add_flags, del_flags, sub = av
            sub_ignore_case = ignore_case or bool(add_flags & sre_constants.SRE_FLAG_IGNORECASE)
            if del_flags & sre_constants.SRE_FLAG_IGNORECASE:
                sub_ignore_case = False
            query = query.and_(_analyze(sub, sub_ignore_case))
        elif op is sre_constants.BRANCH:
            branches = MATCH_NONE
            for branch in av[1]:
                branches = branches.or_(_analyze(branch, ignore_case))
            query = query.and_(branches)
        elif op in _REPEATS:
            min_count, _, sub = av
            if min_count >= 1:
                query = query.and_(_analyze(sub, ignore_case))
        elif op is sre_constants.ATOMIC_GROUP:
            query = query.and_(_analyze(av, ignore_case))

    return query.and_(_literal_query(run))
