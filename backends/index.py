"""Trigram posting index backends."""

import logging
import mmap
import os
import struct
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Set, Tuple, Union

from backends.trigram import QUERY_ALL, QUERY_AND, QUERY_NONE, TrigramQuery
from core.errors import IndexQueryError

logger = logging.getLogger(__name__)

INDEX_MAGIC = b"csearch index 1\n"
TRAILER_MAGIC = b"\ncsearch trailr\n"
POST_ENTRY_SIZE = 3 + 4 + 4


def get_index_path() -> Path:
    """Get the default index location ($CSEARCHINDEX or ~/.csearchindex)."""
    path = os.environ.get("CSEARCHINDEX")
    if path:
        return Path(path)
    return Path.home() / ".csearchindex"


class AbstractIndex(ABC):
    """Abstract base class for trigram indexes."""

    @abstractmethod
    def posting_query(self, query: TrigramQuery) -> List[int]:
        """Find the files that may satisfy a trigram query.

        Args:
            query: Trigram query derived from a search pattern

        Returns:
            Candidate file ids in ascending order

        Raises:
            IndexQueryError: If the index cannot be read
        """
        pass

    @abstractmethod
    def name(self, file_id: int) -> str:
        """Get the path of an indexed file."""
        pass


def _read_uvarint(data: Union[bytes, mmap.mmap], pos: int) -> Tuple[int, int]:
    """Decode an unsigned LEB128 varint, returning (value, next position)."""
    value = 0
    shift = 0
    while True:
        byte = data[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            return value, pos
        shift += 7


class CodesearchIndex(AbstractIndex):
    """Reader for the on-disk codesearch index format.

    Layout:

        "csearch index 1\\n"
        list of paths       NUL-terminated, ended by an empty name
        list of names       NUL-terminated, ended by an empty name
        posting lists       trigram[3] followed by varint id deltas, ended by 0
        name index          big-endian uint32 offsets into the name list
        posting list index  trigram[3] file count[4] offset[4], sorted
        trailer             five big-endian uint32 section offsets,
                            then "\\ncsearch trailr\\n"
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """Open an index file.

        Args:
            path: Path to the index file

        Raises:
            OSError: If the file cannot be opened
            ValueError: If the file is not a codesearch index
        """
        self.path = Path(path)
        with open(self.path, "rb") as f:
            self._data = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)

        trailer_start = len(self._data) - len(TRAILER_MAGIC) - 5 * 4
        if (
            trailer_start < len(INDEX_MAGIC)
            or self._data[: len(INDEX_MAGIC)] != INDEX_MAGIC
            or self._data[-len(TRAILER_MAGIC):] != TRAILER_MAGIC
        ):
            raise ValueError(f"corrupt index: {self.path}")

        (
            self._path_data,
            self._name_data,
            self._post_data,
            self._name_index,
            self._post_index,
        ) = struct.unpack_from(">5I", self._data, trailer_start)
        self.num_names = (self._post_index - self._name_index) // 4 - 1
        self.num_posts = (trailer_start - self._post_index) // POST_ENTRY_SIZE
        logger.info(f"Opened index {self.path}: {self.num_names} files, {self.num_posts} trigrams")

    def _cstring(self, pos: int) -> str:
        end = self._data.find(b"\x00", pos)
        if end < 0:
            raise IndexQueryError(f"unterminated name at offset {pos} in {self.path}")
        return self._data[pos:end].decode("utf-8", errors="replace")

    def paths(self) -> List[str]:
        """List the root paths covered by the index."""
        roots = []
        pos = self._path_data
        while True:
            root = self._cstring(pos)
            if not root:
                return roots
            roots.append(root)
            pos += len(root.encode("utf-8")) + 1

    def name(self, file_id: int) -> str:
        if not 0 <= file_id < self.num_names:
            raise IndexQueryError(f"file id {file_id} out of range")
        (offset,) = struct.unpack_from(">I", self._data, self._name_index + 4 * file_id)
        return self._cstring(self._name_data + offset)

    def _find_list(self, trigram: bytes) -> Tuple[int, int]:
        """Binary search the posting index, returning (file count, offset)."""
        lo, hi = 0, self.num_posts
        while lo < hi:
            mid = (lo + hi) // 2
            entry = self._post_index + mid * POST_ENTRY_SIZE
            if self._data[entry:entry + 3] < trigram:
                lo = mid + 1
            else:
                hi = mid
        if lo < self.num_posts:
            entry = self._post_index + lo * POST_ENTRY_SIZE
            if self._data[entry:entry + 3] == trigram:
                return struct.unpack_from(">II", self._data, entry + 3)
        return 0, 0

    def posting_list(self, trigram: bytes) -> List[int]:
        """Get the ids of all files containing a trigram."""
        count, offset = self._find_list(trigram)
        if count == 0:
            return []

        pos = self._post_data + offset
        if self._data[pos:pos + 3] != trigram:
            raise IndexQueryError(f"corrupt posting list for {trigram!r} in {self.path}")
        pos += 3

        file_ids = []
        file_id = -1
        while True:
            delta, pos = _read_uvarint(self._data, pos)
            if delta == 0:
                break
            file_id += delta
            file_ids.append(file_id)

        if len(file_ids) != count:
            raise IndexQueryError(f"corrupt posting list for {trigram!r} in {self.path}")
        return file_ids

    def _evaluate(self, query: TrigramQuery) -> Set[int]:
        if query.op == QUERY_ALL:
            return set(range(self.num_names))
        if query.op == QUERY_NONE:
            return set()

        results = [set(self.posting_list(t)) for t in sorted(query.trigrams)]
        results += [self._evaluate(sub) for sub in query.subs]
        if query.op == QUERY_AND:
            if not results:
                return set(range(self.num_names))
            return set.intersection(*results)
        return set().union(*results)

    def posting_query(self, query: TrigramQuery) -> List[int]:
        logger.debug(f"Posting query: {query}")
        try:
            return sorted(self._evaluate(query))
        except (IndexError, struct.error) as exc:
            raise IndexQueryError(f"Posting query on {self.path} failed: {exc}") from exc
