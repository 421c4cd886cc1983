"""Test helpers: a tiny codesearch index writer and sample files."""

import struct
from pathlib import Path
from typing import Dict, List, Sequence

from backends.index import INDEX_MAGIC, TRAILER_MAGIC


def _uvarint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def write_index(path: Path, files: Dict[str, bytes], roots: Sequence[str] = ()) -> Path:
    """Write a codesearch index covering the given file names and contents."""
    names = sorted(files)
    postings: Dict[bytes, List[int]] = {}
    for file_id, name in enumerate(names):
        data = files[name]
        for trigram in sorted({data[i:i + 3] for i in range(len(data) - 2)}):
            postings.setdefault(trigram, []).append(file_id)

    out = bytearray(INDEX_MAGIC)

    path_data = len(out)
    for root in sorted(roots):
        out += root.encode() + b"\x00"
    out += b"\x00"

    name_data = len(out)
    name_offsets = []
    for name in names:
        name_offsets.append(len(out) - name_data)
        out += name.encode() + b"\x00"
    name_offsets.append(len(out) - name_data)
    out += b"\x00"

    post_data = len(out)
    entries = []
    for trigram in sorted(postings):
        file_ids = postings[trigram]
        entries.append((trigram, len(file_ids), len(out) - post_data))
        out += trigram
        previous = -1
        for file_id in file_ids:
            out += _uvarint(file_id - previous)
            previous = file_id
        out += _uvarint(0)
    out += b"\xff\xff\xff" + _uvarint(0)

    name_index = len(out)
    for offset in name_offsets:
        out += struct.pack(">I", offset)

    post_index = len(out)
    for trigram, count, offset in entries:
        out += trigram + struct.pack(">II", count, offset)

    out += struct.pack(">5I", path_data, name_data, post_data, name_index, post_index)
    out += TRAILER_MAGIC
    path.write_bytes(bytes(out))
    return path


SAMPLE_FILES = {
    "a.go": b"foo\nbar\nfoobar\n",
    "b.py": b"import os\n\ndef main():\n    print('hello')\n",
    "c.txt": b"The Quick Brown Fox\njumps over\nthe lazy dog\n",
}
