"""Cross-reference table and stream parsing."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .exceptions import CorruptDocumentError, IoTruncatedError
from .filters import decode_stream
from .lexer import PdfLexer, read_indirect_object
from .objects import PdfStream

__all__ = ["XrefEntry", "CompressedEntry", "CrossReference", "locate_startxref", "read_cross_reference"]

LOGGER = logging.getLogger("pdf_text_extract.xref")

_SUBSECTION_PATTERN = re.compile(rb"[\x00\t\n\x0c\r ]*(\d+)[ \t]+(\d+)")
_ENTRY_PATTERN = re.compile(rb"[\x00\t\n\x0c\r ]*(\d{1,10})[ \t]+(\d{1,5})[ \t]+([nf])")
_XREF_ENTRY_SIZE = 20


class XrefEntry(NamedTuple):
    """Object stored uncompressed at ``offset`` in the file."""

    offset: int
    generation: int


class CompressedEntry(NamedTuple):
    """Object stored at position ``index`` inside object stream ``stream_number``."""

    stream_number: int
    index: int


@dataclass(slots=True)
class CrossReference:
    """Merged view over every cross-reference section of a file.

    ``entries`` maps object numbers to their location; free objects map to
    ``None``.  Newer sections take precedence over the ones they update.
    """

    startxref: int
    entries: dict[int, XrefEntry | CompressedEntry | None] = field(default_factory=dict)
    trailer: dict[str, Any] = field(default_factory=dict)
    sections: list[str] = field(default_factory=list)

    def in_use(self) -> int:
        return sum(1 for entry in self.entries.values() if entry is not None)


def _merge(target: dict[int, Any], source: dict[int, Any]) -> None:
    for number, entry in source.items():
        target.setdefault(number, entry)


def locate_startxref(data: bytes) -> int:
    """Return the offset recorded after the last ``startxref`` keyword."""

    marker = data.rfind(b"startxref")
    if marker < 0:
        raise IoTruncatedError("input ends before the startxref marker")
    lexer = PdfLexer(data, marker + len(b"startxref"))
    token = lexer.next_token()
    if token is None:
        raise IoTruncatedError("input ends before the startxref offset")
    if not isinstance(token, int) or token < 0:
        raise CorruptDocumentError("startxref is not followed by a byte offset")
    if token >= len(data):
        raise IoTruncatedError(f"startxref offset {token} lies beyond the end of the input")
    return token


def read_cross_reference(data: bytes, startxref: int) -> CrossReference:
    """Read the section at *startxref* and every older section chained by ``/Prev``."""

    reference = CrossReference(startxref=startxref)
    visited: set[int] = set()
    offset: int | None = startxref
    while offset is not None:
        if offset in visited:
            raise CorruptDocumentError(f"cross-reference chain revisits offset {offset}")
        visited.add(offset)
        if offset >= len(data):
            raise IoTruncatedError(f"cross-reference offset {offset} lies beyond the end of the input")
        lexer = PdfLexer(data, offset)
        lexer.skip_whitespace()
        if data.startswith(b"xref", lexer.position):
            in_use, free, trailer = _read_xref_table(data, lexer.position + 4)
            reference.sections.append("table")
            _merge(reference.entries, in_use)
            hybrid = trailer.get("XRefStm")
            if isinstance(hybrid, int) and hybrid not in visited:
                visited.add(hybrid)
                stream_entries, _ = _read_xref_stream(data, hybrid)
                reference.sections.append("stream")
                _merge(reference.entries, stream_entries)
            _merge(reference.entries, free)
        else:
            entries, trailer = _read_xref_stream(data, offset)
            reference.sections.append("stream")
            _merge(reference.entries, entries)
        _merge(reference.trailer, trailer)
        previous = trailer.get("Prev")
        offset = previous if isinstance(previous, int) else None

    reference.trailer.pop("Prev", None)
    LOGGER.debug(
        "Read %d cross-reference section(s) %s with %d objects in use",
        len(reference.sections),
        reference.sections,
        reference.in_use(),
    )
    return reference


def _read_xref_table(
    data: bytes, position: int
) -> tuple[dict[int, XrefEntry], dict[int, None], dict[str, Any]]:
    in_use: dict[int, XrefEntry] = {}
    free: dict[int, None] = {}
    while True:
        lexer = PdfLexer(data, position)
        lexer.skip_whitespace()
        position = lexer.position
        if data.startswith(b"trailer", position):
            lexer.position = position + len(b"trailer")
            trailer = lexer.read_object()
            if not isinstance(trailer, dict):
                raise CorruptDocumentError("trailer is not a dictionary")
            return in_use, free, trailer
        if position >= len(data) or b"trailer".startswith(data[position : position + 7]):
            raise IoTruncatedError("input ends inside the cross-reference table")
        header = _SUBSECTION_PATTERN.match(data, position)
        if header is None:
            raise CorruptDocumentError(f"malformed cross-reference subsection at offset {position}")
        first, count = int(header.group(1)), int(header.group(2))
        position = header.end()
        for number in range(first, first + count):
            entry = _ENTRY_PATTERN.match(data, position)
            if entry is None:
                if len(data) - position <= _XREF_ENTRY_SIZE:
                    raise IoTruncatedError("input ends inside the cross-reference table")
                raise CorruptDocumentError(f"malformed cross-reference entry at offset {position}")
            position = entry.end()
            if entry.group(3) == b"n":
                in_use[number] = XrefEntry(int(entry.group(1)), int(entry.group(2)))
            else:
                free[number] = None


def _read_xref_stream(data: bytes, offset: int) -> tuple[dict[int, Any], dict[str, Any]]:
    _, stream = read_indirect_object(data, offset)
    if not isinstance(stream, PdfStream) or stream.get("Type") != "XRef":
        raise CorruptDocumentError(f"offset {offset} holds neither an xref table nor an xref stream")
    widths = stream.get("W")
    if not isinstance(widths, list) or len(widths) != 3 or not all(isinstance(w, int) and w >= 0 for w in widths):
        raise CorruptDocumentError("xref stream /W must hold three non-negative integers")
    size = stream.get("Size")
    if not isinstance(size, int):
        raise CorruptDocumentError("xref stream has no /Size")
    index = stream.get("Index", [0, size])
    if not isinstance(index, list) or len(index) % 2 or not all(isinstance(i, int) for i in index):
        raise CorruptDocumentError("xref stream /Index must hold pairs of integers")

    payload = decode_stream(stream)
    row_size = sum(widths)
    entries: dict[int, Any] = {}
    position = 0
    for first, count in zip(index[0::2], index[1::2]):
        for number in range(first, first + count):
            row = payload[position : position + row_size]
            if len(row) < row_size:
                raise CorruptDocumentError("xref stream ends before its declared entries")
            position += row_size
            fields = []
            cursor = 0
            for width in widths:
                fields.append(int.from_bytes(row[cursor : cursor + width], "big") if width else None)
                cursor += width
            kind = 1 if fields[0] is None else fields[0]
            if kind == 0:
                entries[number] = None
            elif kind == 1:
                entries[number] = XrefEntry(fields[1] or 0, fields[2] or 0)
            elif kind == 2:
                entries[number] = CompressedEntry(fields[1] or 0, fields[2] or 0)
            # other entry types are reserved and read as null references
    trailer = dict(stream.dictionary)
    return entries, trailer
