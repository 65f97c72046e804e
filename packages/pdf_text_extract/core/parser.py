"""PDF object model parser.

:func:`parse` turns raw bytes into a :class:`Document`: it validates the
header, merges every cross-reference section, rejects encrypted files and
flattens the page tree.  Indirect objects are parsed lazily into an arena
keyed by object number and resolved with cycle detection, so a returned
document is always complete and every page can be reached without unbounded
recursion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..extraction.interpreter import PageInterpreter
from ..extraction.primitives import Span
from .exceptions import CorruptDocumentError, IoTruncatedError, PageIndexOutOfRangeError, UnsupportedFeatureError
from .filters import decode_stream
from .fonts import Font, load_font
from .lexer import PdfLexer, read_indirect_object
from .objects import PdfRef, PdfStream
from .xref import CompressedEntry, CrossReference, XrefEntry, locate_startxref, read_cross_reference

__all__ = ["Document", "Page", "parse", "DEFAULT_MEDIA_BOX"]

LOGGER = logging.getLogger("pdf_text_extract.parser")

_HEADER = b"%PDF-"
_HEADER_SEARCH_WINDOW = 1024
DEFAULT_MEDIA_BOX = (0.0, 0.0, 612.0, 792.0)
_INHERITABLE = ("Resources", "MediaBox", "CropBox", "Rotate")


# -- Parsed object models ----------------------------------------------------


@dataclass(frozen=True, slots=True)
class Page:
    """Leaf of the page tree with its inherited attributes applied."""

    index: int
    ref: PdfRef | None
    media_box: tuple[float, float, float, float]
    resources: dict[str, Any] = field(default_factory=dict)
    contents: Any = None
    crop_box: tuple[float, float, float, float] | None = None
    rotate: int = 0

    @property
    def width(self) -> float:
        return self.media_box[2] - self.media_box[0]

    @property
    def height(self) -> float:
        return self.media_box[3] - self.media_box[1]


class Document:
    """Parsed PDF: cross-reference index, object arena, pages and fonts."""

    def __init__(self, data: bytes, cross_reference: CrossReference, version: str) -> None:
        self._data = data
        self._xref = cross_reference
        self.version = version
        self._objects: dict[int, Any] = {}
        self._object_streams: dict[int, tuple[bytes, list[tuple[int, int]], int]] = {}
        self._fonts: dict[Any, Font] = {}
        self._pages: tuple[Page, ...] = ()

    # ------------------------------------------------------------------ #
    # Object access
    # ------------------------------------------------------------------ #
    @property
    def trailer(self) -> dict[str, Any]:
        return self._xref.trailer

    @property
    def catalog(self) -> dict[str, Any]:
        root = self.resolve(self.trailer.get("Root"))
        if not isinstance(root, dict):
            raise CorruptDocumentError("document catalog is missing")
        return root

    @property
    def object_count(self) -> int:
        return self._xref.in_use()

    def resolve(self, value: Any, _chain: set[int] | None = None) -> Any:
        """Follow indirect references until a direct object is reached.

        Each call tracks the object numbers visited along its chain; meeting
        one twice raises :class:`CorruptDocumentError`.
        """

        chain = set() if _chain is None else _chain
        while isinstance(value, PdfRef):
            if value.num in chain:
                raise CorruptDocumentError(f"reference cycle through object {value.num}")
            chain.add(value.num)
            value = self._load(value, chain)
        return value

    def _load(self, ref: PdfRef, chain: set[int]) -> Any:
        if ref.num in self._objects:
            return self._objects[ref.num]
        entry = self._xref.entries.get(ref.num)
        if isinstance(entry, XrefEntry):
            found, value = read_indirect_object(
                self._data,
                entry.offset,
                resolve=lambda length: self.resolve(length, set(chain)),
            )
            if found.num != ref.num:
                raise CorruptDocumentError(
                    f"cross-reference entry for object {ref.num} points at object {found.num}"
                )
        elif isinstance(entry, CompressedEntry):
            value = self._load_compressed(entry, chain)
        else:
            value = None
        self._objects[ref.num] = value
        return value

    def _load_compressed(self, entry: CompressedEntry, chain: set[int]) -> Any:
        cached = self._object_streams.get(entry.stream_number)
        if cached is None:
            stream = self.resolve(PdfRef(entry.stream_number), set(chain))
            if not isinstance(stream, PdfStream) or stream.get("Type") != "ObjStm":
                raise CorruptDocumentError(f"object {entry.stream_number} is not an object stream")
            count = self.resolve(stream.get("N"), set(chain))
            first = self.resolve(stream.get("First"), set(chain))
            if not isinstance(count, int) or not isinstance(first, int):
                raise CorruptDocumentError(f"object stream {entry.stream_number} lacks /N or /First")
            payload = self.decode_stream(stream)
            lexer = PdfLexer(payload[:first], allow_references=False)
            offsets: list[tuple[int, int]] = []
            for _ in range(count):
                number, offset = lexer.next_token(), lexer.next_token()
                if not isinstance(number, int) or not isinstance(offset, int):
                    raise CorruptDocumentError(f"object stream {entry.stream_number} has a malformed header")
                offsets.append((number, offset))
            cached = (payload, offsets, first)
            self._object_streams[entry.stream_number] = cached
        payload, offsets, first = cached
        if entry.index >= len(offsets):
            raise CorruptDocumentError(f"object stream {entry.stream_number} has no entry {entry.index}")
        _, offset = offsets[entry.index]
        try:
            return PdfLexer(payload, first + offset).read_object()
        except IoTruncatedError as exc:
            raise CorruptDocumentError(f"object stream {entry.stream_number} is truncated") from exc

    def decode_stream(self, stream: PdfStream) -> bytes:
        return decode_stream(stream, self.resolve)

    def load_font(self, value: Any) -> Font:
        """Return the cached :class:`Font` for a font dictionary or reference."""

        key = value.num if isinstance(value, PdfRef) else id(value)
        font = self._fonts.get(key)
        if font is None:
            font = load_font(self, value)
            self._fonts[key] = font
        return font

    # ------------------------------------------------------------------ #
    # Pages
    # ------------------------------------------------------------------ #
    @property
    def pages(self) -> tuple[Page, ...]:
        return self._pages

    def page_count(self) -> int:
        return len(self._pages)

    def page(self, index: int) -> Page:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._pages):
            raise PageIndexOutOfRangeError(index, len(self._pages))
        return self._pages[index]

    def page_content(self, page: Page) -> bytes:
        """Decode and concatenate the content streams of *page*."""

        contents = self.resolve(page.contents)
        streams: Iterable[Any] = contents if isinstance(contents, list) else [contents]
        chunks: list[bytes] = []
        for item in streams:
            stream = self.resolve(item)
            if stream is None:
                continue
            if not isinstance(stream, PdfStream):
                raise CorruptDocumentError(f"page {page.index} content is not a stream")
            chunks.append(self.decode_stream(stream))
        return b"\n".join(chunks)

    def extract_page_text(self, page_index: int) -> list[Span]:
        """Return the positioned spans of page *page_index* in content-stream order."""

        page = self.page(page_index)
        return PageInterpreter(self).spans(page)

    def _load_page_tree(self) -> None:
        root = self.catalog.get("Pages")
        root_node = self.resolve(root)
        pages: list[Page] = []
        visited: set[int] = set()
        stack: list[tuple[Any, dict[str, Any]]] = [(root, {})]
        while stack:
            value, inherited = stack.pop()
            if isinstance(value, PdfRef):
                if value.num in visited:
                    raise CorruptDocumentError(f"page tree visits object {value.num} twice")
                visited.add(value.num)
            node = self.resolve(value)
            if not isinstance(node, dict):
                raise CorruptDocumentError("page tree node is not a dictionary")
            attributes = dict(inherited)
            for key in _INHERITABLE:
                if key in node:
                    attributes[key] = node[key]
            kids = self.resolve(node.get("Kids"))
            if node.get("Type") == "Pages" or (node.get("Type") != "Page" and kids is not None):
                if not isinstance(kids, list):
                    raise CorruptDocumentError("page tree node has no /Kids array")
                for kid in reversed(kids):
                    stack.append((kid, attributes))
                continue
            pages.append(self._build_page(len(pages), value, node, attributes))

        declared = self.resolve(root_node.get("Count")) if isinstance(root_node, dict) else None
        if isinstance(declared, int) and declared != len(pages):
            LOGGER.debug("Page tree declares %d pages but holds %d", declared, len(pages))
        self._pages = tuple(pages)

    def _build_page(self, index: int, value: Any, node: dict[str, Any], attributes: dict[str, Any]) -> Page:
        media_box = _normalize_box(self, attributes.get("MediaBox")) or DEFAULT_MEDIA_BOX
        resources = self.resolve(attributes.get("Resources"))
        rotate = self.resolve(attributes.get("Rotate"))
        return Page(
            index=index,
            ref=value if isinstance(value, PdfRef) else None,
            media_box=media_box,
            resources=resources if isinstance(resources, dict) else {},
            contents=node.get("Contents"),
            crop_box=_normalize_box(self, attributes.get("CropBox")),
            rotate=int(rotate) % 360 if isinstance(rotate, (int, float)) else 0,
        )


def _normalize_box(document: Document, value: Any) -> tuple[float, float, float, float] | None:
    box = document.resolve(value)
    if not isinstance(box, list) or len(box) != 4:
        return None
    numbers = [document.resolve(item) for item in box]
    if not all(isinstance(item, (int, float)) for item in numbers):
        return None
    x0, y0, x1, y1 = (float(item) for item in numbers)
    return (min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))


def _read_header(data: bytes) -> str:
    position = data.find(_HEADER, 0, _HEADER_SEARCH_WINDOW)
    if position < 0:
        if len(data) < len(_HEADER) and _HEADER.startswith(data):
            raise IoTruncatedError("input ends before the %PDF- header")
        raise CorruptDocumentError("input does not start with a %PDF- header")
    line = data[position + len(_HEADER) : position + len(_HEADER) + 8]
    version = line.split(maxsplit=1)[0] if line.strip() else b""
    return version.decode("latin-1", "replace")


def parse(data: bytes) -> Document:
    """Parse *data* into a fully formed :class:`Document`."""

    data = bytes(data)
    version = _read_header(data)
    startxref = locate_startxref(data)
    cross_reference = read_cross_reference(data, startxref)
    if "Encrypt" in cross_reference.trailer:
        raise UnsupportedFeatureError("encrypted documents are not supported")
    document = Document(data, cross_reference, version)
    document._load_page_tree()
    LOGGER.debug(
        "Parsed PDF %s: %d objects, %d pages",
        version or "?",
        document.object_count,
        document.page_count(),
    )
    return document
