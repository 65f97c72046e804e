"""Font loading: glyph widths, encodings and code-to-Unicode mapping."""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Sequence

from pypdf import _cmap
from pypdf._codecs import charset_encoding
from pypdf.errors import PyPdfError
from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    ByteStringObject,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NullObject,
    NumberObject,
    PdfObject,
)

from .cmap import CMap, glyph_name_to_unicode, identity_cmap, parse_cmap
from .exceptions import CorruptDocumentError, UnsupportedFeatureError
from .objects import PdfName, PdfStream, PdfString

if TYPE_CHECKING:  # pragma: no cover
    from .parser import Document

__all__ = ["Font", "load_font", "SIMPLE_FONT_TYPES"]

LOGGER = logging.getLogger("pdf_text_extract.fonts")

SIMPLE_FONT_TYPES = ("Type1", "MMType1", "TrueType", "Type3")
_NAMED_ENCODINGS = {
    "StandardEncoding": "/StandardEncoding",
    "WinAnsiEncoding": "/WinAnsiEncoding",
    "MacRomanEncoding": "/MacRomanEncoding",
    "PDFDocEncoding": "/PDFDocEncoding",
}
_DEFAULT_WIDTH = 500.0
_MONOSPACE_WIDTH = 600.0
_DEFAULT_ASCENT = 0.8
_DEFAULT_DESCENT = -0.2
_DEFAULT_VERTICAL_ADVANCE = -1.0


def _clean_text(text: str | None) -> str | None:
    if not text:
        return None
    cleaned = "".join(
        char for char in text if char != "\ufffd" and unicodedata.category(char) != "Cc"
    )
    return cleaned or None


@dataclass(slots=True)
class Font:
    """Loaded font resource.

    Widths are stored in glyph-space units and converted to text space with
    ``width_scale`` (1/1000 for every font type except Type 3, which uses its
    font matrix).  Simple fonts carry a 256-entry ``encoding`` table; Type 0
    fonts split their strings through ``code_map``.  Vertical Type 0 fonts
    move the pen down by ``vertical_advance`` (the ``/DW2`` displacement).
    """

    name: str
    subtype: str
    widths: Mapping[int, float] = field(default_factory=dict)
    default_width: float = _DEFAULT_WIDTH
    width_scale: float = 0.001
    encoding: Sequence[str | None] | None = None
    to_unicode: CMap | None = None
    code_map: CMap | None = None
    embedded: bool = False
    ascent: float = _DEFAULT_ASCENT
    descent: float = _DEFAULT_DESCENT
    vertical_advance: float = _DEFAULT_VERTICAL_ADVANCE

    @property
    def composite(self) -> bool:
        return self.code_map is not None

    @property
    def vertical(self) -> bool:
        return self.composite and self.code_map.vertical  # type: ignore[union-attr]

    def iter_codes(self, data: bytes) -> Iterator[tuple[int, bytes]]:
        if self.code_map is not None:
            yield from self.code_map.split(data)
            return
        for byte in data:
            yield byte, bytes((byte,))

    def text_for(self, code: int, raw: bytes) -> str | None:
        """Unicode text for one character code, or ``None`` when unmapped."""

        if self.to_unicode is not None:
            text = self.to_unicode.lookup(raw)
            if text is not None:
                return _clean_text(text)
        if self.encoding is not None and 0 <= code < len(self.encoding):
            return _clean_text(self.encoding[code])
        return None

    def glyph_width(self, code: int, raw: bytes) -> float:
        """Advance width of *code* in text space units (multiples of the font size)."""

        key = self.code_map.cid(raw) if self.code_map is not None else code
        return self.widths.get(key, self.default_width) * self.width_scale

    def is_word_space(self, raw: bytes) -> bool:
        return raw == b" "


def _strip_subset_prefix(name: str) -> str:
    if len(name) > 7 and name[6] == "+" and name[:6].isupper():
        return name[7:]
    return name


def _number(value: Any, default: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return default


def _descriptor_metrics(document: Document, descriptor: Any) -> tuple[float, float, bool, Any]:
    descriptor = document.resolve(descriptor)
    if not isinstance(descriptor, dict):
        return _DEFAULT_ASCENT, _DEFAULT_DESCENT, False, None
    ascent = _number(document.resolve(descriptor.get("Ascent")), 0.0) / 1000
    descent = _number(document.resolve(descriptor.get("Descent")), 0.0) / 1000
    if ascent <= 0 or ascent > 2:
        ascent = _DEFAULT_ASCENT
    if descent >= 0 or descent < -1:
        descent = _DEFAULT_DESCENT
    embedded = any(key in descriptor for key in ("FontFile", "FontFile2", "FontFile3"))
    return ascent, descent, embedded, descriptor


def _to_pypdf(document: Document, value: Any) -> PdfObject:
    value = document.resolve(value)
    if isinstance(value, PdfName):
        return NameObject(f"/{value}")
    if isinstance(value, bool):
        return BooleanObject(value)
    if isinstance(value, int):
        return NumberObject(value)
    if isinstance(value, float):
        return FloatObject(value)
    if isinstance(value, PdfString):
        return ByteStringObject(bytes(value))
    if isinstance(value, list):
        return ArrayObject(_to_pypdf(document, item) for item in value)
    if isinstance(value, dict):
        return DictionaryObject({NameObject(f"/{key}"): _to_pypdf(document, item) for key, item in value.items()})
    return NullObject()


def _pypdf_font_dict(document: Document, font_dict: dict[str, Any], subtype: str, name: str) -> DictionaryObject:
    """Rebuild the entries :func:`pypdf._cmap.get_encoding` reads as pypdf objects."""

    translated = DictionaryObject()
    translated[NameObject("/Subtype")] = NameObject(f"/{subtype}")
    translated[NameObject("/BaseFont")] = NameObject(f"/{name}")
    if subtype != "Type0":
        translated[NameObject("/Encoding")] = _simple_encoding_entry(document, font_dict.get("Encoding"), name)
    to_unicode = document.resolve(font_dict.get("ToUnicode"))
    if isinstance(to_unicode, PdfStream):
        stream = DecodedStreamObject()
        stream.set_data(document.decode_stream(to_unicode))
        translated[NameObject("/ToUnicode")] = stream
    return translated


def _get_encoding(
    document: Document, font_dict: dict[str, Any], subtype: str, name: str
) -> tuple[Any, dict[Any, Any]]:
    try:
        return _cmap.get_encoding(_pypdf_font_dict(document, font_dict, subtype, name))
    except PyPdfError as exc:
        raise CorruptDocumentError(f"font {name} has an unusable encoding: {exc}") from exc


def _unicode_cmap(unicode_map: dict[Any, Any], code_width: int) -> CMap | None:
    """Re-key a pypdf ToUnicode map by raw code bytes of ``code_width`` bytes."""

    cmap = CMap()
    for key, text in unicode_map.items():
        if not isinstance(key, str) or not isinstance(text, str):
            continue
        try:
            code = key.encode("latin-1") if code_width == 1 else key.encode("utf-16-be", "surrogatepass")
        except UnicodeEncodeError:
            continue
        cmap.unicode[code] = text
    return cmap if cmap.unicode else None


def load_font(document: Document, value: Any) -> Font:
    """Build a :class:`Font` from a font dictionary (or reference to one)."""

    font_dict = document.resolve(value)
    if not isinstance(font_dict, dict):
        raise CorruptDocumentError("font resource is not a dictionary")
    subtype = document.resolve(font_dict.get("Subtype")) or "Type1"
    if subtype == "Type0":
        font = _load_composite_font(document, font_dict)
    elif subtype in SIMPLE_FONT_TYPES:
        font = _load_simple_font(document, font_dict, str(subtype))
    else:
        raise UnsupportedFeatureError(f"font type /{subtype} is not supported")
    LOGGER.debug("Loaded %s font %s (embedded=%s)", font.subtype, font.name, font.embedded)
    return font


# -- Simple fonts --------------------------------------------------------------


def _base_encoding_for(name: str) -> str:
    if "Symbol" in name:
        return "/Symbol"
    if "ZapfDingbats" in name or "Dingbats" in name:
        return "/ZapfDingbats"
    return "/StandardEncoding"


def _simple_encoding_entry(document: Document, encoding: Any, font_name: str) -> PdfObject:
    encoding = document.resolve(encoding)
    base_name = _base_encoding_for(font_name)
    if isinstance(encoding, PdfName):
        return NameObject(_NAMED_ENCODINGS.get(str(encoding), base_name))
    if not isinstance(encoding, dict):
        return NameObject(base_name)
    base = document.resolve(encoding.get("BaseEncoding"))
    entry = DictionaryObject()
    entry[NameObject("/BaseEncoding")] = NameObject(_NAMED_ENCODINGS.get(str(base), base_name))
    differences = document.resolve(encoding.get("Differences"))
    if isinstance(differences, list):
        entry[NameObject("/Differences")] = _to_pypdf(document, differences)
    return entry


def _encoding_table(encoding: Any) -> list[str | None]:
    if not isinstance(encoding, dict):
        return list(charset_encoding["/StandardEncoding"])
    table: list[str | None] = []
    for code in range(256):
        text = encoding.get(code)
        # glyph names missing from the Adobe list come back verbatim
        if isinstance(text, str) and len(text) > 1 and text.startswith("/"):
            text = glyph_name_to_unicode(text)
        table.append(text if isinstance(text, str) else None)
    return table


def _load_simple_font(document: Document, font_dict: dict[str, Any], subtype: str) -> Font:
    name = _strip_subset_prefix(str(document.resolve(font_dict.get("BaseFont")) or subtype))
    ascent, descent, embedded, descriptor = _descriptor_metrics(document, font_dict.get("FontDescriptor"))
    default_width = _MONOSPACE_WIDTH if "Courier" in name else _DEFAULT_WIDTH
    if descriptor is not None:
        default_width = _number(document.resolve(descriptor.get("MissingWidth")), default_width)

    widths: dict[int, float] = {}
    first_char = document.resolve(font_dict.get("FirstChar"))
    raw_widths = document.resolve(font_dict.get("Widths"))
    if isinstance(first_char, int) and isinstance(raw_widths, list):
        for offset, width in enumerate(raw_widths):
            widths[first_char + offset] = _number(document.resolve(width), default_width)

    width_scale = 0.001
    if subtype == "Type3":
        matrix = document.resolve(font_dict.get("FontMatrix"))
        if isinstance(matrix, list) and matrix:
            width_scale = _number(document.resolve(matrix[0]), 0.001)
        embedded = True

    encoding, unicode_map = _get_encoding(document, font_dict, subtype, name)
    return Font(
        name=name,
        subtype=subtype,
        widths=widths,
        default_width=default_width,
        width_scale=width_scale,
        encoding=_encoding_table(encoding),
        to_unicode=_unicode_cmap(unicode_map, 1),
        embedded=embedded,
        ascent=ascent,
        descent=descent,
    )


# -- Composite fonts -----------------------------------------------------------


def _parse_cid_widths(document: Document, raw: Any) -> dict[int, float]:
    """Parse a ``/W`` array: ``c [w1 w2 ...]`` and ``c_first c_last w`` runs."""

    items = [document.resolve(item) for item in (document.resolve(raw) or [])]
    widths: dict[int, float] = {}
    index = 0
    while index < len(items):
        first = items[index]
        if not isinstance(first, int):
            raise CorruptDocumentError("CID width array is malformed")
        following = items[index + 1] if index + 1 < len(items) else None
        if isinstance(following, list):
            for offset, width in enumerate(following):
                widths[first + offset] = _number(document.resolve(width), 0.0)
            index += 2
        elif isinstance(following, int) and index + 2 < len(items):
            width = _number(items[index + 2], 0.0)
            for cid in range(first, following + 1):
                widths[cid] = width
            index += 3
        else:
            raise CorruptDocumentError("CID width array is malformed")
    return widths


def _load_composite_font(document: Document, font_dict: dict[str, Any]) -> Font:
    name = _strip_subset_prefix(str(document.resolve(font_dict.get("BaseFont")) or "Type0"))
    to_unicode_stream = document.resolve(font_dict.get("ToUnicode"))

    encoding = document.resolve(font_dict.get("Encoding"))
    if isinstance(encoding, PdfName) and encoding in ("Identity-H", "Identity-V"):
        code_map = identity_cmap(encoding == "Identity-V")
    elif isinstance(encoding, PdfStream):
        code_map = parse_cmap(document.decode_stream(encoding))
        if not code_map.codespaces and not code_map.identity:
            code_map.identity = True
    elif isinstance(to_unicode_stream, PdfStream):
        # predefined CMaps are not bundled; fall back to the ToUnicode code space
        code_map = CMap(codespaces=list(parse_cmap(document.decode_stream(to_unicode_stream)).codespaces))
        code_map.vertical = str(encoding).endswith("-V")
        if not code_map.codespaces:
            code_map.identity = True
    else:
        raise UnsupportedFeatureError(f"predefined CMap /{encoding} without a ToUnicode map is not supported")

    descendants = document.resolve(font_dict.get("DescendantFonts"))
    descendant = document.resolve(descendants[0]) if isinstance(descendants, list) and descendants else None
    if not isinstance(descendant, dict):
        raise CorruptDocumentError(f"Type0 font {name} has no descendant font")
    ascent, descent, embedded, _ = _descriptor_metrics(document, descendant.get("FontDescriptor"))

    return Font(
        name=name,
        subtype="Type0",
        widths=_parse_cid_widths(document, descendant.get("W")),
        default_width=_number(document.resolve(descendant.get("DW")), 1000.0),
        to_unicode=_composite_to_unicode(document, font_dict, name, code_map, to_unicode_stream),
        code_map=code_map,
        embedded=embedded,
        ascent=ascent,
        descent=descent,
        vertical_advance=_vertical_advance(document, descendant.get("DW2")),
    )


def _composite_to_unicode(
    document: Document, font_dict: dict[str, Any], name: str, code_map: CMap, stream: Any
) -> CMap | None:
    if not isinstance(stream, PdfStream):
        return None
    code_widths = {len(low) for low, _ in code_map.codespaces} or {2}
    if code_widths in ({1}, {2}):
        _, unicode_map = _get_encoding(document, font_dict, "Type0", name)
        return _unicode_cmap(unicode_map, code_widths.pop())
    # pypdf keys its map by decoded text, which cannot carry mixed code widths
    return parse_cmap(document.decode_stream(stream))


def _vertical_advance(document: Document, raw: Any) -> float:
    metrics = document.resolve(raw)
    if isinstance(metrics, list) and len(metrics) == 2:
        return _number(document.resolve(metrics[1]), -1000.0) / 1000
    return _DEFAULT_VERTICAL_ADVANCE
