"""CMap parsing: code space ranges, ToUnicode maps and CID mappings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from pypdf._codecs import adobe_glyphs

from .exceptions import CorruptDocumentError, IoTruncatedError
from .lexer import PdfLexer
from .objects import Keyword, PdfName, PdfString

__all__ = ["CMap", "parse_cmap", "identity_cmap", "glyph_name_to_unicode", "decode_utf16"]


def glyph_name_to_unicode(name: str) -> str | None:
    """Map an Adobe glyph name (``A``, ``uni00E9``, ``u1F600``, ``a.sc``) to text."""

    key = name if name.startswith("/") else f"/{name}"
    if key in adobe_glyphs:
        return adobe_glyphs[key]
    base = key[1:].split(".", 1)[0].split("_", 1)[0]
    if f"/{base}" in adobe_glyphs:
        return adobe_glyphs[f"/{base}"]
    try:
        if base.startswith("uni") and len(base) >= 7 and (len(base) - 3) % 4 == 0:
            return "".join(chr(int(base[i : i + 4], 16)) for i in range(3, len(base), 4))
        if base.startswith("u") and 5 <= len(base) <= 7:
            return chr(int(base[1:], 16))
    except ValueError:
        return None
    return None


def decode_utf16(raw: bytes) -> str:
    if len(raw) % 2:
        return raw.decode("latin-1")
    return raw.decode("utf-16-be", "replace")


def _offset_bytes(start: bytes, offset: int) -> bytes:
    value = int.from_bytes(start, "big") + offset
    return value.to_bytes(max(len(start), (value.bit_length() + 7) // 8), "big")


@dataclass(slots=True)
class CMap:
    """Character code map.

    ``codespaces`` drives how a byte string is split into codes; ``unicode``
    and ``unicode_ranges`` hold ToUnicode mappings; ``cid_ranges`` maps codes
    to CIDs for composite fonts (identity when empty and ``identity`` is set).
    """

    codespaces: list[tuple[bytes, bytes]] = field(default_factory=list)
    unicode: dict[bytes, str] = field(default_factory=dict)
    unicode_ranges: list[tuple[bytes, bytes, Any]] = field(default_factory=list)
    cid_ranges: list[tuple[bytes, bytes, int]] = field(default_factory=list)
    identity: bool = False
    vertical: bool = False

    def _fallback_length(self) -> int:
        if self.codespaces:
            return min(len(low) for low, _ in self.codespaces)
        if self.identity:
            return 2
        lengths = {len(code) for code in self.unicode}
        lengths.update(len(low) for low, _, _ in self.unicode_ranges)
        return min(lengths) if lengths else 1

    def split(self, data: bytes) -> Iterator[tuple[int, bytes]]:
        """Yield ``(code, raw_bytes)`` for each character code in *data*."""

        spaces = sorted(self.codespaces, key=lambda item: len(item[0]))
        fallback = self._fallback_length()
        position = 0
        while position < len(data):
            for low, high in spaces:
                size = len(low)
                chunk = data[position : position + size]
                if len(chunk) == size and all(low[i] <= chunk[i] <= high[i] for i in range(size)):
                    break
            else:
                chunk = data[position : position + fallback]
            position += len(chunk)
            yield int.from_bytes(chunk, "big"), chunk

    def lookup(self, code: bytes) -> str | None:
        text = self.unicode.get(code)
        if text is not None:
            return text
        value = int.from_bytes(code, "big")
        for low, high, destination in self.unicode_ranges:
            if len(low) != len(code):
                continue
            start = int.from_bytes(low, "big")
            if start <= value <= int.from_bytes(high, "big"):
                offset = value - start
                if isinstance(destination, list):
                    if offset < len(destination):
                        return destination[offset]
                    return None
                return decode_utf16(_offset_bytes(destination, offset))
        return None

    def cid(self, code: bytes) -> int:
        value = int.from_bytes(code, "big")
        for low, high, start in self.cid_ranges:
            if len(low) == len(code) and int.from_bytes(low, "big") <= value <= int.from_bytes(high, "big"):
                return start + value - int.from_bytes(low, "big")
        return value


def identity_cmap(vertical: bool = False) -> CMap:
    return CMap(codespaces=[(b"\x00\x00", b"\xff\xff")], identity=True, vertical=vertical)


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, PdfString):
        return bytes(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
    raise CorruptDocumentError("CMap range bounds must be strings")


def _destination_text(value: Any) -> str | None:
    if isinstance(value, PdfName):
        return glyph_name_to_unicode(value)
    if isinstance(value, PdfString):
        return decode_utf16(bytes(value))
    return None


def parse_cmap(data: bytes) -> CMap:
    """Parse an embedded CMap or ToUnicode stream."""

    cmap = CMap()
    lexer = PdfLexer(data, allow_references=False)
    operands: list[Any] = []
    try:
        while True:
            token = lexer.next_token()
            if token is None:
                break
            if isinstance(token, Keyword) and token not in ("[", "<<"):
                _apply_operator(cmap, str(token), operands)
                operands = []
                continue
            operands.append(lexer.build(token))
    except IoTruncatedError as exc:
        raise CorruptDocumentError(f"CMap stream is truncated: {exc}") from exc
    return cmap


def _apply_operator(cmap: CMap, operator: str, operands: list[Any]) -> None:
    if operator == "usecmap" and operands and isinstance(operands[-1], PdfName):
        if operands[-1] in ("Identity-H", "Identity-V"):
            base = identity_cmap(operands[-1] == "Identity-V")
            cmap.codespaces.extend(base.codespaces)
            cmap.identity = True
        return
    if operator == "def" and len(operands) >= 2 and operands[-2] == "WMode":
        cmap.vertical = operands[-1] == 1
        return
    if operator == "endcodespacerange":
        for low, high in zip(operands[0::2], operands[1::2]):
            cmap.codespaces.append((_as_bytes(low), _as_bytes(high)))
    elif operator == "endbfchar":
        for source, destination in zip(operands[0::2], operands[1::2]):
            text = _destination_text(destination)
            if text:
                cmap.unicode[_as_bytes(source)] = text
    elif operator == "endbfrange":
        for low, high, destination in zip(operands[0::3], operands[1::3], operands[2::3]):
            if isinstance(destination, list):
                texts = [_destination_text(item) for item in destination]
                cmap.unicode_ranges.append((_as_bytes(low), _as_bytes(high), texts))
            elif isinstance(destination, PdfString):
                cmap.unicode_ranges.append((_as_bytes(low), _as_bytes(high), bytes(destination)))
    elif operator == "endcidrange":
        for low, high, start in zip(operands[0::3], operands[1::3], operands[2::3]):
            if isinstance(start, int):
                cmap.cid_ranges.append((_as_bytes(low), _as_bytes(high), start))
    elif operator == "endcidchar":
        for source, cid in zip(operands[0::2], operands[1::2]):
            if isinstance(cid, int):
                code = _as_bytes(source)
                cmap.cid_ranges.append((code, code, cid))
