"""Tokenizer and object reader shared by file-level parsing and content streams."""

from __future__ import annotations

import re
from typing import Any, Callable

from .exceptions import CorruptDocumentError, IoTruncatedError
from .objects import Keyword, PdfName, PdfRef, PdfStream, PdfString

__all__ = ["PdfLexer", "read_indirect_object", "WHITESPACE", "DELIMITERS"]

WHITESPACE = frozenset(b"\x00\t\n\x0c\r ")
DELIMITERS = frozenset(b"()<>[]{}/%")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_NUMBER_PATTERN = re.compile(rb"[+-]?(?:\d+\.?\d*|\.\d+)\Z")
_NAME_ESCAPE = re.compile(rb"#([0-9A-Fa-f]{2})")
_ESCAPES = {
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("b"): 0x08,
    ord("f"): 0x0C,
    ord("("): 0x28,
    ord(")"): 0x29,
    ord("\\"): 0x5C,
}
_ARRAY_START = Keyword("[")
_ARRAY_END = Keyword("]")
_DICT_START = Keyword("<<")
_DICT_END = Keyword(">>")
_CONSTANTS = {"true": True, "false": False, "null": None}


class PdfLexer:
    """Cursor over a byte buffer yielding PDF tokens and objects.

    ``allow_references`` enables the ``num gen R`` lookahead used for file
    objects.  Content streams and CMaps disable it since they never contain
    indirect references.
    """

    def __init__(self, data: bytes, position: int = 0, *, allow_references: bool = True) -> None:
        self.data = data
        self.position = position
        self.allow_references = allow_references

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #
    def at_end(self) -> bool:
        self.skip_whitespace()
        return self.position >= len(self.data)

    def skip_whitespace(self) -> None:
        data = self.data
        length = len(data)
        position = self.position
        while position < length:
            byte = data[position]
            if byte in WHITESPACE:
                position += 1
            elif byte == 0x25:  # '%' comment runs to end of line
                while position < length and data[position] not in (0x0A, 0x0D):
                    position += 1
            else:
                break
        self.position = position

    def next_token(self) -> Any:
        """Return the next token, or ``None`` once the buffer is exhausted."""

        self.skip_whitespace()
        data = self.data
        position = self.position
        if position >= len(data):
            return None
        byte = data[position]
        if byte == 0x2F:  # '/'
            return self._read_name()
        if byte == 0x28:  # '('
            return self._read_literal_string()
        if byte == 0x3C:  # '<'
            if data[position + 1 : position + 2] == b"<":
                self.position = position + 2
                return _DICT_START
            return self._read_hex_string()
        if byte == 0x3E:  # '>'
            if data[position + 1 : position + 2] == b">":
                self.position = position + 2
                return _DICT_END
            if position + 1 >= len(data):
                raise IoTruncatedError("input ends inside a dictionary terminator")
            raise CorruptDocumentError(f"unexpected '>' at offset {position}")
        if byte in b"[]{}":
            self.position = position + 1
            return Keyword(chr(byte))
        if byte == 0x29:  # ')'
            raise CorruptDocumentError(f"unbalanced ')' at offset {position}")

        end = position
        length = len(data)
        while end < length and data[end] not in WHITESPACE and data[end] not in DELIMITERS:
            end += 1
        self.position = end
        raw = data[position:end]
        if _NUMBER_PATTERN.match(raw):
            if b"." in raw:
                return float(raw)
            return int(raw)
        return Keyword(raw.decode("latin-1"))

    def _read_name(self) -> PdfName:
        data = self.data
        start = self.position + 1
        end = start
        length = len(data)
        while end < length and data[end] not in WHITESPACE and data[end] not in DELIMITERS:
            end += 1
        self.position = end
        raw = _NAME_ESCAPE.sub(lambda match: bytes([int(match.group(1), 16)]), data[start:end])
        try:
            return PdfName(raw.decode("utf-8"))
        except UnicodeDecodeError:
            return PdfName(raw.decode("latin-1"))

    def _read_literal_string(self) -> PdfString:
        data = self.data
        length = len(data)
        position = self.position + 1
        depth = 1
        out = bytearray()
        while position < length:
            byte = data[position]
            if byte == 0x5C:  # backslash
                position += 1
                if position >= length:
                    break
                escaped = data[position]
                if escaped in _ESCAPES:
                    out.append(_ESCAPES[escaped])
                    position += 1
                elif 0x30 <= escaped <= 0x37:
                    digits = 0
                    value = 0
                    while digits < 3 and position < length and 0x30 <= data[position] <= 0x37:
                        value = value * 8 + data[position] - 0x30
                        position += 1
                        digits += 1
                    out.append(value & 0xFF)
                elif escaped == 0x0D:
                    position += 1
                    if position < length and data[position] == 0x0A:
                        position += 1
                elif escaped == 0x0A:
                    position += 1
                else:
                    out.append(escaped)
                    position += 1
                continue
            if byte == 0x28:
                depth += 1
            elif byte == 0x29:
                depth -= 1
                if depth == 0:
                    self.position = position + 1
                    return PdfString(bytes(out))
            elif byte == 0x0D:
                # end-of-line markers inside strings read as a single LF
                out.append(0x0A)
                position += 1
                if position < length and data[position] == 0x0A:
                    position += 1
                continue
            out.append(byte)
            position += 1
        raise IoTruncatedError("input ends inside a literal string")

    def _read_hex_string(self) -> PdfString:
        data = self.data
        start = self.position + 1
        end = data.find(b">", start)
        if end < 0:
            raise IoTruncatedError("input ends inside a hexadecimal string")
        digits = bytearray()
        for byte in data[start:end]:
            if byte in _HEX_DIGITS:
                digits.append(byte)
            elif byte not in WHITESPACE:
                raise CorruptDocumentError(f"invalid character in hexadecimal string at offset {start}")
        if len(digits) % 2:
            digits.append(0x30)
        self.position = end + 1
        return PdfString(bytes.fromhex(digits.decode("ascii")))

    # ------------------------------------------------------------------ #
    # Objects
    # ------------------------------------------------------------------ #
    def read_object(self) -> Any:
        token = self.next_token()
        if token is None:
            raise IoTruncatedError("input ends where an object was expected")
        return self.build(token)

    def build(self, token: Any) -> Any:
        """Turn *token* into a direct object, consuming any tokens it spans."""

        if isinstance(token, Keyword):
            if token == _ARRAY_START:
                return self._read_array()
            if token == _DICT_START:
                return self._read_dictionary()
            if token in _CONSTANTS:
                return _CONSTANTS[token]
            raise CorruptDocumentError(f"unexpected keyword {str(token)!r} before offset {self.position}")
        if self.allow_references and isinstance(token, int):
            saved = self.position
            try:
                generation = self.next_token()
                if isinstance(generation, int) and generation >= 0:
                    marker = self.next_token()
                    if marker == "R" and isinstance(marker, Keyword):
                        return PdfRef(token, generation)
            except (CorruptDocumentError, IoTruncatedError):
                pass
            self.position = saved
        return token

    def _read_array(self) -> list[Any]:
        items: list[Any] = []
        while True:
            token = self.next_token()
            if token is None:
                raise IoTruncatedError("input ends inside an array")
            if token == _ARRAY_END and isinstance(token, Keyword):
                return items
            items.append(self.build(token))

    def _read_dictionary(self) -> dict[str, Any]:
        entries: dict[str, Any] = {}
        while True:
            token = self.next_token()
            if token is None:
                raise IoTruncatedError("input ends inside a dictionary")
            if token == _DICT_END and isinstance(token, Keyword):
                return entries
            if not isinstance(token, PdfName):
                raise CorruptDocumentError(f"dictionary key must be a name near offset {self.position}")
            value_token = self.next_token()
            if value_token is None:
                raise IoTruncatedError("input ends inside a dictionary")
            if value_token == _DICT_END and isinstance(value_token, Keyword):
                raise CorruptDocumentError(f"dictionary key /{token} has no value")
            entries[str(token)] = self.build(value_token)


def read_indirect_object(
    data: bytes,
    offset: int,
    resolve: Callable[[Any], Any] | None = None,
) -> tuple[PdfRef, Any]:
    """Parse the ``num gen obj ... endobj`` construct starting at *offset*.

    ``resolve`` turns an indirect ``/Length`` into a number; without it, or
    when the declared length does not land on ``endstream``, the payload is
    delimited by scanning for the ``endstream`` keyword.
    """

    if offset >= len(data):
        raise IoTruncatedError(f"object offset {offset} lies beyond the end of the input")
    lexer = PdfLexer(data, offset)
    number = lexer.next_token()
    generation = lexer.next_token()
    keyword = lexer.next_token()
    if None in (number, generation, keyword):
        raise IoTruncatedError(f"input ends inside the object header at offset {offset}")
    if not isinstance(number, int) or not isinstance(generation, int) or keyword != "obj":
        raise CorruptDocumentError(f"expected an object header at offset {offset}")
    reference = PdfRef(number, generation)
    value = lexer.read_object()

    saved = lexer.position
    token = lexer.next_token()
    if not (isinstance(token, Keyword) and token == "stream"):
        lexer.position = saved
        return reference, value
    if not isinstance(value, dict):
        raise CorruptDocumentError(f"stream of object {number} has no dictionary")

    start = lexer.position
    if data[start : start + 2] == b"\r\n":
        start += 2
    elif data[start : start + 1] in (b"\n", b"\r"):
        start += 1

    length = value.get("Length")
    if isinstance(length, PdfRef) and resolve is not None:
        length = resolve(length)
    raw: bytes | None = None
    if isinstance(length, int) and length >= 0 and start + length <= len(data):
        tail = PdfLexer(data, start + length)
        tail.skip_whitespace()
        if data.startswith(b"endstream", tail.position):
            raw = data[start : start + length]
    if raw is None:
        end = data.find(b"endstream", start)
        if end < 0:
            raise IoTruncatedError(f"input ends inside the stream of object {number}")
        if data[end - 2 : end] == b"\r\n":
            end -= 2
        elif data[end - 1 : end] in (b"\n", b"\r"):
            end -= 1
        raw = data[start:max(end, start)]
    return reference, PdfStream(value, raw)
