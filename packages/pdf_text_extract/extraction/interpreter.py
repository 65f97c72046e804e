"""Content stream interpretation into positioned text spans."""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator

from pypdf.errors import PyPdfError
from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    ByteStringObject,
    ContentStream,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    NullObject,
    NumberObject,
    TextStringObject,
)

from ..core.exceptions import CorruptDocumentError
from ..core.fonts import Font
from ..core.objects import PdfName, PdfRef, PdfStream, PdfString
from .primitives import BoundingBox, Span

if TYPE_CHECKING:  # pragma: no cover
    from ..core.parser import Document, Page

__all__ = ["PageInterpreter", "GraphicsState", "iter_operations", "DEFAULT_GAP_RATIO"]

LOGGER = logging.getLogger("pdf_text_extract.interpreter")

Matrix = tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
DEFAULT_GAP_RATIO = 0.15
_MAX_FORM_DEPTH = 32
_INLINE_IMAGE = b"INLINE IMAGE"
_LINE_OPERATORS = frozenset({"Td", "TD", "Tm", "T*", "'", '"'})


def _matrix_multiply(lhs: Matrix, rhs: Matrix) -> Matrix:
    a1, b1, c1, d1, e1, f1 = lhs
    a2, b2, c2, d2, e2, f2 = rhs
    return (
        a1 * a2 + c1 * b2,
        b1 * a2 + d1 * b2,
        a1 * c2 + c1 * d2,
        b1 * c2 + d1 * d2,
        a1 * e2 + c1 * f2 + e1,
        b1 * e2 + d1 * f2 + f1,
    )


def _matrix_apply(matrix: Matrix, x: float, y: float) -> tuple[float, float]:
    a, b, c, d, e, f = matrix
    return a * x + c * y + e, b * x + d * y + f


def _translate(tx: float, ty: float) -> Matrix:
    return (1.0, 0.0, 0.0, 1.0, tx, ty)


def iter_operations(data: bytes) -> Iterator[tuple[str, list[Any]]]:
    """Yield ``(operator, operands)`` pairs from a content stream.

    Tokenizing is delegated to :class:`pypdf.generic.ContentStream`, whose
    inline image reader honours the image dimensions and filters.  Inline
    images are skipped; operands come back in the local object model.
    Unparseable content raises :class:`CorruptDocumentError`.
    """

    stream = DecodedStreamObject()
    stream.set_data(data)
    try:
        operations = ContentStream(stream, None).operations
    # pypdf signals some structural problems with assert and bare seeks
    except (PyPdfError, AssertionError, ValueError, IndexError) as exc:
        raise CorruptDocumentError(f"content stream is malformed: {exc}") from exc
    for operands, operator in operations:
        if operator == _INLINE_IMAGE:
            continue
        yield operator.decode("latin-1"), [_from_pypdf(operand) for operand in operands]


def _from_pypdf(value: Any) -> Any:
    """Convert a pypdf content operand into the local object model."""

    if isinstance(value, NameObject):
        return PdfName(value[1:])
    if isinstance(value, (TextStringObject, ByteStringObject)):
        return PdfString(value.original_bytes)
    if isinstance(value, BooleanObject):
        return bool(value.value)
    if isinstance(value, NullObject):
        return None
    if isinstance(value, NumberObject):
        return int(value)
    if isinstance(value, FloatObject):
        return float(value)
    if isinstance(value, ArrayObject):
        return [_from_pypdf(item) for item in value]
    if isinstance(value, DictionaryObject):
        return {str(key)[1:]: _from_pypdf(item) for key, item in value.items()}
    return value


@dataclass(slots=True)
class GraphicsState:
    """Subset of the PDF graphics state that affects text placement."""

    ctm: Matrix = IDENTITY
    font: Font | None = None
    font_size: float = 0.0
    char_spacing: float = 0.0
    word_spacing: float = 0.0
    horizontal_scaling: float = 1.0
    leading: float = 0.0
    rise: float = 0.0

    def copy(self) -> GraphicsState:
        return dataclasses.replace(self)


@dataclass(slots=True)
class _Glyph:
    text: str | None
    bbox: BoundingBox
    origin: tuple[float, float]
    end: tuple[float, float]


@dataclass(slots=True)
class _SpanBuilder:
    """Accumulates glyphs and closes spans on font changes and position jumps."""

    gap_ratio: float
    spans: list[Span] = field(default_factory=list)
    _glyphs: list[_Glyph] = field(default_factory=list)
    _font: str = ""
    _size: float = 0.0

    def add(self, glyph: _Glyph, font: str, size: float) -> None:
        if self._glyphs and not self._continues(glyph, font, size):
            self.close()
        if not self._glyphs:
            self._font = font
            self._size = size
        self._glyphs.append(glyph)

    def _continues(self, glyph: _Glyph, font: str, size: float) -> bool:
        if font != self._font or not math.isclose(size, self._size, rel_tol=1e-3, abs_tol=1e-3):
            return False
        previous = self._glyphs[-1]
        dx = previous.end[0] - previous.origin[0]
        dy = previous.end[1] - previous.origin[1]
        length = math.hypot(dx, dy)
        ux, uy = (dx / length, dy / length) if length > 1e-9 else (1.0, 0.0)
        gx = glyph.origin[0] - previous.end[0]
        gy = glyph.origin[1] - previous.end[1]
        along = gx * ux + gy * uy
        across = -gx * uy + gy * ux
        limit = self.gap_ratio * max(size, 1e-6)
        return abs(along) <= limit and abs(across) <= limit

    def close(self) -> None:
        glyphs = self._glyphs
        self._glyphs = []
        start, end = 0, len(glyphs)
        while start < end and not (glyphs[start].text or "").strip():
            start += 1
        while end > start and not (glyphs[end - 1].text or "").strip():
            end -= 1
        kept = glyphs[start:end]
        text = "".join(glyph.text or "" for glyph in kept)
        if not text.strip():
            return
        self.spans.append(
            Span(
                text=text,
                bbox=BoundingBox.enclosing(glyph.bbox for glyph in kept),
                font=self._font,
                font_size=round(self._size, 3),
                baseline=kept[0].origin[1],
            )
        )


class PageInterpreter:
    """Walks page content streams and emits :class:`Span` objects.

    A glyph continues the current span while the font and size are unchanged
    and its origin lies within ``gap_ratio`` times the font size of where the
    previous glyph left the pen.
    """

    def __init__(self, document: Document, *, gap_ratio: float = DEFAULT_GAP_RATIO) -> None:
        if gap_ratio <= 0:
            raise ValueError("gap_ratio must be positive")
        self._document = document
        self._gap_ratio = gap_ratio

    def spans(self, page: Page) -> list[Span]:
        builder = _SpanBuilder(self._gap_ratio)
        content = self._document.page_content(page)
        self._run(content, page.resources, GraphicsState(), builder, forms=())
        builder.close()
        LOGGER.debug("Page %d produced %d spans", page.index, len(builder.spans))
        return builder.spans

    # ------------------------------------------------------------------ #
    # Operator dispatch
    # ------------------------------------------------------------------ #
    def _run(
        self,
        content: bytes,
        resources: dict[str, Any],
        state: GraphicsState,
        builder: _SpanBuilder,
        forms: tuple[int, ...],
    ) -> None:
        stack: list[GraphicsState] = []
        text_matrix: Matrix = IDENTITY
        line_matrix: Matrix = IDENTITY

        for operator, operands in iter_operations(content):
            if operator == "q":
                stack.append(state.copy())
            elif operator == "Q":
                if stack:
                    state = stack.pop()
            elif operator == "cm":
                state.ctm = _matrix_multiply(state.ctm, _matrix_operand(operands, operator))
            elif operator in ("BT", "ET"):
                builder.close()
                text_matrix = line_matrix = IDENTITY
            elif operator == "Tf":
                name, size = _operands(operands, operator, PdfName, (int, float))
                builder.close()
                state.font = self._font(resources, name)
                state.font_size = float(size)
            elif operator == "Tc":
                state.char_spacing = _number_operand(operands, operator)
            elif operator == "Tw":
                state.word_spacing = _number_operand(operands, operator)
            elif operator == "Tz":
                state.horizontal_scaling = _number_operand(operands, operator) / 100.0
            elif operator == "TL":
                state.leading = _number_operand(operands, operator)
            elif operator == "Ts":
                state.rise = _number_operand(operands, operator)
            elif operator == "gs":
                self._apply_extended_state(resources, operands, state, builder)
            elif operator in _LINE_OPERATORS:
                builder.close()
                if operator == "Td":
                    tx, ty = _operands(operands, operator, (int, float), (int, float))
                    line_matrix = _matrix_multiply(line_matrix, _translate(tx, ty))
                elif operator == "TD":
                    tx, ty = _operands(operands, operator, (int, float), (int, float))
                    state.leading = -ty
                    line_matrix = _matrix_multiply(line_matrix, _translate(tx, ty))
                elif operator == "Tm":
                    line_matrix = _matrix_operand(operands, operator)
                elif operator == '"':
                    word_spacing, char_spacing, string = _operands(
                        operands, operator, (int, float), (int, float), PdfString
                    )
                    state.word_spacing = float(word_spacing)
                    state.char_spacing = float(char_spacing)
                    operands = [string]
                if operator in ("T*", "'", '"'):
                    line_matrix = _matrix_multiply(line_matrix, _translate(0.0, -state.leading))
                text_matrix = line_matrix
                if operator in ("'", '"'):
                    (string,) = _operands(operands[-1:], operator, PdfString)
                    text_matrix = self._show(string, state, text_matrix, builder)
            elif operator == "Tj":
                (string,) = _operands(operands, operator, PdfString)
                text_matrix = self._show(string, state, text_matrix, builder)
            elif operator == "TJ":
                (items,) = _operands(operands, operator, list)
                for item in items:
                    if isinstance(item, PdfString):
                        text_matrix = self._show(item, state, text_matrix, builder)
                    elif isinstance(item, (int, float)) and not isinstance(item, bool):
                        shift = -item / 1000.0 * state.font_size
                        if state.font is not None and state.font.vertical:
                            text_matrix = _matrix_multiply(text_matrix, _translate(0.0, shift))
                        else:
                            shift *= state.horizontal_scaling
                            text_matrix = _matrix_multiply(text_matrix, _translate(shift, 0.0))
                    else:
                        raise CorruptDocumentError("TJ array holds a non-string, non-number element")
            elif operator == "Do":
                self._draw_xobject(resources, operands, state, builder, forms)

    # ------------------------------------------------------------------ #
    # Text showing
    # ------------------------------------------------------------------ #
    def _show(self, string: bytes, state: GraphicsState, text_matrix: Matrix, builder: _SpanBuilder) -> Matrix:
        font = state.font
        if font is None:
            raise CorruptDocumentError("text shown before a font was selected")
        size = state.font_size
        vertical = font.vertical
        # horizontal scaling does not apply to vertical writing
        scaling = 1.0 if vertical else state.horizontal_scaling
        base = _matrix_multiply(state.ctm, text_matrix)
        effective_size = abs(size) * math.hypot(base[2], base[3])
        for code, raw in font.iter_codes(bytes(string)):
            width = font.glyph_width(code, raw)
            rendering = _matrix_multiply(
                _matrix_multiply(state.ctm, text_matrix),
                (size * scaling, 0.0, 0.0, size, 0.0, state.rise),
            )
            if vertical:
                # the glyph hangs below its origin, centred on the writing line
                extent_x, extent_y = (-width / 2, width / 2), (font.vertical_advance, 0.0)
                advance = font.vertical_advance * size + state.char_spacing
            else:
                extent_x, extent_y = (0.0, width), (font.descent, font.ascent)
                advance = width * size + state.char_spacing
            corners = [_matrix_apply(rendering, x, y) for x in extent_x for y in extent_y]
            if font.is_word_space(raw):
                advance += state.word_spacing
            if vertical:
                next_matrix = _matrix_multiply(text_matrix, _translate(0.0, advance))
            else:
                next_matrix = _matrix_multiply(text_matrix, _translate(advance * scaling, 0.0))
            glyph = _Glyph(
                text=font.text_for(code, raw),
                bbox=BoundingBox.from_points(corners),
                origin=_matrix_apply(rendering, 0.0, 0.0),
                end=_matrix_apply(_matrix_multiply(state.ctm, next_matrix), 0.0, state.rise),
            )
            builder.add(glyph, font.name, effective_size)
            text_matrix = next_matrix
        return text_matrix

    # ------------------------------------------------------------------ #
    # Resources
    # ------------------------------------------------------------------ #
    def _font(self, resources: dict[str, Any], name: str) -> Font:
        fonts = self._document.resolve(resources.get("Font"))
        if not isinstance(fonts, dict) or name not in fonts:
            raise CorruptDocumentError(f"font resource /{name} is not defined")
        return self._document.load_font(fonts[name])

    def _apply_extended_state(
        self,
        resources: dict[str, Any],
        operands: list[Any],
        state: GraphicsState,
        builder: _SpanBuilder,
    ) -> None:
        (name,) = _operands(operands, "gs", PdfName)
        states = self._document.resolve(resources.get("ExtGState"))
        extended = self._document.resolve(states.get(name)) if isinstance(states, dict) else None
        if not isinstance(extended, dict):
            return
        font_entry = self._document.resolve(extended.get("Font"))
        if isinstance(font_entry, list) and len(font_entry) == 2:
            size = self._document.resolve(font_entry[1])
            if isinstance(size, (int, float)):
                builder.close()
                state.font = self._document.load_font(font_entry[0])
                state.font_size = float(size)

    def _draw_xobject(
        self,
        resources: dict[str, Any],
        operands: list[Any],
        state: GraphicsState,
        builder: _SpanBuilder,
        forms: tuple[int, ...],
    ) -> None:
        (name,) = _operands(operands, "Do", PdfName)
        xobjects = self._document.resolve(resources.get("XObject"))
        if not isinstance(xobjects, dict) or name not in xobjects:
            return
        reference = xobjects[name]
        xobject = self._document.resolve(reference)
        if not isinstance(xobject, PdfStream) or xobject.get("Subtype") != "Form":
            return
        marker = reference.num if isinstance(reference, PdfRef) else id(xobject)
        if marker in forms:
            raise CorruptDocumentError(f"form XObject /{name} invokes itself")
        if len(forms) >= _MAX_FORM_DEPTH:
            raise CorruptDocumentError("form XObjects are nested too deeply")

        form_state = state.copy()
        matrix = self._document.resolve(xobject.get("Matrix"))
        if isinstance(matrix, list):
            form_state.ctm = _matrix_multiply(state.ctm, _matrix_operand(matrix, "Matrix"))
        form_resources = self._document.resolve(xobject.get("Resources"))
        if not isinstance(form_resources, dict):
            form_resources = resources
        builder.close()
        self._run(
            self._document.decode_stream(xobject),
            form_resources,
            form_state,
            builder,
            forms + (marker,),
        )
        builder.close()


# -- Operand validation --------------------------------------------------------


def _operands(operands: list[Any], operator: str, *types: Any) -> tuple[Any, ...]:
    if len(operands) < len(types):
        raise CorruptDocumentError(f"operator {operator} expects {len(types)} operands")
    values = operands[-len(types) :]
    for value, expected in zip(values, types):
        if isinstance(value, bool) or not isinstance(value, expected):
            raise CorruptDocumentError(f"operator {operator} received an operand of the wrong type")
    return tuple(values)


def _number_operand(operands: list[Any], operator: str) -> float:
    (value,) = _operands(operands, operator, (int, float))
    return float(value)


def _matrix_operand(operands: list[Any], operator: str) -> Matrix:
    values = _operands(operands, operator, *([(int, float)] * 6))
    return tuple(float(value) for value in values)  # type: ignore[return-value]
