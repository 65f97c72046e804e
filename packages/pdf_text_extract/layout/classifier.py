"""Span classification into headings, paragraphs, list items and table regions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from statistics import median
from typing import Iterable, Sequence

from ..extraction.primitives import BoundingBox, Span
from .config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from .lines import TextLine, dominant_font_size, group_lines, weighted_median_font_size

__all__ = [
    "Element",
    "Heading",
    "Paragraph",
    "ListItem",
    "TableRegion",
    "classify_spans",
    "list_marker",
    "BULLET_PATTERN",
    "DECIMAL_PATTERN",
    "ROMAN_PATTERN",
    "ALPHA_PATTERN",
]

LOGGER = logging.getLogger("pdf_text_extract.classifier")

BULLET_PATTERN = re.compile(r"^(?P<marker>[•‣◦▪▫■□●○⁃–—·∙\-*])\s+")
DECIMAL_PATTERN = re.compile(r"^(?P<marker>\(?\d+(?:[\.)]|\)))\s+")
ROMAN_PATTERN = re.compile(r"^(?P<marker>\(?[ivxlcdmIVXLCDM]{1,6}(?:[\.)]|\)))\s+")
ALPHA_PATTERN = re.compile(r"^(?P<marker>\(?[a-zA-Z](?:[\.)]|\)))\s+")


def list_marker(text: str) -> tuple[str, re.Match[str]] | None:
    """Return ``(kind, match)`` when *text* opens with a list marker."""

    stripped = text.lstrip()
    for kind, pattern in (
        ("bullet", BULLET_PATTERN),
        ("decimal", DECIMAL_PATTERN),
        ("roman", ROMAN_PATTERN),
        ("alpha", ALPHA_PATTERN),
    ):
        match = pattern.match(stripped)
        if match:
            return kind, match
    return None


# -- Elements ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Element:
    """Structural block of a page, owning its lines in reading order."""

    lines: tuple[TextLine, ...]

    @property
    def spans(self) -> tuple[Span, ...]:
        return tuple(span for line in self.lines for span in line.spans)

    @property
    def text_lines(self) -> list[str]:
        return [text for text in (line.text for line in self.lines) if text]

    @property
    def text(self) -> str:
        return " ".join(self.text_lines)

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox.enclosing(line.bbox for line in self.lines)


@dataclass(frozen=True, slots=True)
class Heading(Element):
    level: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"heading level must lie between 1 and 6, got {self.level}")


@dataclass(frozen=True, slots=True)
class Paragraph(Element):
    pass


@dataclass(frozen=True, slots=True)
class ListItem(Element):
    pass


@dataclass(frozen=True, slots=True)
class TableRegion(Element):
    pass


# -- Classification ------------------------------------------------------------


@dataclass(slots=True)
class _Block:
    lines: list[TextLine]
    gap_before: float | None

    @property
    def font_size(self) -> float:
        return dominant_font_size([span for line in self.lines for span in line.spans])


def _line_gaps(lines: Sequence[TextLine]) -> list[float]:
    return [previous.baseline - current.baseline for previous, current in zip(lines, lines[1:])]


def _starts_block(
    previous: TextLine,
    line: TextLine,
    gap: float,
    median_gap: float,
    config: LayoutConfig,
) -> bool:
    if median_gap > 0 and gap > config.block_gap_ratio * median_gap:
        return True
    if gap > config.block_gap_font_ratio * line.font_size:
        return True
    sizes = sorted((previous.font_size, line.font_size))
    if sizes[0] > 0 and sizes[1] / sizes[0] > config.font_change_ratio:
        return True
    return config.split_list_items and list_marker(line.text) is not None


def _group_blocks(lines: Sequence[TextLine], median_gap: float, config: LayoutConfig) -> list[_Block]:
    blocks: list[_Block] = []
    for index, line in enumerate(lines):
        if index == 0:
            blocks.append(_Block([line], None))
            continue
        previous = lines[index - 1]
        gap = previous.baseline - line.baseline
        if _starts_block(previous, line, gap, median_gap, config):
            blocks.append(_Block([line], gap))
        else:
            blocks[-1].lines.append(line)
    return blocks


def _cell_starts(line: TextLine, gap: float) -> list[float]:
    """Left edges of the cells of *line*; spans closer than *gap* share a cell."""

    starts: list[float] = []
    right: float | None = None
    for span in line.spans:
        if right is None or span.bbox.x0 - right >= gap:
            starts.append(span.bbox.x0)
        right = span.bbox.x1 if right is None else max(right, span.bbox.x1)
    return starts


def _is_table_region(block: _Block, config: LayoutConfig) -> bool:
    tolerance = config.column_align_ratio * block.font_size
    rows = [_cell_starts(line, config.table_cell_gap_ratio * block.font_size) for line in block.lines]
    aligned_rows = 0
    for index, starts in enumerate(rows):
        if len(starts) < config.table_min_columns:
            continue
        others = [x0 for other, other_starts in enumerate(rows) if other != index for x0 in other_starts]
        aligned = sum(1 for x0 in starts if any(abs(x0 - other_x0) <= tolerance for other_x0 in others))
        if aligned >= config.table_min_columns:
            aligned_rows += 1
    return aligned_rows >= config.table_min_rows


def _heading_levels(sizes: Iterable[float], max_level: int) -> dict[float, int]:
    distinct = sorted({round(size, 1) for size in sizes}, reverse=True)
    return {size: min(rank + 1, max_level) for rank, size in enumerate(distinct)}


def classify_spans(spans: Iterable[Span], config: LayoutConfig | None = None) -> list[Element]:
    """Group *spans* into lines and blocks and tag each block.

    The result is ordered top to bottom and depends only on the input spans
    and *config*.
    """

    config = config or DEFAULT_LAYOUT_CONFIG
    spans = [span for span in spans if span.text.strip()]
    lines = group_lines(spans, config)
    if not lines:
        return []
    gaps = _line_gaps(lines)
    median_gap = median(gaps) if gaps else 0.0
    page_size = weighted_median_font_size(spans)
    blocks = _group_blocks(lines, median_gap, config)

    kinds: list[str] = []
    for block in blocks:
        if _is_table_region(block, config):
            kinds.append("table")
        elif block.font_size >= config.heading_size_ratio * page_size and (
            block.gap_before is None or block.gap_before > median_gap
        ):
            kinds.append("heading")
        elif list_marker(block.lines[0].text) is not None:
            kinds.append("list")
        else:
            kinds.append("paragraph")

    levels = _heading_levels(
        (block.font_size for block, kind in zip(blocks, kinds) if kind == "heading"),
        config.max_heading_level,
    )
    elements: list[Element] = []
    for block, kind in zip(blocks, kinds):
        lines_tuple = tuple(block.lines)
        if kind == "table":
            elements.append(TableRegion(lines_tuple))
        elif kind == "heading":
            elements.append(Heading(lines_tuple, levels[round(block.font_size, 1)]))
        elif kind == "list":
            elements.append(ListItem(lines_tuple))
        else:
            elements.append(Paragraph(lines_tuple))
    LOGGER.debug(
        "Classified %d spans into %d lines and %d elements", len(spans), len(lines), len(elements)
    )
    return elements
