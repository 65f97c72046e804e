"""Grid reconstruction of aligned spans and CSV serialisation."""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..extraction.primitives import BoundingBox, Span
from .config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from .lines import TextLine, group_lines, median_char_width

__all__ = ["Cell", "Table", "csv_field"]

LOGGER = logging.getLogger("pdf_text_extract.table")

_CSV_SPECIAL = (",", '"', "\n", "\r")


def csv_field(text: str) -> str:
    """Quote *text* for CSV when it holds a comma, quote or line break."""

    if any(character in text for character in _CSV_SPECIAL):
        return '"' + text.replace('"', '""') + '"'
    return text


@dataclass(frozen=True, slots=True)
class Cell:
    row: int
    col: int
    text: str
    bbox: BoundingBox | None = None


@dataclass(frozen=True, slots=True)
class Table:
    """Dense grid of cells; ``cells[row][col]`` exists for every index pair."""

    cells: tuple[tuple[Cell, ...], ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.cells)

    @property
    def col_count(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def cell(self, row: int, col: int) -> Cell:
        return self.cells[row][col]

    def rows(self) -> list[list[str]]:
        return [[cell.text for cell in row] for row in self.cells]

    def to_csv(self) -> str:
        """Render one line per row, terminated by ``\\n``, with standard quoting."""

        return "".join(",".join(csv_field(cell.text) for cell in row) + "\n" for row in self.cells)

    @classmethod
    def from_spans(cls, spans: Iterable[Span], config: LayoutConfig | None = None) -> Table:
        config = config or DEFAULT_LAYOUT_CONFIG
        spans = [span for span in spans if span.text.strip()]
        if not spans:
            return cls()
        rows = group_lines(spans, config)
        starts = _column_starts(spans, rows, config)
        column_of = {x0: bisect.bisect_right(starts, x0) - 1 for x0 in {span.bbox.x0 for span in spans}}

        grid: list[list[list[Span]]] = [[[] for _ in starts] for _ in rows]
        for row_index, line in enumerate(rows):
            for span in line.spans:
                grid[row_index][column_of[span.bbox.x0]].append(span)

        region = BoundingBox.enclosing(span.bbox for span in spans)
        column_edges = _column_edges(spans, starts, column_of, region)
        row_edges = _row_edges(rows, region)
        cells = tuple(
            tuple(
                Cell(
                    row=row_index,
                    col=col_index,
                    text=" ".join(span.text.strip() for span in sorted(bucket, key=lambda item: item.bbox.x0)),
                    bbox=BoundingBox(
                        column_edges[col_index],
                        row_edges[row_index + 1],
                        column_edges[col_index + 1],
                        row_edges[row_index],
                    ),
                )
                for col_index, bucket in enumerate(row_cells)
            )
            for row_index, row_cells in enumerate(grid)
        )
        LOGGER.debug("Detected %dx%d table from %d spans", len(rows), len(starts), len(spans))
        return cls(cells)


def _column_starts(spans: Sequence[Span], rows: Sequence[TextLine], config: LayoutConfig) -> list[float]:
    """Cluster the distinct x0 values and return the first value of each cluster."""

    xs = sorted({span.bbox.x0 for span in spans})
    threshold = config.column_gap_ratio * median_char_width(spans)
    boundaries = {index for index in range(len(xs) - 1) if xs[index + 1] - xs[index] > threshold}

    for line in rows:
        row_xs = sorted({span.bbox.x0 for span in line.spans})
        for left, right in zip(row_xs, row_xs[1:]):
            low = bisect.bisect_left(xs, left)
            high = bisect.bisect_left(xs, right)
            if any(low <= boundary < high for boundary in boundaries):
                continue
            # spans sharing a row always land in distinct columns
            widest = max(range(low, high), key=lambda index: (xs[index + 1] - xs[index], -index))
            boundaries.add(widest)

    return [xs[0]] + [xs[index + 1] for index in sorted(boundaries)]


def _column_edges(
    spans: Sequence[Span],
    starts: Sequence[float],
    column_of: dict[float, int],
    region: BoundingBox,
) -> list[float]:
    right_most = [starts[index] for index in range(len(starts))]
    for span in spans:
        column = column_of[span.bbox.x0]
        right_most[column] = max(right_most[column], span.bbox.x0)
    edges = [region.x0]
    for index in range(1, len(starts)):
        edges.append(max(edges[-1], (right_most[index - 1] + starts[index]) / 2))
    edges.append(max(edges[-1], region.x1))
    return edges


def _row_edges(rows: Sequence[TextLine], region: BoundingBox) -> list[float]:
    edges = [region.y1]
    for upper, lower in zip(rows, rows[1:]):
        edges.append(min(edges[-1], (upper.baseline + lower.baseline) / 2))
    edges.append(min(edges[-1], region.y0))
    return edges
