"""Plain text rendering of classified page elements."""

from __future__ import annotations

from typing import Sequence

from ..layout.classifier import Element, TableRegion
from ..layout.config import LayoutConfig
from ..layout.table import Table

__all__ = ["elements_to_txt", "table_to_txt"]

_COLUMN_SEPARATOR = "  "


def table_to_txt(table: Table) -> list[str]:
    """Lay *table* out as left-aligned, space-padded columns."""

    rows = table.rows()
    if not rows:
        return []
    widths = [max(len(row[col]) for row in rows) for col in range(table.col_count)]
    return [
        _COLUMN_SEPARATOR.join(text.ljust(width) for text, width in zip(row, widths)).rstrip()
        for row in rows
    ]


def elements_to_txt(elements: Sequence[Element], config: LayoutConfig | None = None) -> str:
    """Render *elements* as text blocks separated by a single blank line."""

    blocks: list[str] = []
    for element in elements:
        if isinstance(element, TableRegion):
            lines = table_to_txt(Table.from_spans(element.spans, config))
        else:
            lines = element.text_lines
        if lines:
            blocks.append("\n".join(lines))
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"
