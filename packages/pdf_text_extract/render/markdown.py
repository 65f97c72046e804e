"""Markdown rendering of classified page elements."""

from __future__ import annotations

from typing import Sequence

from ..layout.classifier import BULLET_PATTERN, Element, Heading, ListItem, TableRegion
from ..layout.config import LayoutConfig
from ..layout.table import Table

__all__ = ["elements_to_markdown", "table_to_markdown"]


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\r", " ").replace("\n", " ")


def table_to_markdown(table: Table) -> list[str]:
    """Render *table* as a pipe table whose first row is the header."""

    rows = table.rows()
    if not rows:
        return []
    header, *body = rows
    lines = [
        "| " + " | ".join(_escape_cell(text) for text in header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    lines.extend("| " + " | ".join(_escape_cell(text) for text in row) + " |" for row in body)
    return lines


def _list_item(element: ListItem) -> str:
    text = element.text.strip()
    match = BULLET_PATTERN.match(text)
    if match:
        text = text[match.end() :]
    return f"- {text}"


def elements_to_markdown(elements: Sequence[Element], config: LayoutConfig | None = None) -> str:
    """Render *elements* as Markdown blocks separated by a single blank line."""

    blocks: list[str] = []
    for element in elements:
        if isinstance(element, TableRegion):
            lines = table_to_markdown(Table.from_spans(element.spans, config))
            block = "\n".join(lines)
        elif isinstance(element, Heading):
            block = f"{'#' * element.level} {element.text}" if element.text else ""
        elif isinstance(element, ListItem):
            block = _list_item(element) if element.text else ""
        else:
            block = "\n".join(element.text_lines)
        if block:
            blocks.append(block)
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"
