"""Layout analysis: line grouping, block classification and table detection."""

from __future__ import annotations

from .classifier import Element, Heading, ListItem, Paragraph, TableRegion, classify_spans
from .config import DEFAULT_LAYOUT_CONFIG, LayoutConfig
from .lines import TextLine, group_lines
from .table import Cell, Table

__all__ = [
    "Cell",
    "DEFAULT_LAYOUT_CONFIG",
    "Element",
    "Heading",
    "LayoutConfig",
    "ListItem",
    "Paragraph",
    "Table",
    "TableRegion",
    "TextLine",
    "classify_spans",
    "group_lines",
]
