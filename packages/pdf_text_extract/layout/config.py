"""Tunable thresholds for line grouping, block tagging and table detection."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

__all__ = ["LayoutConfig", "DEFAULT_LAYOUT_CONFIG"]


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """Layout heuristics, expressed as ratios of font size or gap statistics."""

    line_tolerance_ratio: float = 0.5
    """Baseline distance (× smaller font size) under which spans share a line."""

    word_gap_ratio: float = 0.1
    """Horizontal gap (× font size) above which joined spans get a space."""

    block_gap_ratio: float = 1.5
    """Line gap (× median line gap of the page) that starts a new block."""

    block_gap_font_ratio: float = 2.0
    """Line gap (× font size of the line) that starts a new block."""

    font_change_ratio: float = 1.15
    """Dominant size ratio between consecutive lines that starts a new block."""

    split_list_items: bool = True
    """Start a new block at every line opening with a list marker."""

    heading_size_ratio: float = 1.2
    """Dominant size (× page median size) a heading block must reach."""

    max_heading_level: int = 6
    """Deepest heading level produced."""

    column_align_ratio: float = 0.5
    """Tolerance (× dominant size) for x0 values to count as aligned."""

    table_min_columns: int = 3
    """Aligned spans a line needs to count as a table row."""

    table_min_rows: int = 2
    """Table rows a block needs to become a table region."""

    table_cell_gap_ratio: float = 1.0
    """Horizontal gap (× dominant size) that separates two cells of a table row."""

    column_gap_ratio: float = 2.0
    """Gap between x0 values (× median character width) that splits columns."""

    def __post_init__(self) -> None:
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool):
                continue
            if value <= 0:
                raise ValueError(f"{field.name} must be positive, got {value!r}")
        if not 1 <= self.max_heading_level <= 6:
            raise ValueError("max_heading_level must lie between 1 and 6")
        if self.font_change_ratio < 1:
            raise ValueError("font_change_ratio must be at least 1")

    def replace(self, **changes: Any) -> LayoutConfig:
        return dataclasses.replace(self, **changes)


DEFAULT_LAYOUT_CONFIG = LayoutConfig()
