"""Geometric primitives shared by extraction and layout analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

__all__ = ["BoundingBox", "Span"]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned rectangle in PDF user space (origin bottom left)."""

    x0: float
    y0: float
    x1: float
    y1: float

    def width(self) -> float:
        return self.x1 - self.x0

    def height(self) -> float:
        return self.y1 - self.y0

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.x0, other.x0),
            min(self.y0, other.y0),
            max(self.x1, other.x1),
            max(self.y1, other.y1),
        )

    def overlaps(self, other: "BoundingBox") -> bool:
        return self.x0 < other.x1 and other.x0 < self.x1 and self.y0 < other.y1 and other.y0 < self.y1

    @classmethod
    def from_points(cls, points: Iterable[tuple[float, float]]) -> "BoundingBox":
        xs: list[float] = []
        ys: list[float] = []
        for x, y in points:
            xs.append(x)
            ys.append(y)
        return cls(min(xs), min(ys), max(xs), max(ys))

    @classmethod
    def enclosing(cls, boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        iterator = iter(boxes)
        result = next(iterator)
        for box in iterator:
            result = result.union(box)
        return result


@dataclass(frozen=True, slots=True)
class Span:
    """Maximal run of glyphs sharing font, size and a baseline segment."""

    text: str
    bbox: BoundingBox
    font: str
    font_size: float
    baseline: float

    @property
    def x0(self) -> float:
        return self.bbox.x0

    @property
    def x1(self) -> float:
        return self.bbox.x1
