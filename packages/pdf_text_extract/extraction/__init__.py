"""Content stream interpretation producing positioned text spans."""

from __future__ import annotations

from .interpreter import DEFAULT_GAP_RATIO, GraphicsState, PageInterpreter, iter_operations
from .primitives import BoundingBox, Span

__all__ = [
    "BoundingBox",
    "DEFAULT_GAP_RATIO",
    "GraphicsState",
    "PageInterpreter",
    "Span",
    "iter_operations",
]
