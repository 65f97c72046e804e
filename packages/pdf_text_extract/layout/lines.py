"""Grouping of spans into text lines shared by the classifier and table detector."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from statistics import median
from typing import Iterable, Sequence

from ..extraction.primitives import BoundingBox, Span
from .config import DEFAULT_LAYOUT_CONFIG, LayoutConfig

__all__ = ["TextLine", "group_lines", "median_char_width", "weighted_median_font_size", "dominant_font_size"]


def _span_order(span: Span) -> tuple[float, float, float, str]:
    return (-span.baseline, span.bbox.x0, span.bbox.x1, span.text)


@dataclass(frozen=True, slots=True)
class TextLine:
    """Spans sharing a baseline, ordered left to right."""

    spans: tuple[Span, ...]
    word_gap_ratio: float = DEFAULT_LAYOUT_CONFIG.word_gap_ratio

    @property
    def baseline(self) -> float:
        return self.spans[0].baseline

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox.enclosing(span.bbox for span in self.spans)

    @property
    def font_size(self) -> float:
        return dominant_font_size(self.spans)

    @property
    def text(self) -> str:
        parts: list[str] = []
        previous: Span | None = None
        for span in self.spans:
            text = span.text.strip()
            if not text:
                continue
            if previous is not None:
                gap = span.bbox.x0 - previous.bbox.x1
                threshold = self.word_gap_ratio * min(span.font_size, previous.font_size)
                if gap > threshold:
                    parts.append(" ")
            parts.append(text)
            previous = span
        return "".join(parts)


def group_lines(spans: Iterable[Span], config: LayoutConfig | None = None) -> list[TextLine]:
    """Cluster *spans* into lines ordered top to bottom.

    A span joins a line when its baseline lies within
    ``line_tolerance_ratio`` times the smaller of its own font size and the
    line's first span's font size.
    """

    config = config or DEFAULT_LAYOUT_CONFIG
    clusters: list[list[Span]] = []
    for span in sorted(spans, key=_span_order):
        for cluster in clusters:
            anchor = cluster[0]
            tolerance = config.line_tolerance_ratio * min(span.font_size, anchor.font_size)
            if abs(span.baseline - anchor.baseline) <= tolerance:
                cluster.append(span)
                break
        else:
            clusters.append([span])
    lines = [
        TextLine(tuple(sorted(cluster, key=lambda item: (item.bbox.x0, item.bbox.x1, item.text))), config.word_gap_ratio)
        for cluster in clusters
    ]
    lines.sort(key=lambda line: -line.baseline)
    return lines


def _weighted_sizes(spans: Iterable[Span]) -> Counter[float]:
    weights: Counter[float] = Counter()
    for span in spans:
        weights[span.font_size] += max(len(span.text.strip()), 1)
    return weights


def weighted_median_font_size(spans: Iterable[Span]) -> float:
    """Median font size where every character counts once."""

    weights = _weighted_sizes(spans)
    if not weights:
        return 0.0
    return median(_expand(weights))


def _expand(weights: Counter[float]) -> list[float]:
    values: list[float] = []
    for size in sorted(weights):
        values.extend([size] * weights[size])
    return values


def dominant_font_size(spans: Sequence[Span]) -> float:
    """Font size covering the most characters; ties go to the larger size."""

    weights = _weighted_sizes(spans)
    if not weights:
        return 0.0
    return max(weights, key=lambda size: (weights[size], size))


def median_char_width(spans: Iterable[Span]) -> float:
    widths = []
    for span in spans:
        characters = len(span.text)
        if characters and span.bbox.width() > 0:
            widths.append(span.bbox.width() / characters)
        elif span.font_size > 0:
            widths.append(span.font_size * 0.5)
    return median(widths) if widths else 0.0
