from __future__ import annotations

from typing import Callable

import pytest

from pdf_text_extract.extraction.primitives import BoundingBox, Span


def make_span(text: str, x0: float, baseline: float, size: float = 12.0, font: str = "Helvetica") -> Span:
    """Span laid out like a Helvetica run without widths: half an em per glyph."""

    return Span(
        text=text,
        bbox=BoundingBox(x0, baseline - 0.2 * size, x0 + len(text) * size * 0.5, baseline + 0.8 * size),
        font=font,
        font_size=size,
        baseline=baseline,
    )


@pytest.fixture()
def span() -> Callable[..., Span]:
    return make_span
