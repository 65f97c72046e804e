"""Whole-document and single-page conversion helpers."""

from __future__ import annotations

import logging
from typing import Callable

from .core.parser import Document, parse
from .extraction.primitives import Span
from .layout.classifier import classify_spans
from .layout.config import LayoutConfig
from .layout.table import Table
from .render.markdown import elements_to_markdown
from .render.text import elements_to_txt

__all__ = [
    "OUTPUT_FORMATS",
    "count_pages",
    "extract_page",
    "pdf_to_csv",
    "pdf_to_markdown",
    "pdf_to_text",
    "render_page",
]

LOGGER = logging.getLogger("pdf_text_extract.converter")

OUTPUT_FORMATS = ("text", "markdown", "csv")


def _text_page(spans: list[Span], config: LayoutConfig | None) -> str:
    return elements_to_txt(classify_spans(spans, config), config)


def _markdown_page(spans: list[Span], config: LayoutConfig | None) -> str:
    return elements_to_markdown(classify_spans(spans, config), config)


def _csv_page(spans: list[Span], config: LayoutConfig | None) -> str:
    return Table.from_spans(spans, config).to_csv()


_RENDERERS: dict[str, Callable[[list[Span], LayoutConfig | None], str]] = {
    "text": _text_page,
    "markdown": _markdown_page,
    "csv": _csv_page,
}


def _renderer(output_format: str) -> Callable[[list[Span], LayoutConfig | None], str]:
    try:
        return _RENDERERS[output_format]
    except KeyError:
        raise ValueError(f"Unknown format '{output_format}'. Use 'text', 'markdown', or 'csv'") from None


def render_page(
    document: Document,
    page_index: int,
    output_format: str = "text",
    config: LayoutConfig | None = None,
) -> str:
    """Render one page of an already parsed document."""

    renderer = _renderer(output_format)
    return renderer(document.extract_page_text(page_index), config)


def _convert_document(data: bytes, output_format: str, config: LayoutConfig | None) -> str:
    renderer = _renderer(output_format)
    document = parse(data)
    outputs: list[str] = []
    for index in range(document.page_count()):
        LOGGER.debug("Rendering page %d/%d as %s", index + 1, document.page_count(), output_format)
        output = renderer(document.extract_page_text(index), config)
        if output:
            outputs.append(output)
    LOGGER.info(
        "Converted %d pages to %s (%d with content)", document.page_count(), output_format, len(outputs)
    )
    # page outputs end with a newline, so joining on one leaves a blank line between pages
    return "\n".join(outputs)


def pdf_to_text(data: bytes, *, config: LayoutConfig | None = None) -> str:
    """Extract plain text from every page of *data*."""

    return _convert_document(data, "text", config)


def pdf_to_markdown(data: bytes, *, config: LayoutConfig | None = None) -> str:
    """Extract Markdown from every page of *data*."""

    return _convert_document(data, "markdown", config)


def pdf_to_csv(data: bytes, *, config: LayoutConfig | None = None) -> str:
    """Extract each page as a table and concatenate the CSV row blocks."""

    return _convert_document(data, "csv", config)


def extract_page(
    data: bytes,
    page_index: int,
    output_format: str = "text",
    *,
    config: LayoutConfig | None = None,
) -> str:
    """Render a single zero-based page of *data* in *output_format*."""

    _renderer(output_format)
    return render_page(parse(data), page_index, output_format, config)


def count_pages(data: bytes) -> int:
    return parse(data).page_count()
