"""Structural text extraction from PDF documents.

The pipeline parses the object model, interprets page content streams into
positioned spans, classifies the spans into headings, paragraphs, list items
and table regions, and renders them as plain text, Markdown or CSV.
"""

from __future__ import annotations

from .converter import (
    OUTPUT_FORMATS,
    count_pages,
    extract_page,
    pdf_to_csv,
    pdf_to_markdown,
    pdf_to_text,
    render_page,
)
from .core.exceptions import (
    CorruptDocumentError,
    IoTruncatedError,
    PageIndexOutOfRangeError,
    PdfExtractError,
    UnsupportedFeatureError,
)
from .core.fonts import Font
from .core.parser import Document, Page, parse
from .extraction.primitives import BoundingBox, Span
from .layout.classifier import Element, Heading, ListItem, Paragraph, TableRegion, classify_spans
from .layout.config import LayoutConfig
from .layout.lines import TextLine
from .layout.table import Cell, Table
from .render.markdown import elements_to_markdown
from .render.text import elements_to_txt

__all__ = [
    "BoundingBox",
    "Cell",
    "CorruptDocumentError",
    "Document",
    "Element",
    "Font",
    "Heading",
    "IoTruncatedError",
    "LayoutConfig",
    "ListItem",
    "OUTPUT_FORMATS",
    "Page",
    "PageIndexOutOfRangeError",
    "Paragraph",
    "PdfExtractError",
    "Span",
    "Table",
    "TableRegion",
    "TextLine",
    "UnsupportedFeatureError",
    "classify_spans",
    "count_pages",
    "elements_to_markdown",
    "elements_to_txt",
    "extract_page",
    "parse",
    "pdf_to_csv",
    "pdf_to_markdown",
    "pdf_to_text",
    "render_page",
]

__version__ = "0.1.0"
