"""Object model parser: lexer, filters, cross-reference data, fonts and pages."""

from __future__ import annotations

from .exceptions import (
    CorruptDocumentError,
    IoTruncatedError,
    PageIndexOutOfRangeError,
    PdfExtractError,
    UnsupportedFeatureError,
)
from .objects import PdfName, PdfRef, PdfStream, PdfString

__all__ = [
    "CorruptDocumentError",
    "IoTruncatedError",
    "PageIndexOutOfRangeError",
    "PdfExtractError",
    "UnsupportedFeatureError",
    "PdfName",
    "PdfRef",
    "PdfStream",
    "PdfString",
]
