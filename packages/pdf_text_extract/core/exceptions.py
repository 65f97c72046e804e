"""Custom exceptions raised by :mod:`pdf_text_extract`."""

from __future__ import annotations


class PdfExtractError(Exception):
    """Base exception for all errors raised while extracting text from a PDF."""


class CorruptDocumentError(PdfExtractError):
    """Raised when the PDF grammar is violated or a structure cannot be resolved."""


class UnsupportedFeatureError(PdfExtractError):
    """Raised for encryption, unknown stream filters and unsupported font programs."""


class IoTruncatedError(PdfExtractError):
    """Raised when the input ends before an expected structure completes."""


class PageIndexOutOfRangeError(PdfExtractError, IndexError):
    """Raised when a page index falls outside ``[0, page_count)``."""

    def __init__(self, index: int, page_count: int) -> None:
        self.index = index
        self.page_count = page_count
        super().__init__(f"Page {index} out of range (document has {page_count} pages)")


__all__ = [
    "PdfExtractError",
    "CorruptDocumentError",
    "UnsupportedFeatureError",
    "IoTruncatedError",
    "PageIndexOutOfRangeError",
]
