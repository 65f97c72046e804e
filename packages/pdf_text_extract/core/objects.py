"""Lightweight PDF object model.

Direct objects map onto Python values: ``None`` for null, ``bool``,
``int``/``float`` for numbers, :class:`PdfString` for string objects,
:class:`PdfName` for names, ``list`` for arrays and ``dict`` (keyed by
name without the leading slash) for dictionaries.  Indirect references stay
unresolved as :class:`PdfRef` until a :class:`~pdf_text_extract.core.parser.Document`
resolves them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = ["PdfName", "PdfString", "Keyword", "PdfRef", "PdfStream", "filter_names"]


class PdfName(str):
    """PDF name object stored without its leading slash."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"/{str(self)}"


class PdfString(bytes):
    """PDF string object (literal or hexadecimal) holding its raw bytes."""

    __slots__ = ()


class Keyword(str):
    """Bare keyword: ``obj``, ``R``, delimiters or a content stream operator."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class PdfRef:
    """Indirect reference ``num gen R``."""

    num: int
    gen: int = 0

    def __str__(self) -> str:
        return f"{self.num} {self.gen} R"


@dataclass(slots=True)
class PdfStream:
    """Stream object: its dictionary plus the still-encoded payload."""

    dictionary: dict[str, Any] = field(default_factory=dict)
    raw: bytes = b""

    def get(self, key: str, default: Any = None) -> Any:
        return self.dictionary.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.dictionary

    def __getitem__(self, key: str) -> Any:
        return self.dictionary[key]


def filter_names(value: Any) -> list[str]:
    """Normalise a ``/Filter`` entry (name, array or null) into a list of names."""

    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return [str(value)]
