"""Renderers turning classified elements into plain text and Markdown."""

from __future__ import annotations

from .markdown import elements_to_markdown, table_to_markdown
from .text import elements_to_txt, table_to_txt

__all__ = ["elements_to_markdown", "elements_to_txt", "table_to_markdown", "table_to_txt"]
