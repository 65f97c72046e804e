"""CLI helper printing the page count of a PDF."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace, _SubParsersAction

from ...converter import count_pages
from ...core.utils import read_pdf_bytes
from ...layout.config import LayoutConfig


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("pages", help="Print the number of pages")
    parser.add_argument("input", help="Input PDF path")
    parser.set_defaults(handler=_run, action="count pages")


def _run(args: Namespace, config: LayoutConfig | None) -> int:
    print(count_pages(read_pdf_bytes(args.input)))
    return 0
