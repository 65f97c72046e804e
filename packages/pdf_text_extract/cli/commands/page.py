"""CLI helpers for single-page extraction."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace, _SubParsersAction

from ...converter import OUTPUT_FORMATS, extract_page
from ...core.utils import read_pdf_bytes
from ...layout.config import LayoutConfig
from .convert import write_output


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("page", help="Extract a single page")
    parser.add_argument("input", help="Input PDF path")
    parser.add_argument("--page", type=int, required=True, help="Zero-based page index")
    parser.add_argument("--format", choices=list(OUTPUT_FORMATS), default="text", help="Output format")
    parser.add_argument("-o", "--output", help="Destination file path (stdout when omitted)")
    parser.set_defaults(handler=_run, action="extract page")


def _run(args: Namespace, config: LayoutConfig | None) -> int:
    data = read_pdf_bytes(args.input)
    write_output(extract_page(data, args.page, args.format, config=config), args.output)
    return 0
