"""Command line interface for pdf-text-extract."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from ..core.exceptions import PdfExtractError
from ..core.utils import configure_cli_logging
from ..layout.config import LayoutConfig
from .commands import convert, page, pages

COMMAND_MODULES = [convert, page, pages]

EXIT_OK = 0
EXIT_EXTRACTION_FAILED = 1
EXIT_IO_ERROR = 2


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-text-extract",
        description="Extract structured text from PDF files as plain text, Markdown or CSV",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--heading-ratio",
        type=float,
        default=None,
        help="Font size ratio over the page median that marks a heading",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True
    for module in COMMAND_MODULES:
        module.configure_parser(subparsers)
    return parser


def _layout_config(args: argparse.Namespace) -> LayoutConfig | None:
    if args.heading_ratio is None:
        return None
    return LayoutConfig(heading_size_ratio=args.heading_ratio)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _create_parser()
    args = parser.parse_args(argv)
    configure_cli_logging(args.verbose)

    try:
        config = _layout_config(args)
    except ValueError as exc:
        parser.error(str(exc))
    try:
        return args.handler(args, config)
    except OSError as exc:
        print(f"Failed to access file: {exc}", file=sys.stderr)
        return EXIT_IO_ERROR
    except (PdfExtractError, ValueError) as exc:
        print(f"Failed to {args.action}: {exc}", file=sys.stderr)
        return EXIT_EXTRACTION_FAILED


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
