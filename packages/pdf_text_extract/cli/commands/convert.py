"""CLI helpers for whole-document conversion."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace, _SubParsersAction
from pathlib import Path
from typing import Callable

from ...converter import OUTPUT_FORMATS, pdf_to_csv, pdf_to_markdown, pdf_to_text
from ...core.utils import read_pdf_bytes, resolve_path
from ...layout.config import LayoutConfig

SUPPORTED_FORMATS: dict[str, Callable[..., str]] = {
    "text": pdf_to_text,
    "markdown": pdf_to_markdown,
    "csv": pdf_to_csv,
}


def configure_parser(subparsers: _SubParsersAction[ArgumentParser]) -> None:
    parser = subparsers.add_parser("convert", help="Convert every page of a PDF")
    parser.add_argument("input", help="Input PDF path")
    parser.add_argument("output", nargs="?", help="Destination file path (stdout when omitted)")
    parser.add_argument(
        "--format",
        choices=list(OUTPUT_FORMATS),
        default="text",
        help="Output format",
    )
    parser.set_defaults(handler=_run, action="convert PDF")


def write_output(text: str, output: str | None) -> None:
    if output is None:
        print(text, end="")
        return
    path: Path = resolve_path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _run(args: Namespace, config: LayoutConfig | None) -> int:
    data = read_pdf_bytes(args.input)
    text = SUPPORTED_FORMATS[args.format](data, config=config)
    write_output(text, args.output)
    return 0
