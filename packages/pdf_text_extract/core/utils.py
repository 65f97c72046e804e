"""Utilities shared by the extraction pipeline and its command line front end."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

PACKAGE_LOGGER = "pdf_text_extract"
_CLI_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_cli_logging(verbose: bool = False) -> logging.Logger:
    """Route the package's log records to stderr for command line runs.

    Library callers keep the standard logging defaults; only the CLI attaches
    a handler.  Calling this twice reuses the handler and only resets the
    level: DEBUG when *verbose*, WARNING otherwise.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_CLI_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger


def resolve_path(path: str | Path | None) -> Path:
    """Absolute form of a user-supplied path with ``~`` expanded."""

    if path is None or not str(path).strip():
        raise ValueError("a file path is required")
    return Path(path).expanduser().resolve()


def read_pdf_bytes(path: str | Path) -> bytes:
    """Return the raw bytes of the PDF stored at *path*."""

    return resolve_path(path).read_bytes()


__all__ = ["PACKAGE_LOGGER", "configure_cli_logging", "resolve_path", "read_pdf_bytes"]
