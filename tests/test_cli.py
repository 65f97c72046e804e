from __future__ import annotations

import logging
from pathlib import Path

import pytest

from pdf_text_extract.cli.main import EXIT_EXTRACTION_FAILED, EXIT_IO_ERROR, main
from pdf_text_extract.core.utils import PACKAGE_LOGGER, configure_cli_logging, resolve_path


def test_convert_to_stdout(sample_pdf, capsys):
    exit_code = main(["convert", str(sample_pdf), "--format", "markdown"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out == "# Title\n\nBody text.\n\nSecond page\n"


def test_convert_to_file(sample_pdf, tmp_path):
    output = tmp_path / "out" / "sample.txt"

    exit_code = main(["convert", str(sample_pdf), str(output)])

    assert exit_code == 0
    assert output.read_text(encoding="utf-8") == "Title\n\nBody text.\n\nSecond page\n"


def test_single_page(sample_pdf, capsys):
    assert main(["page", str(sample_pdf), "--page", "1"]) == 0
    assert capsys.readouterr().out == "Second page\n"


def test_page_count(sample_pdf, capsys):
    assert main(["pages", str(sample_pdf)]) == 0
    assert capsys.readouterr().out.strip() == "2"


def test_heading_ratio_option(sample_pdf, capsys):
    assert main(["--heading-ratio", "5", "page", str(sample_pdf), "--page", "0", "--format", "markdown"]) == 0
    assert capsys.readouterr().out == "Title\n\nBody text.\n"


def test_page_out_of_range_fails(sample_pdf, capsys):
    exit_code = main(["page", str(sample_pdf), "--page", "9"])

    assert exit_code == EXIT_EXTRACTION_FAILED
    assert "Failed to extract page" in capsys.readouterr().err


def test_corrupt_input_fails(tmp_path, capsys):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"not a pdf")

    assert main(["convert", str(path)]) == EXIT_EXTRACTION_FAILED
    assert "Failed to convert PDF" in capsys.readouterr().err


def test_missing_file_is_an_io_error(tmp_path, capsys):
    exit_code = main(["pages", str(tmp_path / "missing.pdf")])

    assert exit_code == EXIT_IO_ERROR
    assert "Failed to access file" in capsys.readouterr().err


def test_cli_logging_installs_one_stderr_handler(monkeypatch):
    logger = logging.getLogger(PACKAGE_LOGGER)
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "propagate", True)
    monkeypatch.setattr(logger, "level", logger.level)

    configure_cli_logging(verbose=True)
    assert logger.level == logging.DEBUG
    configure_cli_logging()

    (handler,) = logger.handlers
    assert isinstance(handler, logging.StreamHandler)
    record = logging.makeLogRecord({"msg": "hi", "levelname": "INFO", "name": "x"})
    assert handler.formatter.format(record) == "INFO x: hi"
    assert logger.level == logging.WARNING
    assert not logger.propagate


def test_resolve_path_expands_home_and_rejects_blank():
    assert resolve_path("~/report.txt") == (Path.home() / "report.txt").resolve()
    with pytest.raises(ValueError):
        resolve_path("  ")
    with pytest.raises(ValueError):
        resolve_path(None)
