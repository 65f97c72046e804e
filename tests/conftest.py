from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Callable, Mapping, Sequence
import struct
import sys
import zlib

import pytest
from pypdf import PdfWriter
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGES_ROOT = PROJECT_ROOT / "packages"
if str(PACKAGES_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGES_ROOT))

HELVETICA = b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>"


def _helvetica() -> DictionaryObject:
    return DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
            NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
        }
    )


def write_text_pdf(
    pages: Sequence[bytes],
    *,
    fonts: Mapping[str, DictionaryObject] | None = None,
    compress: bool = False,
    size: tuple[float, float] = (612, 792),
) -> bytes:
    """Write a PDF whose pages draw the given content streams with pypdf."""

    writer = PdfWriter()
    font_refs = {
        name: writer._add_object(font)
        for name, font in (fonts or {"F1": _helvetica()}).items()
    }
    for content in pages:
        page = writer.add_blank_page(width=size[0], height=size[1])
        stream = DecodedStreamObject()
        stream.set_data(content)
        if compress:
            stream = stream.flate_encode()
        page[NameObject("/Contents")] = writer._add_object(stream)
        page[NameObject("/Resources")] = DictionaryObject(
            {
                NameObject("/Font"): DictionaryObject(
                    {NameObject(f"/{name}"): ref for name, ref in font_refs.items()}
                )
            }
        )
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def stream_object(data: bytes, entries: bytes = b"") -> bytes:
    return b"<< /Length %d %s>>\nstream\n" % (len(data), entries) + data + b"\nendstream"


def single_page_objects(
    content: bytes,
    *,
    font: bytes = HELVETICA,
    resources: bytes = b"",
) -> dict[int, bytes]:
    """Objects 1-5 of a one-page document: catalog, pages, page, font, contents."""

    return {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        3: b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 4 0 R >> " + resources + b">> /Contents 5 0 R >>",
        4: font,
        5: stream_object(content),
    }


def assemble_pdf(
    objects: Mapping[int, bytes],
    *,
    root: int = 1,
    xref_stream: bool = False,
    compressed: Mapping[int, bytes] | None = None,
    trailer_extra: bytes = b"",
) -> bytes:
    """Lay out raw object bodies byte by byte with a matching cross-reference section.

    ``compressed`` objects are packed into an object stream, which implies a
    cross-reference stream.
    """

    compressed = compressed or {}
    out = bytearray(b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n")
    locations: dict[int, tuple[int, int, int]] = {}
    for number in sorted(objects):
        locations[number] = (1, len(out), 0)
        out += b"%d 0 obj\n" % number + objects[number] + b"\nendobj\n"
    size = max([*objects, *compressed, 0]) + 1

    if compressed:
        xref_stream = True
        stream_number = size
        size += 1
        header_parts: list[bytes] = []
        body = bytearray()
        for index, number in enumerate(sorted(compressed)):
            header_parts.append(b"%d %d" % (number, len(body)))
            body += compressed[number] + b"\n"
            locations[number] = (2, stream_number, index)
        head = b" ".join(header_parts) + b"\n"
        payload = head + bytes(body)
        locations[stream_number] = (1, len(out), 0)
        out += (
            b"%d 0 obj\n<< /Type /ObjStm /N %d /First %d /Length %d >>\nstream\n"
            % (stream_number, len(compressed), len(head), len(payload))
            + payload
            + b"\nendstream\nendobj\n"
        )

    if xref_stream:
        xref_number = size
        size += 1
        xref_offset = len(out)
        locations[xref_number] = (1, xref_offset, 0)
        rows = b"".join(
            struct.pack(">BIH", *locations.get(number, (0, 0, 65535 if number == 0 else 0)))
            for number in range(size)
        )
        data = zlib.compress(rows)
        out += (
            b"%d 0 obj\n<< /Type /XRef /Size %d /W [1 4 2] /Root %d 0 R %s/Filter /FlateDecode /Length %d >>\nstream\n"
            % (xref_number, size, root, trailer_extra, len(data))
            + data
            + b"\nendstream\nendobj\n"
        )
    else:
        xref_offset = len(out)
        out += b"xref\n0 %d\n0000000000 65535 f \n" % size
        for number in range(1, size):
            if number in locations:
                out += b"%010d 00000 n \n" % locations[number][1]
            else:
                out += b"0000000000 00000 f \n"
        out += b"trailer\n<< /Size %d /Root %d 0 R %s>>\n" % (size, root, trailer_extra)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


@pytest.fixture()
def text_pdf() -> Callable[..., bytes]:
    return write_text_pdf


@pytest.fixture()
def raw_pdf() -> Callable[..., bytes]:
    return assemble_pdf


@pytest.fixture()
def page_objects() -> Callable[..., dict[int, bytes]]:
    return single_page_objects


@pytest.fixture()
def stream_body() -> Callable[..., bytes]:
    return stream_object


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "sample.pdf"
    pdf_path.write_bytes(
        write_text_pdf(
            [
                b"BT /F1 24 Tf 72 700 Td (Title) Tj ET BT /F1 12 Tf 72 670 Td (Body text.) Tj ET",
                b"BT /F1 12 Tf 72 700 Td (Second page) Tj ET",
            ]
        )
    )
    return pdf_path
