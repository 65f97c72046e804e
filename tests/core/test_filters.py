from __future__ import annotations

import zlib

import pytest

from pdf_text_extract.core.exceptions import UnsupportedFeatureError
from pdf_text_extract.core.filters import decode_stream
from pdf_text_extract.core.objects import PdfName, PdfRef, PdfStream

PAYLOAD = b"BT /F1 12 Tf 72 700 Td (Hello) Tj ET"


def test_stream_without_filter_is_returned_unchanged():
    assert decode_stream(PdfStream({}, PAYLOAD)) == PAYLOAD


def test_flate_decode():
    stream = PdfStream({"Filter": PdfName("FlateDecode")}, zlib.compress(PAYLOAD))
    assert decode_stream(stream) == PAYLOAD


def test_filter_chain_is_applied_in_order():
    encoded = zlib.compress(PAYLOAD).hex().encode("ascii") + b">"
    stream = PdfStream({"Filter": [PdfName("AHx"), PdfName("Fl")]}, encoded)
    assert decode_stream(stream) == PAYLOAD


def test_flate_png_predictor_parameters():
    rows = b"\x00\x01\x02\x03\x00\x04\x05\x06"
    stream = PdfStream(
        {
            "Filter": PdfName("FlateDecode"),
            "DecodeParms": {"Predictor": 12, "Columns": 3},
        },
        zlib.compress(rows),
    )
    assert decode_stream(stream) == b"\x01\x02\x03\x04\x05\x06"


def test_indirect_filter_entries_are_resolved():
    objects = {PdfRef(9, 0): PdfName("FlateDecode")}
    stream = PdfStream({"Filter": PdfRef(9, 0)}, zlib.compress(PAYLOAD))

    decoded = decode_stream(stream, lambda value: objects[value] if isinstance(value, PdfRef) else value)

    assert decoded == PAYLOAD


@pytest.mark.parametrize("name", ["DCTDecode", "JBIG2Decode", "CCITTFaxDecode", "Crypt"])
def test_unknown_filters_are_unsupported(name):
    stream = PdfStream({"Filter": PdfName(name)}, b"\x00\x01")
    with pytest.raises(UnsupportedFeatureError, match=name):
        decode_stream(stream)
