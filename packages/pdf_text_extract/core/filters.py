"""Stream filter decoding backed by :mod:`pypdf.filters`."""

from __future__ import annotations

import logging
import zlib
from typing import Any, Callable

from pypdf.errors import PyPdfError
from pypdf.filters import ASCII85Decode, ASCIIHexDecode, FlateDecode, LZWDecode, RunLengthDecode
from pypdf.generic import BooleanObject, DictionaryObject, FloatObject, NameObject, NumberObject

from .exceptions import CorruptDocumentError, UnsupportedFeatureError
from .objects import PdfName, PdfStream, filter_names

__all__ = ["decode_stream", "SUPPORTED_FILTERS"]

LOGGER = logging.getLogger("pdf_text_extract.filters")

SUPPORTED_FILTERS: dict[str, Any] = {
    "FlateDecode": FlateDecode,
    "Fl": FlateDecode,
    "ASCIIHexDecode": ASCIIHexDecode,
    "AHx": ASCIIHexDecode,
    "ASCII85Decode": ASCII85Decode,
    "A85": ASCII85Decode,
    "LZWDecode": LZWDecode,
    "LZW": LZWDecode,
    "RunLengthDecode": RunLengthDecode,
    "RL": RunLengthDecode,
}


def _identity(value: Any) -> Any:
    return value


def _to_pypdf_parameters(parameters: Any, resolve: Callable[[Any], Any]) -> DictionaryObject | None:
    parameters = resolve(parameters)
    if not isinstance(parameters, dict):
        return None
    converted = DictionaryObject()
    for key, value in parameters.items():
        value = resolve(value)
        if isinstance(value, bool):
            converted[NameObject(f"/{key}")] = BooleanObject(value)
        elif isinstance(value, int):
            converted[NameObject(f"/{key}")] = NumberObject(value)
        elif isinstance(value, float):
            converted[NameObject(f"/{key}")] = FloatObject(value)
        elif isinstance(value, PdfName):
            converted[NameObject(f"/{key}")] = NameObject(f"/{value}")
    return converted


def decode_stream(stream: PdfStream, resolve: Callable[[Any], Any] | None = None) -> bytes:
    """Return the decoded payload of *stream*, applying its filter chain in order.

    ``resolve`` dereferences indirect ``/Filter`` and ``/DecodeParms`` entries.
    """

    resolve = resolve or _identity
    names = filter_names(resolve(stream.get("Filter")))
    if not names:
        return stream.raw
    raw_parameters = resolve(stream.get("DecodeParms", stream.get("DP")))
    parameter_list = list(raw_parameters) if isinstance(raw_parameters, list) else [raw_parameters]
    parameter_list += [None] * (len(names) - len(parameter_list))

    data = stream.raw
    for name, parameters in zip(names, parameter_list):
        decoder = SUPPORTED_FILTERS.get(name)
        if decoder is None:
            raise UnsupportedFeatureError(f"stream filter /{name} is not supported")
        try:
            result = decoder.decode(data, _to_pypdf_parameters(parameters, resolve))
        except (PyPdfError, zlib.error, ValueError, IndexError) as exc:
            raise CorruptDocumentError(f"/{name} stream data is invalid: {exc}") from exc
        if isinstance(result, str):
            result = result.encode("latin-1")
        LOGGER.debug("Decoded /%s stream: %d -> %d bytes", name, len(data), len(result))
        data = result
    return data
